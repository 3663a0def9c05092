"""
Clinic Hands-Free Command Interpreter

Drives the dental clinic web application without a pointer device: hand
gestures move a selection over the page's buttons and activate them, and
spoken commands navigate between pages or click elements by name.
"""

__version__ = "1.0.0"

from .types import (
    ActionableElement,
    ActivateIntent,
    Gesture,
    LandmarkFrame,
    NavigateIntent,
    Role,
    SurfaceProvider,
)
from .config import load_config, Cfg
from .commands import parse, parse_intents
from .gestures import classify, GestureEdgeTrigger
from .router import RoleRouter
from .session import SessionState
from .surface_mock import MockSurface, MockElement

__all__ = [
    "ActionableElement",
    "ActivateIntent",
    "Gesture",
    "LandmarkFrame",
    "NavigateIntent",
    "Role",
    "SurfaceProvider",
    "load_config",
    "Cfg",
    "parse",
    "parse_intents",
    "classify",
    "GestureEdgeTrigger",
    "RoleRouter",
    "SessionState",
    "MockSurface",
    "MockElement",
]
