"""
Type definitions for the hands-free command interpreter.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Literal, NamedTuple, Optional, Protocol, Sequence, Union, runtime_checkable


NUM_LANDMARKS = 21


class LandmarkIndex:
    """MediaPipe hand landmark indices."""
    WRIST = 0
    THUMB_TIP = 4
    INDEX_TIP = 8
    MIDDLE_TIP = 12
    RING_TIP = 16
    PINKY_TIP = 20


class Point(NamedTuple):
    """Normalized landmark coordinate (y grows downward)."""
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class LandmarkFrame:
    """One frame of 21 hand landmarks for a single hand."""
    points: Sequence[Point]

    def __post_init__(self):
        if len(self.points) != NUM_LANDMARKS:
            raise ValueError(f"Expected {NUM_LANDMARKS} landmarks, got {len(self.points)}")
        object.__setattr__(self, "points", tuple(Point(*p) for p in self.points))

    def __getitem__(self, index: int) -> Point:
        return self.points[index]

    @property
    def wrist(self) -> Point:
        return self.points[LandmarkIndex.WRIST]

    @property
    def thumb_tip(self) -> Point:
        return self.points[LandmarkIndex.THUMB_TIP]

    @property
    def index_tip(self) -> Point:
        return self.points[LandmarkIndex.INDEX_TIP]

    @property
    def middle_tip(self) -> Point:
        return self.points[LandmarkIndex.MIDDLE_TIP]

    @property
    def ring_tip(self) -> Point:
        return self.points[LandmarkIndex.RING_TIP]

    @property
    def pinky_tip(self) -> Point:
        return self.points[LandmarkIndex.PINKY_TIP]


class Gesture(Enum):
    """Discrete gesture labels."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    SUBMIT = "submit"
    CLEAR = "clear"
    NONE = "none"


Direction = Literal["left", "right"]


class Role(Enum):
    """Active user role, as persisted by the clinic application."""
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    USER = "USER"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        """Parse a stored role string, falling back to USER."""
        if not value:
            return cls.USER
        normalized = value.strip().upper()
        if normalized == "PATIENT":
            return cls.USER
        try:
            return cls(normalized)
        except ValueError:
            return cls.USER


@dataclass
class ActionableElement:
    """Snapshot reference to one interactive element of the live page."""
    ref: Any
    text: str = ""
    label: str = ""
    class_name: str = ""
    element_id: str = ""
    position: int = 0

    def matches(self, keyword: str) -> bool:
        """Case-insensitive match against label, class and id."""
        keyword = keyword.lower()
        return any(keyword in value.lower() for value in (self.label, self.class_name, self.element_id))

    def names(self, keyword: str) -> bool:
        """Case-insensitive match against visible text and aria-label."""
        keyword = keyword.lower()
        return keyword in self.text.lower() or keyword in self.label.lower()


@dataclass(frozen=True)
class NavigateIntent:
    """Spoken request to open a page."""
    target: str


@dataclass(frozen=True)
class ActivateIntent:
    """Spoken request to click an element by name."""
    target: str


Intent = Union[NavigateIntent, ActivateIntent]


@dataclass
class Notification:
    """User-visible outcome of a command."""
    level: Literal["success", "error", "info"]
    message: str
    timestamp: float = 0.0


class HandsFreeError(Exception):
    """Base class for interpreter errors."""


class AcquisitionError(HandsFreeError):
    """Camera or microphone denied or unavailable."""


class UnsupportedEnvironmentError(HandsFreeError):
    """A capability required by a pipeline is missing."""


@runtime_checkable
class SurfaceProvider(Protocol):
    """Abstract protocol over the live element tree of the hosted application."""

    async def list_actionable(self, selector: str, excluded_region: Optional[str] = None) -> List[ActionableElement]:
        """Return elements matching selector in document order, skipping the excluded region."""
        ...

    async def activate(self, element: ActionableElement) -> None:
        """Invoke the element as if clicked by the user."""
        ...

    async def set_highlight(self, element: ActionableElement, css_class: str, on: bool) -> None:
        """Add or remove the selection highlight on an element."""
        ...

    async def navigate(self, path: str) -> None:
        """Perform a full navigation to path."""
        ...

    async def current_role(self) -> Optional[str]:
        """Return the role string persisted by the application, if any."""
        ...

    def on_route_change(self, callback: Callable[[str], None]) -> None:
        """Register a callback fired on every history, hash or route change."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Receives user-visible command outcomes."""

    def success(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...
