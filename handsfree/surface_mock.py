"""
Mock surface implementation for testing and headless runs.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set

from .types import ActionableElement

logger = logging.getLogger(__name__)


@dataclass
class MockElement:
    """In-memory stand-in for a rendered element."""
    text: str = ""
    label: str = ""
    class_name: str = ""
    element_id: str = ""
    tag: str = "button"
    role: Optional[str] = None
    region: Optional[str] = None
    classes: Set[str] = field(default_factory=set)
    detached: bool = False

    def matches_selector(self, selector: str) -> bool:
        for part in _split_selector(selector):
            if part == self.tag:
                return True
            if part.startswith("[role=") and self.role == part[len("[role="):-1].strip("\"'"):
                return True
        return False


def _split_selector(selector: Optional[str]) -> List[str]:
    return [part.strip() for part in (selector or "").split(",") if part.strip()]


class MockSurface:
    """Mock surface that records actions instead of touching a browser."""

    def __init__(self, elements: Optional[List[MockElement]] = None, role: Optional[str] = "USER"):
        """Initialize the mock surface."""
        self.elements: List[MockElement] = list(elements or [])
        self.role = role
        self.url = "/"
        self.clicked: List[MockElement] = []
        self.navigations: List[str] = []
        self._route_callbacks: List[Callable[[str], None]] = []

    def render(self, elements: List[MockElement]) -> None:
        """Replace the rendered elements, detaching the previous ones."""
        for element in self.elements:
            element.detached = True
        self.elements = list(elements)

    def change_route(self, url: str) -> None:
        """Simulate an in-app history or hash change."""
        self.url = url
        for callback in list(self._route_callbacks):
            callback(url)

    async def list_actionable(self, selector: str, excluded_region: Optional[str] = None) -> List[ActionableElement]:
        excluded = set(_split_selector(excluded_region))
        found = []
        for position, element in enumerate(self.elements):
            if not element.matches_selector(selector):
                continue
            if element.region is not None and element.region in excluded:
                continue
            found.append(ActionableElement(
                ref=element,
                text=element.text,
                label=element.label,
                class_name=element.class_name,
                element_id=element.element_id,
                position=position,
            ))
        return found

    async def activate(self, element: ActionableElement) -> None:
        target: MockElement = element.ref
        if target.detached:
            raise RuntimeError("Element is not attached to the DOM")
        self.clicked.append(target)
        logger.info(f"[MockSurface] Click: {target.text or target.label!r} (call #{len(self.clicked)})")

    async def set_highlight(self, element: ActionableElement, css_class: str, on: bool) -> None:
        target: MockElement = element.ref
        if target.detached:
            raise RuntimeError("Element is not attached to the DOM")
        if on:
            target.classes.add(css_class)
        else:
            target.classes.discard(css_class)

    async def navigate(self, path: str) -> None:
        self.navigations.append(path)
        logger.info(f"[MockSurface] Navigate: {path} (call #{len(self.navigations)})")
        self.change_route(path)

    async def current_role(self) -> Optional[str]:
        return self.role

    def on_route_change(self, callback: Callable[[str], None]) -> None:
        self._route_callbacks.append(callback)

    def highlighted(self, css_class: str = "gesture-selected") -> List[MockElement]:
        """Elements currently carrying the highlight class."""
        return [el for el in self.elements if css_class in el.classes]

    def reset_counters(self) -> None:
        """Reset action records for testing."""
        self.clicked.clear()
        self.navigations.clear()
