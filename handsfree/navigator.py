"""
Gesture-driven selection over the actionable elements of the current page.
"""
import logging
from typing import List, Optional

from .config import GesturesConfig
from .types import ActionableElement, Direction, Gesture, SurfaceProvider

logger = logging.getLogger(__name__)


class SelectionNavigator:
    """
    Keeps a snapshot of actionable elements and a wrapping selection cursor.

    The element list is rebuilt wholesale by the caller on every route
    change; the navigator never observes routing itself.
    """

    def __init__(self, surface: SurfaceProvider, cfg: Optional[GesturesConfig] = None):
        self.surface = surface
        self.cfg = cfg or GesturesConfig()
        self.elements: List[ActionableElement] = []
        self.index = 0

    @property
    def is_inert(self) -> bool:
        return not self.elements

    @property
    def selected(self) -> Optional[ActionableElement]:
        if not self.elements:
            return None
        return self.elements[self.index]

    async def rebuild_elements(self) -> None:
        """Re-query the surface and reset the cursor to the default element."""
        self.elements = await self.surface.list_actionable(self.cfg.selector, self.cfg.excluded_region)
        self.index = 0
        if not self.elements:
            logger.debug("No actionable elements; navigator is inert")
            return

        keyword = self.cfg.default_selection_keyword
        if keyword:
            for i, element in enumerate(self.elements):
                if element.matches(keyword):
                    self.index = i
                    break

        logger.debug(f"Rebuilt {len(self.elements)} elements, selected #{self.index}")
        await self._highlight_selected()

    async def move_selection(self, direction: Direction) -> None:
        """Move the cursor one step, wrapping at both ends."""
        n = len(self.elements)
        if n == 0:
            return
        step = 1 if direction == "right" else -1
        self.index = (self.index + step + n) % n
        await self._highlight_selected()

    async def activate_selected(self) -> bool:
        """Activate the selected element; False when there is nothing to activate."""
        element = self.selected
        if element is None:
            return False
        try:
            await self.surface.activate(element)
        except Exception as e:
            logger.error(f"Failed to activate element #{self.index}: {e}")
            return False
        return True

    async def clear_selection(self) -> None:
        """Remove every highlight and reset the cursor without rebuilding."""
        for element in self.elements:
            await self._set_highlight(element, False)
        self.index = 0

    async def reset(self) -> None:
        """Clear the selection and drop the element snapshot."""
        await self.clear_selection()
        self.elements = []

    async def handle_gesture(self, gesture: Gesture) -> None:
        """Apply a delivered gesture; UP and DOWN are not bound."""
        if gesture is Gesture.RIGHT:
            await self.move_selection("right")
        elif gesture is Gesture.LEFT:
            await self.move_selection("left")
        elif gesture is Gesture.SUBMIT:
            await self.activate_selected()
        elif gesture is Gesture.CLEAR:
            await self.clear_selection()

    async def _highlight_selected(self) -> None:
        for i, element in enumerate(self.elements):
            await self._set_highlight(element, i == self.index)

    async def _set_highlight(self, element: ActionableElement, on: bool) -> None:
        # Elements may have been detached by a re-render since the last rebuild
        try:
            await self.surface.set_highlight(element, self.cfg.highlight_class, on)
        except Exception as e:
            logger.debug(f"Could not update highlight on element #{element.position}: {e}")
