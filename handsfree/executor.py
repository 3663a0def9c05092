"""
Shared executor that applies intents to the live page.
"""
import logging
from typing import Optional

from .router import RoleRouter
from .types import ActivateIntent, Intent, NavigateIntent, Notifier, SurfaceProvider
from .session import NotificationLog

logger = logging.getLogger(__name__)

DEFAULT_CLICKABLE_SELECTOR = 'button, [role="button"], a'


class ActionExecutor:
    """
    Locates and invokes elements by name, and performs navigations.

    No-match outcomes are reported to the notifier and returned as False,
    never raised.
    """

    def __init__(self, surface: SurfaceProvider, router: RoleRouter,
                 notifier: Optional[Notifier] = None,
                 clickable_selector: str = DEFAULT_CLICKABLE_SELECTOR):
        self.surface = surface
        self.router = router
        self.notifier = notifier or NotificationLog()
        self.clickable_selector = clickable_selector

    async def activate_by_name(self, name: str) -> bool:
        """Click the first element whose text or aria-label contains name."""
        try:
            elements = await self.surface.list_actionable(self.clickable_selector)
            match = next((el for el in elements if el.names(name)), None)
            if match is None:
                self.notifier.error(f"Could not find button: {name}")
                return False
            await self.surface.activate(match)
        except Exception as e:
            logger.error(f"Button click error: {e}")
            self.notifier.error("Failed to click button")
            return False

        self.notifier.success(f"Clicked {name}")
        return True

    async def navigate_to(self, path: str) -> bool:
        """Perform a full navigation to path."""
        try:
            await self.surface.navigate(path)
        except Exception as e:
            logger.error(f"Navigation error: {e}")
            self.notifier.error("Failed to navigate")
            return False
        return True

    async def dispatch(self, intent: Intent) -> bool:
        """Apply one parsed intent."""
        if isinstance(intent, NavigateIntent):
            return await self._navigate_by_name(intent.target)
        if isinstance(intent, ActivateIntent):
            return await self.activate_by_name(intent.target)
        raise TypeError(f"Unknown intent: {intent!r}")

    async def _navigate_by_name(self, page: str) -> bool:
        try:
            role = await self.surface.current_role()
        except Exception as e:
            logger.warning(f"Could not read role, using default: {e}")
            role = None

        path = self.router.resolve(role, page)
        if path is None:
            self.notifier.error(f"Could not find page: {page}")
            return False

        if not await self.navigate_to(path):
            return False
        self.notifier.success(f"Navigating to {page}")
        return True
