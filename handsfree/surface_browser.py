"""
Playwright-backed surface over the clinic web application's live DOM.
"""
import logging
from typing import Callable, List, Optional
from urllib.parse import urljoin

from playwright.async_api import async_playwright, Browser, Frame, Page, Playwright

from .config import ServerConfig
from .types import ActionableElement

logger = logging.getLogger(__name__)

_DESCRIBE_JS = """
(el, excluded) => ({
    excluded: excluded ? el.closest(excluded) !== null : false,
    text: (el.textContent || '').trim(),
    label: el.getAttribute('aria-label') || '',
    className: el.getAttribute('class') || '',
    id: el.id || '',
})
"""

_HIGHLIGHT_JS = "(el, [cls, on]) => el.classList.toggle(cls, on)"

_HIGHLIGHT_STYLE_JS = """
(cls) => {
    const install = () => {
        if (document.getElementById('handsfree-highlight-style')) return;
        const style = document.createElement('style');
        style.id = 'handsfree-highlight-style';
        style.textContent = `.${cls} { outline: 3px solid #2563eb !important; outline-offset: 2px; }`;
        document.head.appendChild(style);
    };
    if (document.readyState === 'loading') {
        document.addEventListener('DOMContentLoaded', install);
    } else {
        install();
    }
}
"""


class PlaywrightSurface:
    """Surface provider that queries and drives a Playwright page."""

    def __init__(self, page: Page, base_url: str, role_storage_key: str = "role"):
        self.page = page
        self.base_url = base_url
        self.role_storage_key = role_storage_key

    async def install_highlight_style(self, css_class: str) -> None:
        """Make the selection highlight visible on every document."""
        script = f"({_HIGHLIGHT_STYLE_JS})({css_class!r})"
        await self.page.add_init_script(script)
        await self.page.evaluate(_HIGHLIGHT_STYLE_JS, css_class)

    async def list_actionable(self, selector: str, excluded_region: Optional[str] = None) -> List[ActionableElement]:
        await self.page.wait_for_load_state("domcontentloaded")
        handles = await self.page.query_selector_all(selector)
        elements = []
        for position, handle in enumerate(handles):
            info = await handle.evaluate(_DESCRIBE_JS, excluded_region)
            if info["excluded"]:
                continue
            elements.append(ActionableElement(
                ref=handle,
                text=info["text"],
                label=info["label"],
                class_name=info["className"],
                element_id=info["id"],
                position=position,
            ))
        return elements

    async def activate(self, element: ActionableElement) -> None:
        # Synthetic click, same as a direct user activation
        await element.ref.evaluate("el => el.click()")

    async def set_highlight(self, element: ActionableElement, css_class: str, on: bool) -> None:
        await element.ref.evaluate(_HIGHLIGHT_JS, [css_class, on])

    async def navigate(self, path: str) -> None:
        url = urljoin(self.base_url, path)
        logger.info(f"🌐 Navigating to: {url}")
        await self.page.goto(url)

    async def current_role(self) -> Optional[str]:
        return await self.page.evaluate("(key) => window.localStorage.getItem(key)", self.role_storage_key)

    def on_route_change(self, callback: Callable[[str], None]) -> None:
        # framenavigated also fires for history API and hash changes
        def on_frame_navigated(frame: Frame):
            if frame == self.page.main_frame:
                callback(frame.url)

        self.page.on("framenavigated", on_frame_navigated)


class BrowserSession:
    """Owns the Playwright driver, browser and page hosting the application."""

    def __init__(self, cfg: ServerConfig):
        self.cfg = cfg
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None

    @property
    def connected(self) -> bool:
        return self.page is not None and not self.page.is_closed()

    async def start(self) -> PlaywrightSurface:
        """Launch the browser and open the application."""
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(headless=self.cfg.headless)
        self.page = await self.browser.new_page()
        logger.info(f"🌐 Opening {self.cfg.app_url}")
        await self.page.goto(self.cfg.app_url)
        return PlaywrightSurface(self.page, self.cfg.app_url)

    async def close(self) -> None:
        try:
            if self.browser:
                await self.browser.close()
        except Exception as e:
            logger.error(f"⚠️ Error closing browser: {e}")
        finally:
            if self.playwright:
                await self.playwright.stop()
            self.browser = None
            self.page = None
            self.playwright = None
