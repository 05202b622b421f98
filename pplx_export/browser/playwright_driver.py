"""Playwright-backed page driver.

Implements the PageDriver and CitationUrlResolver protocols against a live
Perplexity thread through Playwright's async API. All page work runs as
page-context JavaScript (see scripts.py); Playwright errors are translated
to PageInteractionError at this boundary.

BrowserSession owns the Playwright lifecycle: it attaches to a running
Chromium over CDP or launches one, and yields a driver for the thread page.
"""

from __future__ import annotations

import asyncio
from types import TracebackType
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from pplx_export.browser import scripts
from pplx_export.browser.protocols import CopyControl, ScrollState, TurnBlock
from pplx_export.core.config import Settings
from pplx_export.core.constants import (
    CAPTURE_GLOBAL,
    CONTROL_ID_ATTR,
    EXPANDER_PATTERN,
    NAV_BLOCKER_GLOBAL,
    PINNED_URLS_ATTR,
    Selectors,
)
from pplx_export.core.exceptions import (
    ClipboardAccessError,
    FocusLostError,
    PageInteractionError,
)
from pplx_export.core.logging import get_logger
from pplx_export.schemas.conversation import Role


logger = get_logger(__name__)

_CONTROL_COUNTER = "__pplxExportControlCounter"
_MENU_DELAY_MS = 250
_HOST_MARKER = "perplexity.ai"


class PlaywrightPageDriver:
    """PageDriver for a Playwright Page showing a Perplexity thread.

    Attributes:
        page: The Playwright page
        settings: Timing configuration

    Example:
        >>> async with BrowserSession(settings) as driver:
        ...     title = await driver.page_title()
    """

    def __init__(self, page: Page, settings: Settings) -> None:
        self.page = page
        self.settings = settings

    async def _evaluate(self, action: str, script: str, arg: Any = None) -> Any:
        """Run a page script, translating Playwright failures."""
        try:
            return await self.page.evaluate(script, arg)
        except PlaywrightError as e:
            raise PageInteractionError(f"Page script failed: {e.message}", action, e) from e

    # =========================================================================
    # Focus
    # =========================================================================

    async def has_focus(self) -> bool:
        return bool(await self._evaluate("has_focus", scripts.HAS_FOCUS))

    async def request_focus(self) -> None:
        try:
            await self.page.bring_to_front()
            await self.page.focus("body")
        except PlaywrightError as e:
            raise PageInteractionError("Could not focus page", "request_focus", e) from e

    # =========================================================================
    # Scrolling
    # =========================================================================

    async def scroll_to_top(self) -> None:
        await self._evaluate(
            "scroll_to_top",
            scripts.SCROLL_TO,
            {"container": Selectors.THREAD_CONTAINER, "edge": "top"},
        )

    async def scroll_to_bottom(self) -> None:
        await self._evaluate(
            "scroll_to_bottom",
            scripts.SCROLL_TO,
            {"container": Selectors.THREAD_CONTAINER, "edge": "bottom"},
        )

    async def page_down(self, factor: float = 0.85) -> None:
        await self._evaluate(
            "page_down",
            scripts.PAGE_DOWN,
            {"container": Selectors.THREAD_CONTAINER, "factor": factor},
        )

    async def scroll_state(self) -> ScrollState:
        raw = await self._evaluate(
            "scroll_state",
            scripts.SCROLL_STATE,
            {"container": Selectors.THREAD_CONTAINER},
        )
        return ScrollState(
            top=float(raw["top"]),
            client_height=float(raw["client"]),
            scroll_height=float(raw["height"]),
        )

    # =========================================================================
    # Content
    # =========================================================================

    async def query_turn_blocks(self) -> list[TurnBlock]:
        raw = await self._evaluate(
            "query_turn_blocks",
            scripts.COLLECT_TURN_BLOCKS,
            {"user": Selectors.USER_BLOCK, "assistant": Selectors.ASSISTANT_BLOCK},
        )
        return [
            TurnBlock(role=Role(item["role"]), markup=item["markup"], top=float(item["top"]))
            for item in raw or []
        ]

    async def pin_citation_urls(self) -> int:
        return int(
            await self._evaluate(
                "pin_citation_urls",
                scripts.PIN_CITATION_URLS,
                {"citation": Selectors.CITATION, "attr": PINNED_URLS_ATTR},
            )
            or 0
        )

    async def click_expanders(self, limit: int) -> int:
        return int(
            await self._evaluate(
                "click_expanders",
                scripts.CLICK_EXPANDERS,
                {"pattern": EXPANDER_PATTERN, "limit": limit},
            )
            or 0
        )

    async def is_deep_research(self) -> bool:
        return bool(
            await self._evaluate(
                "is_deep_research",
                scripts.IS_DEEP_RESEARCH,
                {"panel": Selectors.RESEARCH_PANEL},
            )
        )

    async def open_research_panel(self) -> bool:
        return bool(
            await self._evaluate(
                "open_research_panel",
                scripts.OPEN_RESEARCH_PANEL,
                {"panel": Selectors.RESEARCH_PANEL, "delay": _MENU_DELAY_MS},
            )
        )

    # =========================================================================
    # Copy controls and clipboard
    # =========================================================================

    async def query_copy_controls(self) -> list[CopyControl]:
        raw = await self._evaluate(
            "query_copy_controls",
            scripts.COLLECT_COPY_CONTROLS,
            {
                "query": Selectors.QUERY_COPY,
                "response": Selectors.RESPONSE_COPY,
                "attr": CONTROL_ID_ATTR,
                "counter": _CONTROL_COUNTER,
            },
        )
        return [
            CopyControl(control_id=item["id"], role=Role(item["role"]), top=float(item["top"]))
            for item in raw or []
        ]

    async def trigger_control(self, control_id: str) -> None:
        found = await self._evaluate(
            "trigger_control",
            scripts.TRIGGER_CONTROL,
            {"attr": CONTROL_ID_ATTR, "id": control_id},
        )
        if not found:
            raise PageInteractionError(f"Copy control {control_id} is gone", "trigger_control")

    async def read_clipboard(self) -> str:
        result = await self._evaluate("read_clipboard", scripts.READ_CLIPBOARD)
        if result.get("ok"):
            return result.get("text") or ""

        name = result.get("name", "")
        message = result.get("message", "")
        if name == "NotFocused" or "focus" in message.lower():
            raise FocusLostError(f"Clipboard read needs page focus: {message}")
        raise ClipboardAccessError(f"Clipboard read denied ({name}): {message}")

    # =========================================================================
    # Export capture
    # =========================================================================

    async def install_capture_patch(self) -> None:
        await self._evaluate("install_capture_patch", scripts.INSTALL_CAPTURE, {"key": CAPTURE_GLOBAL})

    async def take_captured_payloads(self) -> list[str]:
        raw = await self._evaluate("take_captured_payloads", scripts.TAKE_CAPTURED, {"key": CAPTURE_GLOBAL})
        return [str(item) for item in raw or []]

    async def remove_capture_patch(self) -> None:
        await self._evaluate("remove_capture_patch", scripts.REMOVE_CAPTURE, {"key": CAPTURE_GLOBAL})

    async def trigger_export(self, deep_research: bool = False) -> bool:
        return bool(
            await self._evaluate(
                "trigger_export",
                scripts.TRIGGER_EXPORT,
                {"deep": deep_research, "panel": Selectors.RESEARCH_PANEL, "delay": _MENU_DELAY_MS},
            )
        )

    # =========================================================================
    # Navigation blocker
    # =========================================================================

    async def install_nav_blocker(self) -> None:
        await self._evaluate("install_nav_blocker", scripts.INSTALL_NAV_BLOCKER, {"key": NAV_BLOCKER_GLOBAL})

    async def remove_nav_blocker(self) -> None:
        await self._evaluate("remove_nav_blocker", scripts.REMOVE_NAV_BLOCKER, {"key": NAV_BLOCKER_GLOBAL})

    # =========================================================================
    # Page info
    # =========================================================================

    async def page_title(self) -> str:
        try:
            return await self.page.title()
        except PlaywrightError as e:
            raise PageInteractionError("Could not read page title", "page_title", e) from e

    async def page_url(self) -> str:
        return self.page.url

    async def sleep(self, ms: int) -> None:
        if ms > 0:
            await asyncio.sleep(ms / 1000)


class ReactPropsCitationResolver:
    """CitationUrlResolver reading URLs out of React component props.

    Best effort: a failed page script pins nothing.
    """

    def __init__(self, driver: PlaywrightPageDriver) -> None:
        self.driver = driver

    async def pin_citation_urls(self) -> int:
        try:
            return await self.driver.pin_citation_urls()
        except PageInteractionError as e:
            logger.debug("Citation URL pinning failed", error=str(e))
            return 0


# =============================================================================
# Browser session
# =============================================================================

class BrowserSession:
    """Async context manager yielding a driver for the Perplexity thread.

    Attaches over CDP when settings.cdp_endpoint is set (the user's own
    logged-in browser), otherwise launches Chromium and opens the URL.
    """

    def __init__(self, settings: Settings, url: str | None = None) -> None:
        self.settings = settings
        self.url = url
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._owns_browser = False

    async def __aenter__(self) -> PlaywrightPageDriver:
        self._playwright = await async_playwright().start()
        try:
            page = await self._open_page(self._playwright)
        except PlaywrightError as e:
            await self._close()
            raise PageInteractionError(f"Could not open browser: {e.message}", "open_browser", e) from e
        except Exception:
            await self._close()
            raise
        return PlaywrightPageDriver(page, self.settings)

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._close()

    async def _open_page(self, playwright: Playwright) -> Page:
        target = self.url
        if self.settings.cdp_endpoint:
            self._browser = await playwright.chromium.connect_over_cdp(self.settings.cdp_endpoint)
            context = self._browser.contexts[0] if self._browser.contexts else await self._browser.new_context()
            page = self._find_thread_page(context)
            if page is None:
                page = await context.new_page()
                target = target or self.settings.start_url
        else:
            self._browser = await playwright.chromium.launch(headless=self.settings.headless)
            self._owns_browser = True
            context = await self._browser.new_context()
            page = await context.new_page()
            target = target or self.settings.start_url

        try:
            await context.grant_permissions(["clipboard-read", "clipboard-write"])
        except PlaywrightError:
            logger.debug("Clipboard permissions not granted by browser")

        if target and not page.url.startswith(target):
            await page.goto(target, wait_until="domcontentloaded")
        logger.info("Browser page ready", url=page.url, attached=not self._owns_browser)
        return page

    def _find_thread_page(self, context: BrowserContext) -> Page | None:
        for page in context.pages:
            if self.url and page.url.startswith(self.url):
                return page
        for page in context.pages:
            if _HOST_MARKER in page.url:
                return page
        return None

    async def _close(self) -> None:
        if self._browser is not None and self._owns_browser:
            await self._browser.close()
        self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None


__all__ = [
    "BrowserSession",
    "PlaywrightPageDriver",
    "ReactPropsCitationResolver",
]
