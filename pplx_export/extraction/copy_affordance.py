"""Copy-Affordance strategy: click the host's copy buttons and read the clipboard.

Each query and answer has a copy control that puts host-rendered Markdown
on the clipboard. The strategy scrolls the thread, triggers every visible
control once and collects the clipboard contents in document order.

Clipboard reads need page focus. When focus is lost the strategy pauses,
shows the focus prompt and resumes once focus returns; after a bounded
number of waits it moves on without that read.
"""

from __future__ import annotations

from pplx_export.browser.protocols import CopyControl, FocusPrompt, NullFocusPrompt, PageDriver
from pplx_export.citations.registry import CitationRegistry
from pplx_export.core.config import Settings
from pplx_export.core.constants import PAGE_DOWN_FACTOR, PRELOAD_MAX_TRIES, PRELOAD_STABLE_READS
from pplx_export.core.exceptions import (
    ClipboardAccessError,
    ExportError,
    FocusLostError,
    PageInteractionError,
)
from pplx_export.core.logging import get_logger
from pplx_export.extraction.base import blocked_navigation
from pplx_export.extraction.fingerprint import SeenContent
from pplx_export.rendering.lookup import SourceLookupTable
from pplx_export.rendering.markdown import MarkdownRenderer
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.conversation import Role, StrategyName, Turn
from pplx_export.schemas.options import SpacingPolicy


logger = get_logger(__name__)


class CopyAffordanceStrategy:
    """Harvests the conversation through the host's copy controls.

    Queries are kept verbatim; answers go through MarkdownRenderer.
    """

    name = StrategyName.COPY_AFFORDANCE

    def __init__(
        self,
        driver: PageDriver,
        settings: Settings,
        lookup: SourceLookupTable | None = None,
        spacing: SpacingPolicy = SpacingPolicy.STANDARD,
        focus_prompt: FocusPrompt | None = None,
    ) -> None:
        self.driver = driver
        self.settings = settings
        self.lookup = lookup
        self.spacing = spacing
        self.focus_prompt = focus_prompt or NullFocusPrompt()
        self._last_clipboard: str | None = None

    async def extract(self, style: CitationStyle, registry: CitationRegistry) -> list[Turn]:
        renderer = MarkdownRenderer(style, self.spacing, self.lookup)
        seen = SeenContent()
        handled: set[str] = set()
        turns: list[Turn] = []
        self._last_clipboard = None

        logger.info("Copy affordance started")
        try:
            async with blocked_navigation(self.driver):
                await self._preload()

                idle_at_bottom = 0
                for _ in range(self.settings.max_scroll_steps):
                    controls = [
                        c for c in await self.driver.query_copy_controls()
                        if c.control_id not in handled
                    ]
                    for control in controls:
                        handled.add(control.control_id)
                        turn = await self._harvest(control, renderer, registry)
                        if turn is not None and seen.add(turn.content, turn.role):
                            turns.append(turn)

                    state = await self.driver.scroll_state()
                    if controls:
                        idle_at_bottom = 0
                    elif state.at_bottom:
                        idle_at_bottom += 1
                        if idle_at_bottom >= self.settings.stable_bottom_steps:
                            break

                    await self.driver.page_down(PAGE_DOWN_FACTOR)
                    await self.driver.sleep(self.settings.scroll_delay_ms)
        except ExportError as e:
            logger.warning("Copy affordance stopped early", error=str(e), turns=len(turns))

        logger.info("Copy affordance finished", turns=len(turns), controls=len(handled))
        return turns

    async def _preload(self) -> None:
        """Scroll to the bottom until the height settles, then back to the top."""
        last_height: float | None = None
        stable = 0
        for _ in range(PRELOAD_MAX_TRIES):
            await self.driver.scroll_to_bottom()
            await self.driver.sleep(self.settings.scroll_delay_ms)
            height = (await self.driver.scroll_state()).scroll_height
            if height == last_height:
                stable += 1
                if stable >= PRELOAD_STABLE_READS:
                    break
            else:
                stable = 0
            last_height = height

        await self.driver.scroll_to_top()
        await self.driver.sleep(self.settings.settle_delay_ms)

    async def _harvest(
        self,
        control: CopyControl,
        renderer: MarkdownRenderer,
        registry: CitationRegistry,
    ) -> Turn | None:
        text = await self._copy(control)
        if text is None:
            return None
        if control.role is Role.USER:
            content = text.strip()
        else:
            content = renderer.render(text, registry)
        return Turn(role=control.role, content=content) if content else None

    # =========================================================================
    # Clipboard
    # =========================================================================

    async def _copy(self, control: CopyControl) -> str | None:
        """Trigger a control and read fresh clipboard text.

        Content identical to the previous read is stale and retried. A control
        that vanished in a re-render is skipped.
        """
        for attempt in range(1, self.settings.clipboard_retries + 1):
            try:
                await self.driver.trigger_control(control.control_id)
            except PageInteractionError as e:
                logger.debug("Copy control unavailable", control=control.control_id, error=str(e))
                return None
            await self.driver.sleep(self.settings.click_delay_ms)

            text = await self._read_clipboard()
            if text is None:
                return None
            if text.strip() and text != self._last_clipboard:
                self._last_clipboard = text
                return text
            logger.debug("Stale clipboard", control=control.control_id, attempt=attempt)

        logger.info("No fresh clipboard content", control=control.control_id)
        return None

    async def _read_clipboard(self) -> str | None:
        waits = 0
        while True:
            try:
                return await self.driver.read_clipboard()
            except FocusLostError:
                if waits >= self.settings.focus_retry_budget:
                    logger.warning("Page focus not regained, skipping read", waits=waits)
                    return None
                waits += 1
                await self._wait_for_focus()
            except ClipboardAccessError as e:
                logger.warning("Clipboard read denied", error=str(e))
                return None

    async def _wait_for_focus(self) -> bool:
        """Pause with the focus prompt shown until the page has focus again."""
        self.focus_prompt.show()
        try:
            try:
                await self.driver.request_focus()
            except PageInteractionError as e:
                logger.debug("Focus request failed", error=str(e))

            polls = max(1, self.settings.focus_timeout_ms // self.settings.focus_poll_ms)
            for _ in range(polls):
                if await self.driver.has_focus():
                    return True
                await self.driver.sleep(self.settings.focus_poll_ms)
            return False
        finally:
            self.focus_prompt.hide()


__all__ = [
    "CopyAffordanceStrategy",
]
