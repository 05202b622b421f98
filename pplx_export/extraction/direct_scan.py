"""Direct-Scan strategy: read mounted turn blocks while scrolling.

The thread virtualizes its content, so blocks are only mounted near the
viewport. The scan walks the conversation's scroll container from top to
bottom, rendering every block it has not seen before.
"""

from __future__ import annotations

from pplx_export.browser.protocols import CitationUrlResolver, PageDriver
from pplx_export.citations.registry import CitationRegistry
from pplx_export.core.config import Settings
from pplx_export.core.constants import PAGE_DOWN_FACTOR
from pplx_export.core.exceptions import ExportError
from pplx_export.core.logging import get_logger
from pplx_export.extraction.base import blocked_navigation
from pplx_export.extraction.fingerprint import SeenContent
from pplx_export.rendering.lookup import SourceLookupTable
from pplx_export.rendering.markup import MarkupRenderer
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.conversation import Role, StrategyName, Turn
from pplx_export.schemas.options import SpacingPolicy


logger = get_logger(__name__)


class DirectScanStrategy:
    """Scrolls the thread and renders mounted blocks through MarkupRenderer.

    Attributes:
        name: Strategy identifier
        driver: Live page
        settings: Timings and loop limits
        resolver: Pins host-internal citation URLs before each scan
        lookup: Shared aggregate-marker table
        spacing: Blank-line policy for rendered turns
    """

    name = StrategyName.DIRECT_SCAN

    def __init__(
        self,
        driver: PageDriver,
        settings: Settings,
        resolver: CitationUrlResolver,
        lookup: SourceLookupTable | None = None,
        spacing: SpacingPolicy = SpacingPolicy.STANDARD,
    ) -> None:
        self.driver = driver
        self.settings = settings
        self.resolver = resolver
        self.lookup = lookup
        self.spacing = spacing

    async def extract(self, style: CitationStyle, registry: CitationRegistry) -> list[Turn]:
        renderer = MarkupRenderer(style, self.spacing, self.lookup)
        seen = SeenContent()
        turns: list[Turn] = []
        steps = 0

        logger.info("Direct scan started")
        try:
            async with blocked_navigation(self.driver):
                await self.driver.scroll_to_top()
                await self.driver.sleep(self.settings.settle_delay_ms)

                idle_at_bottom = 0
                for steps in range(1, self.settings.max_scroll_steps + 1):
                    added = await self._scan(renderer, registry, seen, turns)
                    if not added and self.settings.expander_limit:
                        clicked = await self.driver.click_expanders(self.settings.expander_limit)
                        if clicked:
                            await self.driver.sleep(self.settings.click_delay_ms)
                            added = await self._scan(renderer, registry, seen, turns)

                    state = await self.driver.scroll_state()
                    if added:
                        idle_at_bottom = 0
                    elif state.at_bottom:
                        idle_at_bottom += 1
                        if idle_at_bottom >= self.settings.stable_bottom_steps:
                            break

                    await self.driver.page_down(PAGE_DOWN_FACTOR)
                    await self.driver.sleep(self.settings.scroll_delay_ms)
        except ExportError as e:
            logger.warning("Direct scan stopped early", error=str(e), turns=len(turns))

        logger.info("Direct scan finished", turns=len(turns), steps=steps)
        return turns

    async def _scan(
        self,
        renderer: MarkupRenderer,
        registry: CitationRegistry,
        seen: SeenContent,
        turns: list[Turn],
    ) -> int:
        """Collect unseen blocks at the current position; returns how many."""
        await self.resolver.pin_citation_urls()
        added = 0
        for block in await self.driver.query_turn_blocks():
            if block.role is Role.USER:
                content = block.markup.strip()
            else:
                content = renderer.render(block.markup, registry)
            if not content or not seen.add(content, block.role):
                continue
            turns.append(Turn(role=block.role, content=content))
            added += 1
        return added


__all__ = [
    "DirectScanStrategy",
]
