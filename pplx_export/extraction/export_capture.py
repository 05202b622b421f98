"""Export-Interception strategy: capture the host's own Markdown export.

The exported file holds the whole thread at once, so nothing depends on
scrolling. Sections are separated by horizontal rules; each starts with
the query as a level-1 heading followed by the answer and its footnote
definitions. Research reports export as a single document instead.
"""

from __future__ import annotations

import re

from pplx_export.browser.protocols import PageDriver
from pplx_export.citations.registry import CitationRegistry
from pplx_export.core.config import Settings
from pplx_export.core.exceptions import ExportError
from pplx_export.core.logging import get_logger
from pplx_export.extraction.capture import CaptureBridge
from pplx_export.rendering.lookup import SourceLookupTable
from pplx_export.rendering.markdown import MarkdownRenderer
from pplx_export.rendering.structure import protect_blocks, restore_blocks
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.conversation import Role, StrategyName, Turn
from pplx_export.schemas.options import SpacingPolicy


logger = get_logger(__name__)

_LOGO_LINE = re.compile(r"^[ \t]*<img\b[^>]*>[ \t]*$", re.MULTILINE | re.IGNORECASE)
_DIVIDER_LINE = re.compile(r"^[ \t]*(?:<div[^>]*>)?[ \t]*⁂[ \t]*(?:</div>)?[ \t]*$", re.MULTILINE)
_RULE_LINE = re.compile(r"^[ \t]{0,3}(?:-[ \t]*){3,}$|^[ \t]{0,3}(?:\*[ \t]*){3,}$|^[ \t]{0,3}(?:_[ \t]*){3,}$")
_QUERY_HEADING = re.compile(r"^#[ \t]+(?P<query>.+?)[ \t#]*$")


def clean_export(markdown: str) -> str:
    """Remove the export's logo image and ⁂ dividers."""
    text = _LOGO_LINE.sub("", markdown)
    return _DIVIDER_LINE.sub("", text).strip()


def split_export(markdown: str) -> list[tuple[str | None, str]]:
    """Split an exported thread into (query, answer) sections.

    Sections break on horizontal rules outside code fences. A section that
    does not open with a "# query" heading continues the previous answer,
    so rules inside an answer survive.

    Args:
        markdown: Cleaned export

    Returns:
        (query, answer body) pairs; the query is None when the export opens
        without one
    """
    protected, blocks = protect_blocks(markdown, tables=False)
    chunks: list[list[str]] = [[]]
    for line in protected.split("\n"):
        if _RULE_LINE.match(line):
            chunks.append([])
        else:
            chunks[-1].append(line)

    sections: list[tuple[str | None, str]] = []
    for chunk in chunks:
        text = restore_blocks("\n".join(chunk), blocks).strip()
        if not text:
            continue
        first, _, rest = text.partition("\n")
        heading = _QUERY_HEADING.match(first)
        if heading:
            sections.append((heading.group("query").strip(), rest.strip()))
        elif sections:
            query, body = sections[-1]
            sections[-1] = (query, f"{body}\n\n---\n\n{text}".strip())
        else:
            sections.append((None, text))
    return sections


class ExportCaptureStrategy:
    """Triggers the host export, intercepts the file and renders it.

    Every run of adjacent markers is recorded into the shared lookup table,
    so a later markup rendering can expand "label+k" markers.
    """

    name = StrategyName.EXPORT_CAPTURE

    def __init__(
        self,
        driver: PageDriver,
        settings: Settings,
        lookup: SourceLookupTable | None = None,
        spacing: SpacingPolicy = SpacingPolicy.STANDARD,
    ) -> None:
        self.driver = driver
        self.settings = settings
        self.lookup = lookup
        self.spacing = spacing

    async def extract(self, style: CitationStyle, registry: CitationRegistry) -> list[Turn]:
        renderer = MarkdownRenderer(style, self.spacing, self.lookup, record_runs=True)
        logger.info("Export capture started")
        try:
            deep_research = await self.driver.is_deep_research()
            if deep_research and not await self.driver.open_research_panel():
                logger.info("Research panel not found, using thread export")
                deep_research = False

            async with CaptureBridge(
                self.driver,
                timeout_ms=self.settings.capture_timeout_ms,
                poll_ms=self.settings.capture_poll_ms,
            ) as bridge:
                if not await self.driver.trigger_export(deep_research=deep_research):
                    logger.info("Export action not available")
                    return []
                payload = await bridge.await_capture()

            if deep_research:
                turns = await self._research_turns(payload, renderer, registry)
            else:
                turns = self._thread_turns(payload, renderer, registry)
        except ExportError as e:
            logger.warning("Export capture failed", error=str(e))
            return []

        logger.info("Export capture finished", turns=len(turns), research=deep_research)
        return turns

    def _thread_turns(
        self,
        payload: str,
        renderer: MarkdownRenderer,
        registry: CitationRegistry,
    ) -> list[Turn]:
        turns: list[Turn] = []
        for query, body in split_export(clean_export(payload)):
            if query:
                turns.append(Turn.user(query))
            answer = renderer.render(body, registry)
            if answer:
                turns.append(Turn.assistant(answer))
        return turns

    async def _research_turns(
        self,
        payload: str,
        renderer: MarkdownRenderer,
        registry: CitationRegistry,
    ) -> list[Turn]:
        """The research query followed by the whole report."""
        report = clean_export(payload)
        query = None
        for block in await self.driver.query_turn_blocks():
            if block.role is Role.USER and block.markup.strip():
                query = block.markup.strip()
                break
        if query is None:
            heading = _QUERY_HEADING.match(report.partition("\n")[0])
            query = heading.group("query").strip() if heading else None

        turns: list[Turn] = []
        if query:
            turns.append(Turn.user(query))
        answer = renderer.render(report, registry)
        if answer:
            turns.append(Turn.assistant(answer))
        return turns


__all__ = [
    "ExportCaptureStrategy",
    "clean_export",
    "split_export",
]
