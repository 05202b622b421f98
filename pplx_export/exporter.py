"""Conversation Exporter.

Top-level entry point: wires the strategies to the live page, runs the
fallback chain and assembles the document.

Flow:
    ┌─────────────┐    ┌──────────────┐    ┌───────────────────┐
    │ PageDriver  │───▶│ Orchestrator │───▶│ DocumentAssembler │──▶ Markdown
    └─────────────┘    └──────────────┘    └───────────────────┘
                        copy_affordance
                        direct_scan
                        export_capture
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from pplx_export.browser.protocols import CitationUrlResolver, FocusPrompt, PageDriver
from pplx_export.citations.registry import CitationRegistry
from pplx_export.config.preferences import ExportPreferences
from pplx_export.core.config import Settings
from pplx_export.core.exceptions import AllStrategiesExhaustedError
from pplx_export.core.logging import get_logger
from pplx_export.document.assembler import DocumentAssembler, clean_title, filename_for
from pplx_export.extraction.base import ExtractionStrategy
from pplx_export.extraction.copy_affordance import CopyAffordanceStrategy
from pplx_export.extraction.direct_scan import DirectScanStrategy
from pplx_export.extraction.export_capture import ExportCaptureStrategy
from pplx_export.extraction.orchestrator import ExtractionOrchestrator
from pplx_export.rendering.lookup import SourceLookupTable
from pplx_export.schemas.conversation import StrategyName


logger = get_logger(__name__)


@dataclass(frozen=True)
class ExportResult:
    """A finished export.

    Attributes:
        markdown: The complete document
        title: Conversation title
        filename: Suggested file name
        strategy: Strategy whose result was used
        turn_count: Number of turns in the document
        citation_count: Number of distinct sources cited
    """

    markdown: str
    title: str
    filename: str
    strategy: StrategyName
    turn_count: int
    citation_count: int


class _PassiveResolver:
    """Resolver used when the driver cannot pin URLs itself."""

    async def pin_citation_urls(self) -> int:
        return 0


def build_strategies(
    driver: PageDriver,
    settings: Settings,
    preferences: ExportPreferences,
    lookup: SourceLookupTable,
    resolver: CitationUrlResolver | None = None,
    focus_prompt: FocusPrompt | None = None,
) -> dict[StrategyName, ExtractionStrategy]:
    """The three strategies, sharing one page, lookup table and spacing policy."""
    return {
        StrategyName.DIRECT_SCAN: DirectScanStrategy(
            driver,
            settings,
            resolver or _PassiveResolver(),
            lookup=lookup,
            spacing=preferences.spacing,
        ),
        StrategyName.EXPORT_CAPTURE: ExportCaptureStrategy(
            driver,
            settings,
            lookup=lookup,
            spacing=preferences.spacing,
        ),
        StrategyName.COPY_AFFORDANCE: CopyAffordanceStrategy(
            driver,
            settings,
            lookup=lookup,
            spacing=preferences.spacing,
            focus_prompt=focus_prompt,
        ),
    }


class ConversationExporter:
    """Exports the conversation shown by a PageDriver.

    Example:
        >>> exporter = ConversationExporter(driver, settings, preferences)
        >>> result = await exporter.export()
        >>> result.filename
        'what is rust.md'
    """

    def __init__(
        self,
        driver: PageDriver,
        settings: Settings,
        preferences: ExportPreferences,
        resolver: CitationUrlResolver | None = None,
        focus_prompt: FocusPrompt | None = None,
        strategies: Mapping[StrategyName, ExtractionStrategy] | None = None,
    ) -> None:
        self.driver = driver
        self.settings = settings
        self.preferences = preferences
        self.lookup = SourceLookupTable()
        self.strategies = dict(strategies) if strategies is not None else build_strategies(
            driver,
            settings,
            preferences,
            self.lookup,
            resolver=resolver,
            focus_prompt=focus_prompt,
        )

    async def export(self) -> ExportResult:
        """Run the fallback chain and assemble the document.

        Returns:
            The finished export

        Raises:
            AllStrategiesExhaustedError: If no strategy found a conversation;
                no partial document is produced
        """
        registry = CitationRegistry()
        orchestrator = ExtractionOrchestrator(self.strategies, self.preferences.strategy_priority)
        outcome = await orchestrator.run(self.preferences.citation_style, registry)
        if not outcome.found or outcome.strategy is None:
            raise AllStrategiesExhaustedError([s.value for s in outcome.attempted])

        title = clean_title(await self.driver.page_title())
        source_url = await self.driver.page_url()
        markdown = DocumentAssembler(self.preferences).assemble(
            outcome.turns,
            registry,
            title=title,
            source_url=source_url,
        )

        logger.info(
            "Export complete",
            strategy=outcome.strategy.value,
            turns=len(outcome.turns),
            citations=len(registry),
        )
        return ExportResult(
            markdown=markdown,
            title=title,
            filename=filename_for(title),
            strategy=outcome.strategy,
            turn_count=len(outcome.turns),
            citation_count=len(registry),
        )


__all__ = [
    "ConversationExporter",
    "ExportResult",
    "build_strategies",
]
