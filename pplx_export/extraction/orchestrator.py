"""Extraction Orchestrator.

Deterministic fallback chain over the configured strategy priority:

1. Reset the registry
2. Run the strategy
3. Accept at least one exchange (two turns), otherwise discard and move on

Strategies run strictly one after another. Running out of strategies is
an empty outcome here, not an exception; the exporter decides what that
means for the user.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from pplx_export.citations.registry import CitationRegistry
from pplx_export.core.constants import MIN_SUFFICIENT_TURNS
from pplx_export.core.exceptions import ExportError, StrategyInsufficientError
from pplx_export.core.logging import get_logger, strategy_context
from pplx_export.extraction.base import ExtractionStrategy
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.conversation import StrategyName, Turn


logger = get_logger(__name__)


@dataclass
class ExtractionOutcome:
    """Result of the fallback chain.

    Attributes:
        turns: Accepted turns, empty when every strategy came up short
        strategy: The strategy whose result was accepted
        attempted: Strategies tried, in order
    """

    turns: list[Turn] = field(default_factory=list)
    strategy: StrategyName | None = None
    attempted: list[StrategyName] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.turns)


def ensure_sufficient(strategy: StrategyName, turns: Sequence[Turn]) -> None:
    """Raise StrategyInsufficientError when the turns hold no full exchange."""
    if len(turns) < MIN_SUFFICIENT_TURNS:
        raise StrategyInsufficientError(strategy.value, len(turns), MIN_SUFFICIENT_TURNS)


class ExtractionOrchestrator:
    """Runs strategies in priority order until one yields a usable result.

    Example:
        >>> orchestrator = ExtractionOrchestrator(strategies, priority)
        >>> outcome = await orchestrator.run(CitationStyle.ENDNOTES, registry)
        >>> outcome.strategy
        <StrategyName.DIRECT_SCAN: 'direct_scan'>
    """

    def __init__(
        self,
        strategies: Mapping[StrategyName, ExtractionStrategy],
        priority: Sequence[StrategyName],
    ) -> None:
        self.strategies = dict(strategies)
        self.priority = list(priority)

    async def run(self, style: CitationStyle, registry: CitationRegistry) -> ExtractionOutcome:
        """Try each configured strategy once.

        Args:
            style: Citation style to render with
            registry: Registry shared by all attempts, reset before each

        Returns:
            The first sufficient result, or an empty outcome
        """
        attempted: list[StrategyName] = []

        for name in self.priority:
            strategy = self.strategies.get(name)
            if strategy is None:
                logger.warning("Strategy not configured, skipping", strategy=name.value)
                continue

            attempted.append(name)
            registry.reset()
            logger.info("Extraction attempt", strategy=name.value, attempt=len(attempted))

            try:
                with strategy_context(name.value):
                    turns = await strategy.extract(style, registry)
                ensure_sufficient(name, turns)
            except StrategyInsufficientError as e:
                logger.info(
                    "Falling back to next strategy",
                    strategy=name.value,
                    turns=e.turn_count,
                )
                continue
            except ExportError as e:
                logger.warning("Strategy failed, falling back", strategy=name.value, error=str(e))
                continue

            logger.info(
                "Extraction accepted",
                strategy=name.value,
                turns=len(turns),
                citations=len(registry),
            )
            return ExtractionOutcome(turns=list(turns), strategy=name, attempted=attempted)

        registry.reset()
        logger.warning("No strategy produced a conversation", attempted=[s.value for s in attempted])
        return ExtractionOutcome(attempted=attempted)


__all__ = [
    "ExtractionOrchestrator",
    "ExtractionOutcome",
    "ensure_sufficient",
]
