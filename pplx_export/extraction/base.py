"""Extraction strategy contract and shared helpers.

Strategies are selected by an ordered list in the orchestrator, not by
inheritance: each one only has to satisfy ExtractionStrategy.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol, runtime_checkable

from pplx_export.browser.protocols import PageDriver
from pplx_export.citations.registry import CitationRegistry
from pplx_export.core.exceptions import PageInteractionError
from pplx_export.core.logging import get_logger
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.conversation import StrategyName, Turn


logger = get_logger(__name__)


@runtime_checkable
class ExtractionStrategy(Protocol):
    """Protocol for one method of harvesting the conversation.

    Implementations never raise: failures are logged and surface as a short
    or empty result, which the orchestrator treats as insufficient.
    """

    name: StrategyName

    async def extract(self, style: CitationStyle, registry: CitationRegistry) -> list[Turn]:
        """Harvest the conversation in document order.

        Args:
            style: Citation style to render markers in
            registry: Freshly reset registry of this attempt

        Returns:
            Rendered turns, possibly empty
        """
        ...


@asynccontextmanager
async def blocked_navigation(driver: PageDriver) -> AsyncIterator[None]:
    """Suppress external navigation in the page for the duration of the block.

    Scrolling and clicking through a thread can land on citation links; the
    blocker keeps the page in place. Removal is best effort.
    """
    await driver.install_nav_blocker()
    try:
        yield
    finally:
        try:
            await driver.remove_nav_blocker()
        except PageInteractionError as e:
            logger.warning("Could not remove navigation blocker", error=str(e))


__all__ = [
    "ExtractionStrategy",
    "blocked_navigation",
]
