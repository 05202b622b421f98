"""Pydantic Schemas Package.

This package contains the typed data shared across the exporter:
- Citation, LocalReference and CitationStyle
- Turn, Role and StrategyName
- Output option enums
"""

from pplx_export.schemas.citations import (
    CITATION_STYLE_DESCRIPTIONS,
    Citation,
    CitationStyle,
    LocalReference,
)
from pplx_export.schemas.conversation import Role, StrategyName, Turn
from pplx_export.schemas.options import Layout, OutputMethod, SpacingPolicy


__all__ = [
    "CITATION_STYLE_DESCRIPTIONS",
    "Citation",
    "CitationStyle",
    "Layout",
    "LocalReference",
    "OutputMethod",
    "Role",
    "SpacingPolicy",
    "StrategyName",
    "Turn",
]
