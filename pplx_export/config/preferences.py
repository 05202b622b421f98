"""Export preferences.

Read-only key → default lookup for the choices a user makes about the
exported document. Injected into the exporter as configuration; the core
never writes preferences back.

Environment Variables:
    PPLX_EXPORT_PREF_CITATION_STYLE=parenthesized
    PPLX_EXPORT_PREF_SPACING=standard
    PPLX_EXPORT_PREF_LAYOUT=full
    PPLX_EXPORT_PREF_STRATEGY_PRIORITY='["copy_affordance","direct_scan","export_capture"]'
    PPLX_EXPORT_PREF_OUTPUT_METHOD=download
    PPLX_EXPORT_PREF_INCLUDE_FRONTMATTER=true
    PPLX_EXPORT_PREF_TITLE_AS_H1=false
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.conversation import StrategyName
from pplx_export.schemas.options import Layout, OutputMethod, SpacingPolicy


DEFAULT_STRATEGY_PRIORITY: tuple[StrategyName, ...] = (
    StrategyName.COPY_AFFORDANCE,
    StrategyName.DIRECT_SCAN,
    StrategyName.EXPORT_CAPTURE,
)


class ExportPreferences(BaseSettings):
    """User preferences for one export.

    Attributes:
        citation_style: Rendering of resolved citations.
        spacing: Blank-line policy.
        layout: Full (labels and dividers) or concise.
        strategy_priority: Order in which extraction strategies are tried.
        output_method: Download to a file or copy to the clipboard.
        include_frontmatter: Prepend YAML metadata (title, date, source).
        title_as_h1: Prepend the conversation title as a level-1 heading.

    Example:
        >>> prefs = ExportPreferences()
        >>> prefs.citation_style
        <CitationStyle.PARENTHESIZED: 'parenthesized'>
    """

    model_config = SettingsConfigDict(
        env_prefix="PPLX_EXPORT_PREF_",
        case_sensitive=False,
        extra="ignore",
    )

    citation_style: CitationStyle = Field(
        default=CitationStyle.PARENTHESIZED,
        description="How citations are rendered",
    )
    spacing: SpacingPolicy = Field(
        default=SpacingPolicy.STANDARD,
        description="Blank-line policy for rendered turns",
    )
    layout: Layout = Field(default=Layout.FULL, description="Document layout")
    strategy_priority: list[StrategyName] = Field(
        default_factory=lambda: list(DEFAULT_STRATEGY_PRIORITY),
        description="Extraction strategies in the order they are tried",
    )
    output_method: OutputMethod = Field(
        default=OutputMethod.DOWNLOAD,
        description="Where the finished document goes",
    )
    include_frontmatter: bool = Field(
        default=True,
        description="Include YAML metadata at the top",
    )
    title_as_h1: bool = Field(
        default=False,
        description="Add the conversation title as a # heading",
    )

    @field_validator("strategy_priority")
    @classmethod
    def priority_is_permutation(cls, v: list[StrategyName]) -> list[StrategyName]:
        """Validate the priority names every strategy exactly once."""
        if sorted(v) != sorted(StrategyName):
            raise ValueError(
                "strategy_priority must list each of "
                f"{', '.join(s.value for s in StrategyName)} exactly once"
            )
        return v


@lru_cache
def get_preferences() -> ExportPreferences:
    """Get cached preferences instance.

    Returns:
        ExportPreferences loaded from the environment
    """
    return ExportPreferences()
