"""Citation schemas.

Models:
- CitationStyle: the six text renderings a resolved citation can take
- Citation: one registered source with its global sequence number
- LocalReference: a per-turn marker-to-URL mapping found before resolution
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class CitationStyle(str, Enum):
    """How resolved citations are written into the document."""

    ENDNOTES = "endnotes"            # [1] in text, sources listed at the end
    FOOTNOTES = "footnotes"          # [^1] in text, footnote definitions at the end
    INLINE = "inline"                # [1](url)
    PARENTHESIZED = "parenthesized"  # ([1](url))
    NAMED = "named"                  # ([wikipedia](url))
    NONE = "none"                    # citations removed

    @property
    def needs_index(self) -> bool:
        """Whether the assembler must append a citation index."""
        return self in (CitationStyle.ENDNOTES, CitationStyle.FOOTNOTES)


CITATION_STYLE_DESCRIPTIONS: dict[CitationStyle, str] = {
    CitationStyle.ENDNOTES: "[1] in text with sources listed at the end",
    CitationStyle.FOOTNOTES: "[^1] in text with footnote definitions at the end",
    CitationStyle.INLINE: "[1](url) - Clean inline citations",
    CitationStyle.PARENTHESIZED: "([1](url)) - Inline citations in parentheses",
    CitationStyle.NAMED: "([wikipedia](url)) - Uses domain names",
    CitationStyle.NONE: "Remove all citations from the text",
}


# =============================================================================
# Models
# =============================================================================

class Citation(BaseModel):
    """A source registered in the global citation registry.

    Attributes:
        sequence_number: Global number, dense from 1 in discovery order
        canonical_url: Fragment-stripped URL, the identity key
        display_url: URL as first seen, used in links and the index
        source_label: Visible label of the marker that introduced it
    """

    model_config = ConfigDict(frozen=True)

    sequence_number: int = Field(..., ge=1)
    canonical_url: str
    display_url: str
    source_label: str | None = None


class LocalReference(BaseModel):
    """Marker key to URL mapping local to one turn.

    Example:
        >>> LocalReference(local_key="1_2", url="https://b.example/y")
        LocalReference(local_key='1_2', url='https://b.example/y')
    """

    model_config = ConfigDict(frozen=True)

    local_key: str
    url: str
