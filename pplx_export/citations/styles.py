"""Citation style rendering.

Renders resolved citations in one of six styles:
- Endnotes:      [g]            run: [g1][g2]
- Footnotes:     [^g]           run: [^g1][^g2]
- Inline:        [g](url)       run: [g1](u1)[g2](u2)
- Parenthesized: ([g](url))     run: ([g1](u1)) ([g2](u2))
- Named:         ([domain](url)) run: space-joined
- None:          empty

The index helpers produce the trailing list the assembler appends for the
Endnotes and Footnotes styles.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from pplx_export.citations.urls import extract_domain_name
from pplx_export.schemas.citations import Citation, CitationStyle


SOURCES_HEADING = "### Sources"


@dataclass(frozen=True)
class ResolvedCitation:
    """A marker after global resolution: its number and the URL it links to."""

    number: int
    url: str


def _linked(text: str, url: str) -> str:
    return f"[{text}]({url})" if url else f"[{text}]"


def render_citation(citation: ResolvedCitation, style: CitationStyle) -> str:
    """Render one resolved citation."""
    return render_citation_run([citation], style)


def render_citation_run(
    citations: Sequence[ResolvedCitation],
    style: CitationStyle,
) -> str:
    """Render a run of adjacent citations.

    Args:
        citations: Resolved citations in the order their markers appeared
        style: Target citation style

    Returns:
        Markdown for the whole run, empty for the None style
    """
    if not citations or style is CitationStyle.NONE:
        return ""
    if style is CitationStyle.ENDNOTES:
        return "".join(f"[{c.number}]" for c in citations)
    if style is CitationStyle.FOOTNOTES:
        return "".join(f"[^{c.number}]" for c in citations)
    if style is CitationStyle.INLINE:
        return "".join(_linked(str(c.number), c.url) for c in citations)
    if style is CitationStyle.PARENTHESIZED:
        return " ".join(f"({_linked(str(c.number), c.url)})" for c in citations)
    # Named
    return " ".join(
        f"({_linked(extract_domain_name(c.url) or 'source', c.url)})"
        for c in citations
    )


def render_index_entry(citation: Citation, style: CitationStyle) -> str:
    """One citation index line for the Endnotes/Footnotes styles."""
    if style is CitationStyle.FOOTNOTES:
        return f"[^{citation.sequence_number}]: {citation.display_url}"
    return f"[{citation.sequence_number}] {citation.display_url}"


def render_index(citations: Iterable[Citation], style: CitationStyle) -> str:
    """Citation index block, or an empty string when the style has none.

    Args:
        citations: Citations in first-registration order
        style: Active citation style

    Returns:
        Markdown block to append after the conversation
    """
    if not style.needs_index:
        return ""
    entries = [render_index_entry(c, style) for c in citations]
    if not entries:
        return ""
    if style is CitationStyle.ENDNOTES:
        return SOURCES_HEADING + "\n\n" + "\n".join(entries)
    return "\n".join(entries)


__all__ = [
    "SOURCES_HEADING",
    "ResolvedCitation",
    "render_citation",
    "render_citation_run",
    "render_index",
    "render_index_entry",
]
