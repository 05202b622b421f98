"""Markdown Rendering Package.

This package turns harvested turn content into Markdown:
- MarkupRenderer for the host's structured answer markup
- MarkdownRenderer for Markdown the host already produced (copy, export)
- SourceLookupTable for aggregate citation markers
- Structural passes shared by both (lists, emphasis, spacing)
"""

from pplx_export.rendering.lookup import SourceLookupTable, aggregate_label
from pplx_export.rendering.markdown import MarkdownRenderer, parse_reference_list
from pplx_export.rendering.markup import MarkupRenderer
from pplx_export.rendering.structure import (
    apply_spacing,
    reindent_list_continuations,
    repair_citation_emphasis,
)


__all__ = [
    "MarkdownRenderer",
    "MarkupRenderer",
    "SourceLookupTable",
    "aggregate_label",
    "apply_spacing",
    "parse_reference_list",
    "reindent_list_continuations",
    "repair_citation_emphasis",
]
