"""Citation Management Package.

This package handles global citation numbering and rendering:
- CitationRegistry for deduplicating and numbering sources per attempt
- Style rendering for the six citation styles
- URL canonicalization and domain labels

Every citation marker in the exported document resolves through one
registry, so the same source carries the same number in every turn.
"""

from pplx_export.citations.registry import CitationRegistry
from pplx_export.citations.styles import (
    ResolvedCitation,
    render_citation_run,
    render_index,
)
from pplx_export.citations.urls import canonicalize_url, extract_domain_name


__all__ = [
    "CitationRegistry",
    "ResolvedCitation",
    "canonicalize_url",
    "extract_domain_name",
    "render_citation_run",
    "render_index",
]
