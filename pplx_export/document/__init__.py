"""Document Assembly Package.

This package turns accepted turns into the exported document:
- DocumentAssembler for frontmatter, layout and citation index
- Title cleanup and file naming helpers
"""

from pplx_export.document.assembler import DocumentAssembler, clean_title, filename_for


__all__ = [
    "DocumentAssembler",
    "clean_title",
    "filename_for",
]
