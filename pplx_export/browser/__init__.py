"""Browser Package.

This package connects the exporter to the live page:
- PageDriver, CitationUrlResolver and FocusPrompt protocols
- PlaywrightPageDriver and ReactPropsCitationResolver implementations
- BrowserSession for attaching over CDP or launching Chromium
"""

from pplx_export.browser.protocols import (
    CitationUrlResolver,
    CopyControl,
    FocusPrompt,
    NullFocusPrompt,
    PageDriver,
    ScrollState,
    TurnBlock,
)


__all__ = [
    "CitationUrlResolver",
    "CopyControl",
    "FocusPrompt",
    "NullFocusPrompt",
    "PageDriver",
    "ScrollState",
    "TurnBlock",
]
