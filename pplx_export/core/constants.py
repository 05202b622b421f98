"""Host page constants and fixed rendering values.

Provides centralized constants for:
- Perplexity DOM selectors
- Fingerprint and list-layout widths
- Page-context attribute names shared by the driver scripts and renderers
"""


# =============================================================================
# Host Page Selectors
# =============================================================================

class Selectors:
    """CSS selectors for the Perplexity thread page.

    These track the host markup and are the first thing to revisit when the
    site changes.
    """
    THREAD_CONTAINER = '.max-w-threadContentWidth, [class*="threadContentWidth"]'
    ASSISTANT_BLOCK = ".prose.text-pretty.dark\\:prose-invert, [class*='prose'][class*='prose-invert']"
    USER_BLOCK = (
        ".whitespace-pre-line.text-pretty.break-words, "
        ".group\\/query span[data-lexical-text='true'], "
        "span[data-lexical-text='true']"
    )
    LEXICAL_TEXT = "span[data-lexical-text='true']"
    QUERY_COPY = 'button[data-testid="copy-query-button"], button[aria-label="Copy Query"]'
    RESPONSE_COPY = 'button[aria-label="Copy"]'
    CITATION = "a.citation, .citation"
    CITATION_LABEL = '.text-3xs, [class*="text-3xs"]'
    CODE_LANGUAGE_LABEL = ".text-text-200"
    RESEARCH_PANEL = '[data-testid="research-panel"], [data-testid*="deep-research"]'


# =============================================================================
# Page-Context Attributes
# =============================================================================

# URLs copied out of host component state so they survive cloning
PINNED_URLS_ATTR = "data-pplx-urls"
# Handle the driver stamps on copy controls so they can be clicked later
CONTROL_ID_ATTR = "data-pplx-export-id"
# Page globals owned by the injected scripts
CAPTURE_GLOBAL = "__pplxExportCapture"
NAV_BLOCKER_GLOBAL = "__pplxExportNavBlocker"


# =============================================================================
# Deduplication
# =============================================================================

FINGERPRINT_PREFIX_CHARS: int = 200
FINGERPRINT_SUFFIX_CHARS: int = 50
USER_FINGERPRINT_SUFFIX = "|U"

# A usable extraction holds at least one complete exchange
MIN_SUFFICIENT_TURNS: int = 2


# =============================================================================
# Markdown Layout
# =============================================================================

LIST_INDENT_WIDTH: int = 4
TITLE_SUFFIX = " | Perplexity"

EXPANDER_PATTERN = (
    r"(show more|read more|view more|see more|expand|load more|"
    r"view full|show all|continue reading)"
)

# Lazy-content preload before copy-affordance scrolling
PRELOAD_MAX_TRIES: int = 25
PRELOAD_STABLE_READS: int = 2
PAGE_DOWN_FACTOR: float = 0.85
