"""Renderer for Markdown the host already produced.

Copied responses and exported conversations arrive as Markdown with local
numeric markers ([3], [^1_2]) and a trailing reference list. This renderer
maps local markers to global registry numbers and rewrites them in the
active citation style:

1. Split off the trailing reference list (and a "References" section)
2. Normalize inline [n](url) markers, which are authoritative on first sight
3. Resolve aggregate (label+k) and named ([label](url)) markers
4. Replace every maximal run of local markers with one style rendering
5. Emphasis repair and spacing, shared with the markup renderer

Markers with no reference behind them are left exactly as written.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from pplx_export.citations.registry import CitationRegistry
from pplx_export.citations.styles import render_citation_run
from pplx_export.citations.urls import extract_source_name
from pplx_export.core.logging import get_logger
from pplx_export.rendering.lookup import SourceLookupTable
from pplx_export.rendering.structure import (
    CitationSlots,
    apply_spacing,
    protect_blocks,
    repair_citation_emphasis,
    restore_blocks,
)
from pplx_export.schemas.citations import CitationStyle, LocalReference
from pplx_export.schemas.options import SpacingPolicy


logger = get_logger(__name__)


# =============================================================================
# Patterns
# =============================================================================

_URL = r"https?://[^\s)>\]]+"

# Lines that make up a reference list, in any of the host's shapes
_REFERENCE_LINES = (
    # [^1_2]: https://...   or   [^1_2]: [Title](https://...)
    re.compile(
        rf"^[ \t]*\[\^(?P<key>[\w.-]+)\]:[ \t]*"
        rf"(?:\[[^\]\n]*\]\((?P<linked>{_URL})\)|<?(?P<url>{_URL})>?)"
        r"(?:[ \t].*)?$"
    ),
    # [1](https://...)
    re.compile(rf"^[ \t]*\[(?P<key>\d+)\]\((?P<url>{_URL})\)[ \t]*$"),
    # 1 https://...   or   1. https://...
    re.compile(rf"^[ \t]*(?P<key>\d+)\.?[ \t]+<?(?P<url>{_URL})>?[ \t]*$"),
)
# Inside a trailing References section: 1. [Title](https://...) ...
_SECTION_REFERENCE = re.compile(
    rf"^[ \t]*(?:[-*][ \t]+)?\[?(?P<key>\d+)[.\]][ \t]+(?:.*?)\((?P<url>{_URL})\).*$"
)
_REFERENCES_HEADING = re.compile(
    r"^[ \t]{0,3}(?:#{1,6}[ \t]+|\*\*)(?:references|sources|citations)(?:\*\*)?[ \t]*:?[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)

# [1](https://...) in running text, optionally already parenthesized
_INLINE_NUMERIC = re.compile(
    rf"(?P<open>\()?\[(?P<key>\d+)\]\((?P<url>{_URL})\)(?(open)\))"
)
# [label+2](https://...) and bare label+2
_AGGREGATE_LINK = re.compile(
    rf"(?P<open>\()?\[(?P<label>[A-Za-z][\w.-]*[ \t]?\+\d+)\]\((?P<url>{_URL})\)(?(open)\))"
)
_AGGREGATE_BARE = re.compile(r"(?<![\w\[/+.-])(?P<label>[A-Za-z][\w.-]*\+\d+)(?![\w\]+])")
# [wikipedia](https://...): short label, no whitespace, not an image
_NAMED_LINK = re.compile(
    rf"(?<!!)(?P<open>\()?\[(?P<label>[^\]\s]{{1,40}})\]\((?P<url>{_URL})\)(?(open)\))"
)
# Maximal run of local markers such as [2][4] [5] or [^1_1][^1_3]
_MARKER = r"\[\^?(?P<key>\d[\w.]*)\](?![(:])"
_MARKER_RUN = re.compile(rf"(?:[ \t]*\[\^?\d[\w.]*\](?![(:]))+")
_MARKER_KEY = re.compile(_MARKER)

_INLINE_CODE = re.compile(r"(`+)[^`\n]*?\1")
_CODE_OPEN = "\ue004"
_CODE_CLOSE = "\ue005"


# =============================================================================
# Reference list parsing
# =============================================================================

@dataclass
class ReferenceList:
    """Local markers of one turn mapped to their URLs.

    Attributes:
        body: Turn text with the reference lines removed
        references: Local key → reference, in the order listed
    """

    body: str
    references: dict[str, LocalReference] = field(default_factory=dict)

    def url(self, key: str) -> str | None:
        ref = self.references.get(key)
        return ref.url if ref else None

    def add(self, key: str, url: str) -> None:
        """Add a reference unless the key is already known."""
        if key not in self.references:
            self.references[key] = LocalReference(local_key=key, url=url)


def _match_reference_line(line: str, *, in_section: bool) -> tuple[str, str] | None:
    for pattern in _REFERENCE_LINES:
        match = pattern.match(line)
        if match:
            groups = match.groupdict()
            url = groups.get("linked") or groups.get("url")
            if url:
                return match.group("key"), url
    if in_section:
        match = _SECTION_REFERENCE.match(line)
        if match:
            return match.group("key"), match.group("url")
    return None


def _split_trailing_references(lines: list[str]) -> tuple[list[str], list[tuple[str, str]]]:
    """Peel the trailing run of reference lines off the end of a turn.

    Blank lines inside the run are allowed; the run ends at the first
    non-blank line that is not a reference.
    """
    cut = len(lines)
    found: list[tuple[str, str]] = []
    for i in range(len(lines) - 1, -1, -1):
        if not lines[i].strip():
            continue
        parsed = _match_reference_line(lines[i], in_section=False)
        if parsed is None:
            break
        found.append(parsed)
        cut = i
    found.reverse()
    return lines[:cut], found


def parse_reference_list(markdown: str) -> ReferenceList:
    """Split a turn into its body and its local references.

    Only the trailing run of reference lines is a reference list; the same
    shapes earlier in the turn are content. A trailing "References" or
    "Sources" section is removed as a whole, including its heading. Lines
    inside fenced code are never treated as references.

    Args:
        markdown: One turn of host-produced Markdown

    Returns:
        The body without reference lines, plus the parsed references
    """
    protected, blocks = protect_blocks(markdown, tables=False)
    result = ReferenceList(body="")

    section_start = None
    for match in _REFERENCES_HEADING.finditer(protected):
        section_start = match.start()
    section_lines: list[str] = []
    if section_start is not None:
        section_lines = protected[section_start:].split("\n")[1:]
        protected = protected[:section_start]

    kept, trailing = _split_trailing_references(protected.split("\n"))
    for key, url in trailing:
        result.add(key, url)

    for line in section_lines:
        if not line.strip():
            continue
        parsed = _match_reference_line(line, in_section=True)
        if parsed:
            result.add(*parsed)
        else:
            logger.debug("Skipping unparseable reference line", line=line[:80])

    result.body = restore_blocks("\n".join(kept), blocks)
    return result


# =============================================================================
# Renderer
# =============================================================================

class MarkdownRenderer:
    """Rewrites local citation markers of host Markdown into one global style.

    Attributes:
        style: Citation style to render
        spacing: Blank-line policy
        lookup: Shared aggregate-marker table, if the export has one
        record_runs: Record marker runs into the lookup table while rendering

    Example:
        >>> renderer = MarkdownRenderer(CitationStyle.ENDNOTES)
        >>> renderer.render("Fact [1].\\n\\n[1](https://a.example/)", CitationRegistry())
        'Fact[1].'
    """

    def __init__(
        self,
        style: CitationStyle,
        spacing: SpacingPolicy = SpacingPolicy.STANDARD,
        lookup: SourceLookupTable | None = None,
        record_runs: bool = False,
    ) -> None:
        self.style = style
        self.spacing = spacing
        self.lookup = lookup
        self.record_runs = record_runs

    def render(self, markdown: str, registry: CitationRegistry) -> str:
        """Render one turn, registering only the sources it actually cites.

        Args:
            markdown: Host-produced Markdown for a single turn
            registry: Registry of the current extraction attempt

        Returns:
            Markdown with markers in the active style
        """
        parsed = parse_reference_list(markdown)
        return self.render_body(parsed.body, parsed, registry)

    def render_body(
        self,
        body: str,
        references: ReferenceList,
        registry: CitationRegistry,
    ) -> str:
        """Render a body whose reference list was parsed separately."""
        slots = CitationSlots()
        text, fences = protect_blocks(body, tables=False)
        text, spans = self._mask_inline_code(text)

        text = self._normalize_inline_numeric(text, references)
        text = _AGGREGATE_LINK.sub(
            lambda m: self._aggregate(m, registry, slots, fallback=m.group("url")), text
        )
        if self.lookup is not None and len(self.lookup):
            text = _AGGREGATE_BARE.sub(
                lambda m: self._aggregate(m, registry, slots, fallback=None), text
            )
        text = _NAMED_LINK.sub(lambda m: self._named(m, registry, slots), text)
        text = _MARKER_RUN.sub(lambda m: self._marker_run(m, references, registry, slots), text)

        text = self._unmask_inline_code(text, spans)
        text = restore_blocks(text, fences)
        text = repair_citation_emphasis(text)
        text = slots.settle(text, self.style)
        return apply_spacing(text, self.spacing).strip()

    # -------------------------------------------------------------------------
    # Marker shapes
    # -------------------------------------------------------------------------

    def _normalize_inline_numeric(self, text: str, references: ReferenceList) -> str:
        def replace(match: re.Match[str]) -> str:
            references.add(match.group("key"), match.group("url"))
            return f"[{match.group('key')}]"

        return _INLINE_NUMERIC.sub(replace, text)

    def _aggregate(
        self,
        match: re.Match[str],
        registry: CitationRegistry,
        slots: CitationSlots,
        fallback: str | None,
    ) -> str:
        label = match.group("label")
        urls = self.lookup.resolve(label) if self.lookup is not None else []
        if not urls and fallback:
            urls = [fallback]
        if not urls:
            return match.group(0)
        resolved = registry.resolve(urls, extract_source_name(label))
        return slots.add(render_citation_run(resolved, self.style))

    def _named(
        self,
        match: re.Match[str],
        registry: CitationRegistry,
        slots: CitationSlots,
    ) -> str:
        label = match.group("label")
        if label.isdigit():
            return match.group(0)
        resolved = registry.resolve([match.group("url")], extract_source_name(label))
        return slots.add(render_citation_run(resolved, self.style))

    def _marker_run(
        self,
        match: re.Match[str],
        references: ReferenceList,
        registry: CitationRegistry,
        slots: CitationSlots,
    ) -> str:
        run = match.group(0)
        keys = [m.group("key") for m in _MARKER_KEY.finditer(run)]
        urls = [url for url in (references.url(k) for k in keys) if url]
        if not urls:
            return run
        if len(urls) < len(keys):
            logger.debug("Dropping unresolved markers in run", run=run.strip())

        if self.record_runs and self.lookup is not None:
            self.lookup.record_run(urls)

        lead = run[: len(run) - len(run.lstrip(" \t"))]
        resolved = registry.resolve(urls)
        return lead + slots.add(render_citation_run(resolved, self.style))

    # -------------------------------------------------------------------------
    # Inline code
    # -------------------------------------------------------------------------

    @staticmethod
    def _mask_inline_code(text: str) -> tuple[str, list[str]]:
        spans: list[str] = []

        def mask(match: re.Match[str]) -> str:
            spans.append(match.group(0))
            return f"{_CODE_OPEN}{len(spans) - 1}{_CODE_CLOSE}"

        return _INLINE_CODE.sub(mask, text), spans

    @staticmethod
    def _unmask_inline_code(text: str, spans: list[str]) -> str:
        pattern = re.compile(rf"{_CODE_OPEN}(\d+){_CODE_CLOSE}")
        return pattern.sub(lambda m: spans[int(m.group(1))], text)


__all__ = [
    "MarkdownRenderer",
    "ReferenceList",
    "parse_reference_list",
]
