"""Structural Markdown normalization shared by both renderers.

- CitationSlots: rendered citation runs held out of the text until the end
- repair_citation_emphasis: no citation wrapped in bold, no orphaned markers
- reindent_list_continuations: wrapped lines realigned under their list item
- apply_spacing: Standard / Compact blank-line policy with protected blocks
"""

from __future__ import annotations

import re
from collections.abc import Callable

from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.options import SpacingPolicy


# Private-use code points never produced by the host page
SLOT_OPEN = "\ue000"
SLOT_CLOSE = "\ue001"
BLOCK_OPEN = "\ue002"
BLOCK_CLOSE = "\ue003"

_SLOT = rf"{SLOT_OPEN}\d+{SLOT_CLOSE}"
_SLOT_RUN = re.compile(rf"(?P<lead>[ \t]*)(?P<run>{_SLOT}(?:[ \t]*{_SLOT})*)")
_SLOT_INDEX = re.compile(rf"{SLOT_OPEN}(\d+){SLOT_CLOSE}")
_BLOCK_TOKEN = re.compile(rf"^[ \t]*{BLOCK_OPEN}(?P<kind>[FT])(?P<index>\d+){BLOCK_CLOSE}[ \t]*$")

_FENCE = re.compile(r"^[ \t]*(?P<fence>`{3,}|~{3,})")
_TABLE_ROW = re.compile(r"^[ \t]*\|")
_HEADING = re.compile(r"^[ \t]{0,3}#{1,6}(?:[ \t]|$)")
_RULE = re.compile(r"^[ \t]{0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_LIST_ITEM = re.compile(r"^(?P<indent>[ \t]*)(?P<marker>[-*+]|\d{1,9}[.)])(?P<gap>[ \t]+)\S")

_SPACED_STYLES = (CitationStyle.PARENTHESIZED, CitationStyle.NAMED)


# =============================================================================
# Citation slots
# =============================================================================

class CitationSlots:
    """Holds rendered citation runs while the surrounding text is rewritten.

    Renderers put a short token in the text for every citation marker and
    expand the tokens last, so later regex passes never see citation
    Markdown and cannot mistake it for a marker.

    Example:
        >>> slots = CitationSlots()
        >>> text = "Fact." + slots.add("[1]") + slots.add("[2]")
        >>> slots.settle(text, CitationStyle.ENDNOTES)
        'Fact.[1][2]'
    """

    def __init__(self) -> None:
        self._runs: list[str] = []

    def __len__(self) -> int:
        return len(self._runs)

    def add(self, rendered: str) -> str:
        """Store a rendered run and return its token."""
        self._runs.append(rendered)
        return f"{SLOT_OPEN}{len(self._runs) - 1}{SLOT_CLOSE}"

    def settle(self, text: str, style: CitationStyle) -> str:
        """Replace tokens with their runs and fix the spacing around them.

        Adjacent tokens merge into one run. Endnotes, Footnotes and Inline
        runs attach to the preceding text; Parenthesized and Named runs are
        separated from it by one space. Under the None style the tokens
        vanish along with the whitespace that led up to them.
        """
        joiner = " " if style in _SPACED_STYLES else ""

        def expand(match: re.Match[str]) -> str:
            pieces = [
                self._runs[int(i)]
                for i in _SLOT_INDEX.findall(match.group("run"))
            ]
            rendered = joiner.join(p for p in pieces if p)
            before = text[match.start() - 1] if match.start() > 0 else ""
            after = text[match.end()] if match.end() < len(text) else ""

            if not rendered:
                if before.isalnum() and after.isalnum():
                    return " "
                if match.group("lead") and after and after not in " \t\n.,;:!?)":
                    return " "
                return ""

            lead = ""
            if style in _SPACED_STYLES and before and before not in " \t\n(":
                lead = " "
            trail = " " if after.isalnum() else ""
            return f"{lead}{rendered}{trail}"

        return _SLOT_RUN.sub(expand, text)


# =============================================================================
# Emphasis repair
# =============================================================================

_BOLD_AROUND_TAIL_SLOT = re.compile(
    rf"\*\*(?P<body>[^*\n]+?)[ \t]*(?P<slots>{_SLOT}(?:[ \t]*{_SLOT})*)[ \t]*\*\*"
)
_ITALIC_AROUND_TAIL_SLOT = re.compile(
    rf"(?<!\*)\*(?P<body>[^*\n]+?)[ \t]*(?P<slots>{_SLOT}(?:[ \t]*{_SLOT})*)[ \t]*\*(?!\*)"
)
_BOLD_ONLY_SLOT = re.compile(
    rf"\*\*[ \t]*(?P<slots>{_SLOT}(?:[ \t]*{_SLOT})*)[ \t]*\*\*"
)
_ORPHAN_AFTER_SLOT = re.compile(rf"(?P<slot>{_SLOT})[ \t]*\*\*(?P<rest>[ \t]*)$")


def repair_citation_emphasis(text: str) -> str:
    """Move citations out of emphasis and drop orphaned closing markers.

    "**claim [1]**" becomes "**claim**[1]", a bold wrapping nothing but a
    citation is unwrapped, and a "**" dangling after a citation at the end
    of a line whose bold markers do not pair up is removed.
    """
    text = _BOLD_ONLY_SLOT.sub(lambda m: m.group("slots"), text)
    text = _BOLD_AROUND_TAIL_SLOT.sub(
        lambda m: f"**{m.group('body').rstrip()}**{m.group('slots')}", text
    )
    text = _ITALIC_AROUND_TAIL_SLOT.sub(
        lambda m: f"*{m.group('body').rstrip()}*{m.group('slots')}", text
    )

    lines = []
    for line in text.split("\n"):
        if line.count("**") % 2 == 1:
            line = _ORPHAN_AFTER_SLOT.sub(lambda m: m.group("slot") + m.group("rest"), line)
        lines.append(line)
    return "\n".join(lines)


# =============================================================================
# List continuation
# =============================================================================

def _indent_width(line: str) -> int:
    expanded = line.expandtabs(4)
    return len(expanded) - len(expanded.lstrip(" "))


def reindent_list_continuations(text: str) -> str:
    """Realign wrapped list-item lines to the item's content column.

    A non-list line directly under a list item, indented less than the
    item's content column, is moved to that column (indent + marker +
    gap), so a wrapped line of a nested item lines up with its own marker
    and not its parent's. After a blank line, a line indented deeper than
    some open item stays in that item and is realigned to it; an
    unindented line closes the list. Headings, table rows, rules and code
    fences are never continuations.
    """
    out: list[str] = []
    open_items: list[tuple[int, int]] = []  # (marker indent, content column)
    after_blank = False
    fence: str | None = None

    for line in text.split("\n"):
        if fence is not None:
            out.append(line)
            stripped = line.strip()
            if stripped.startswith(fence[0] * 3) and stripped.rstrip(fence[0]) == "":
                fence = None
            continue

        fence_match = _FENCE.match(line)
        if fence_match:
            fence = fence_match.group("fence")
            if not open_items or _indent_width(line) <= open_items[-1][0]:
                open_items.clear()
            out.append(line)
            after_blank = False
            continue

        if not line.strip():
            after_blank = bool(open_items)
            out.append(line)
            continue

        if _HEADING.match(line) or _TABLE_ROW.match(line) or _RULE.match(line):
            open_items.clear()
            after_blank = False
            out.append(line)
            continue

        item = _LIST_ITEM.match(line)
        if item:
            indent = _indent_width(line)
            while open_items and open_items[-1][0] >= indent:
                open_items.pop()
            content_col = indent + len(item.group("marker")) + len(item.group("gap").expandtabs(4))
            open_items.append((indent, content_col))
            after_blank = False
            out.append(line)
            continue

        if open_items:
            indent = _indent_width(line)
            if not after_blank:
                _, column = open_items[-1]
                if indent < column:
                    line = " " * column + line.lstrip()
            else:
                owners = [entry for entry in open_items if entry[0] < indent]
                if owners:
                    owner = owners[-1]
                    while open_items[-1] != owner:
                        open_items.pop()
                    line = " " * owner[1] + line.lstrip()
                else:
                    open_items.clear()

        after_blank = False
        out.append(line)

    return "\n".join(out)


# =============================================================================
# Protected blocks and spacing
# =============================================================================

def protect_blocks(
    text: str,
    *,
    tables: bool = True,
) -> tuple[str, list[str]]:
    """Replace fenced code (and optionally table) blocks with one-line tokens.

    Args:
        text: Markdown text
        tables: Also protect runs of table rows

    Returns:
        Text with tokens, and the removed blocks in token order
    """
    blocks: list[str] = []
    out: list[str] = []
    lines = text.split("\n")
    i = 0

    def token(kind: str, block_lines: list[str]) -> str:
        blocks.append("\n".join(block_lines))
        return f"{BLOCK_OPEN}{kind}{len(blocks) - 1}{BLOCK_CLOSE}"

    while i < len(lines):
        line = lines[i]
        fence_match = _FENCE.match(line)
        if fence_match:
            fence = fence_match.group("fence")
            j = i + 1
            while j < len(lines):
                stripped = lines[j].strip()
                if stripped.startswith(fence) and stripped.rstrip(fence[0]) == "":
                    break
                j += 1
            end = min(j, len(lines) - 1)
            # An unterminated fence runs to the end of the text
            out.append(token("F", lines[i:end + 1]))
            i = end + 1
            continue
        if tables and _TABLE_ROW.match(line):
            j = i
            while j < len(lines) and _TABLE_ROW.match(lines[j]):
                j += 1
            out.append(token("T", lines[i:j]))
            i = j
            continue
        out.append(line)
        i += 1

    return "\n".join(out), blocks


def restore_blocks(text: str, blocks: list[str]) -> str:
    """Put protected blocks back in place of their tokens."""
    pattern = re.compile(rf"{BLOCK_OPEN}[FT](\d+){BLOCK_CLOSE}")
    return pattern.sub(lambda m: blocks[int(m.group(1))], text)


def _is_table_token(line: str) -> bool:
    match = _BLOCK_TOKEN.match(line)
    return bool(match and match.group("kind") == "T")


def _standard(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if not line.strip() and out and not out[-1].strip():
            continue
        out.append("" if not line.strip() else line)
    return out


def _compact(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if not line.strip():
            continue
        if _is_table_token(line) and out:
            out.append("")
        out.append(line)
    return out


_SPACING: dict[SpacingPolicy, Callable[[list[str]], list[str]]] = {
    SpacingPolicy.STANDARD: _standard,
    SpacingPolicy.COMPACT: _compact,
}


def apply_spacing(text: str, policy: SpacingPolicy) -> str:
    """Apply the blank-line policy outside code and table blocks.

    Standard collapses every run of blank lines to exactly one. Compact
    removes all blank lines except a single one immediately before each
    table. Code fences and tables keep their inner lines untouched.
    """
    protected, blocks = protect_blocks(text)
    # Whitespace-only lines become blank; trailing spaces on content lines
    # may be Markdown hard breaks
    lines = [line if line.strip() else "" for line in protected.split("\n")]
    spaced = _SPACING[policy](lines)
    return restore_blocks("\n".join(spaced), blocks).strip("\n")


__all__ = [
    "CitationSlots",
    "apply_spacing",
    "protect_blocks",
    "reindent_list_continuations",
    "repair_citation_emphasis",
    "restore_blocks",
]
