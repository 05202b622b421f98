"""Renderer for the host page's structured answer markup.

Converts one assistant block (HTML as mounted in the thread) to Markdown:

1. Wrapped inline code is lifted into fenced blocks with its language label
2. Citation markers are resolved to global numbers and rendered in style
3. A deterministic tree walk produces Markdown
4. List continuations are realigned, emphasis around citations repaired,
   and the spacing policy applied
"""

from __future__ import annotations

import json
import re

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from pplx_export.citations.registry import CitationRegistry
from pplx_export.citations.styles import render_citation_run
from pplx_export.citations.urls import extract_source_name, normalize_marker_label
from pplx_export.core.constants import LIST_INDENT_WIDTH, PINNED_URLS_ATTR, Selectors
from pplx_export.core.logging import get_logger
from pplx_export.rendering.lookup import SourceLookupTable
from pplx_export.rendering.structure import (
    CitationSlots,
    apply_spacing,
    reindent_list_continuations,
    repair_citation_emphasis,
)
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.options import SpacingPolicy


logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")
_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n")
_AGGREGATE_KEY = re.compile(r"^[\w.-]+\+\d+$")
_LANGUAGE_CLASS = re.compile(r"^(?:language|lang)-(?P<language>[\w+#.-]+)$")

_SKIPPED_TAGS = frozenset({"script", "style", "noscript", "button", "svg", "template"})
_BLOCK_TAGS = frozenset({"div", "section", "article", "header", "footer", "main", "figure"})
_HEADINGS = {f"h{level}": level for level in range(1, 7)}


class MarkupRenderer:
    """Converts answer markup to Markdown with globally numbered citations.

    Attributes:
        style: Citation style to render
        spacing: Blank-line policy
        lookup: Shared aggregate-marker table, if the export has one

    Example:
        >>> renderer = MarkupRenderer(CitationStyle.INLINE)
        >>> html = '<p>Fact<a class="citation" href="https://a.example/">1</a>.</p>'
        >>> renderer.render(html, CitationRegistry())
        'Fact[1](https://a.example/).'
    """

    def __init__(
        self,
        style: CitationStyle,
        spacing: SpacingPolicy = SpacingPolicy.STANDARD,
        lookup: SourceLookupTable | None = None,
    ) -> None:
        self.style = style
        self.spacing = spacing
        self.lookup = lookup

    def render(self, markup: str, registry: CitationRegistry) -> str:
        """Render one answer block.

        Args:
            markup: Outer HTML of the block
            registry: Registry of the current extraction attempt

        Returns:
            Markdown for the block
        """
        soup = BeautifulSoup(markup, "html.parser")
        slots = CitationSlots()

        self._lift_wrapped_code(soup)
        self._resolve_citations(soup, registry, slots)

        text = self._convert(soup, 0)
        text = "\n".join(line.rstrip() for line in text.split("\n"))
        text = reindent_list_continuations(text)
        text = repair_citation_emphasis(text)
        text = slots.settle(text, self.style)
        return apply_spacing(text, self.spacing).strip()

    # =========================================================================
    # Pre-passes
    # =========================================================================

    def _lift_wrapped_code(self, soup: BeautifulSoup) -> None:
        """Wrap pre-wrap styled inline code in <pre> so it renders as a fence."""
        for code in soup.find_all("code"):
            if code.find_parent("pre") is not None:
                continue
            style = (code.get("style") or "").replace(" ", "")
            if "white-space:pre-wrap" not in style:
                continue
            language = self._take_language_label(code)
            pre = soup.new_tag("pre")
            if language:
                pre["data-language"] = language
            code.wrap(pre)

    @staticmethod
    def _take_language_label(code: Tag) -> str:
        """Find, remove and return the language label shown above a code block."""
        node: Tag | None = code
        for _ in range(4):
            if node is None:
                break
            sibling = node.find_previous_sibling()
            if isinstance(sibling, Tag):
                classes = sibling.get("class") or []
                label = sibling if "text-text-200" in classes else sibling.select_one(
                    Selectors.CODE_LANGUAGE_LABEL
                )
                if label is not None:
                    language = label.get_text(strip=True).lower()
                    if language and " " not in language and len(language) <= 20:
                        label.decompose()
                        return language
            node = node.parent if isinstance(node.parent, Tag) else None
        return ""

    def _resolve_citations(
        self,
        soup: BeautifulSoup,
        registry: CitationRegistry,
        slots: CitationSlots,
    ) -> None:
        for marker in soup.select(Selectors.CITATION):
            # The decorated shape nests a link that also matches
            if marker.find_parent(class_="citation") is not None:
                continue

            label = self._marker_label(marker)
            urls = self._marker_urls(marker, label)
            if not urls:
                logger.debug("Citation marker has no URL", label=label)
                marker.replace_with("" if self.style is CitationStyle.NONE else label)
                continue

            resolved = registry.resolve(urls, extract_source_name(label))
            marker.replace_with(slots.add(render_citation_run(resolved, self.style)))

    @staticmethod
    def _marker_label(marker: Tag) -> str:
        label = marker.select_one(Selectors.CITATION_LABEL)
        text = (label or marker).get_text(" ", strip=True)
        return _WHITESPACE.sub(" ", text)

    def _marker_urls(self, marker: Tag, label: str) -> list[str]:
        """Backing URLs: pinned attribute, then the direct link, then the lookup.

        An aggregate marker ("wikipedia+2") links only its first source, so
        the lookup table is consulted before its direct link.
        """
        pinned = self._pinned_urls(marker)
        if pinned:
            return pinned

        href = self._direct_link(marker)
        is_aggregate = bool(_AGGREGATE_KEY.match(normalize_marker_label(label)))
        if self.lookup is not None and is_aggregate:
            found = self.lookup.resolve(label)
            if found:
                return found
        if href:
            return [href]
        if self.lookup is not None:
            return self.lookup.resolve(label)
        return []

    @staticmethod
    def _pinned_urls(marker: Tag) -> list[str]:
        holder = marker if marker.has_attr(PINNED_URLS_ATTR) else marker.find(
            attrs={PINNED_URLS_ATTR: True}
        )
        if holder is None:
            return []
        raw = holder.get(PINNED_URLS_ATTR) or ""
        try:
            values = json.loads(raw)
        except json.JSONDecodeError:
            values = raw.split()
        if isinstance(values, str):
            values = [values]
        if not isinstance(values, list):
            return []
        return [v.strip() for v in values if isinstance(v, str) and v.strip()]

    @staticmethod
    def _direct_link(marker: Tag) -> str | None:
        link = marker if marker.name == "a" else marker.find("a", href=True)
        if link is None:
            return None
        href = (link.get("href") or "").strip()
        if not href or href.startswith(("#", "javascript:")):
            return None
        return href

    # =========================================================================
    # Tree walk
    # =========================================================================

    def _children(self, node: Tag, depth: int) -> str:
        return "".join(self._convert(child, depth) for child in node.children)

    def _convert(self, node: object, depth: int) -> str:
        if isinstance(node, PreformattedString):
            # Comments, CDATA, doctype
            return ""
        if isinstance(node, NavigableString):
            text = str(node)
            if node.find_parent("pre") is not None:
                return text
            if not text.strip() and "\n" in text:
                # Formatting whitespace between tags
                return ""
            return _WHITESPACE.sub(" ", text)
        if not isinstance(node, Tag):
            return ""

        name = node.name
        if name in _SKIPPED_TAGS:
            return ""
        if name in ("ul", "ol"):
            return self._convert_list(node, depth)
        if name == "li":
            return self._convert_item(node, depth, "-")
        if name == "table":
            return self._convert_table(node)
        if name == "pre":
            return self._convert_pre(node)
        if name == "br":
            return "\n"
        if name == "hr":
            return "\n\n---\n\n"
        if name == "code":
            return self._convert_inline_code(node)

        content = self._children(node, depth)
        stripped = content.strip()

        if name in ("strong", "b"):
            return self._wrap(content, "**")
        if name in ("em", "i"):
            return self._wrap(content, "*")
        if name in _HEADINGS:
            if not stripped:
                return ""
            heading = _WHITESPACE.sub(" ", stripped)
            return f"\n\n{'#' * _HEADINGS[name]} {heading}\n\n"
        if name == "p":
            return f"\n\n{stripped}\n\n" if stripped else ""
        if name == "blockquote":
            if not stripped:
                return ""
            quoted = "\n".join(f"> {line}".rstrip() for line in stripped.split("\n"))
            return f"\n\n{quoted}\n\n"
        if name == "a":
            href = (node.get("href") or "").strip()
            if not stripped:
                return ""
            if href and not href.startswith(("#", "javascript:")):
                return f"[{stripped}]({href})"
            return stripped
        if name in _BLOCK_TAGS:
            return f"\n{content}\n" if stripped else ""
        return content

    @staticmethod
    def _wrap(content: str, marker: str) -> str:
        stripped = content.strip()
        if not stripped:
            return content if content[:1].isspace() else ""
        lead = " " if content[:1].isspace() else ""
        trail = " " if content[-1:].isspace() else ""
        return f"{lead}{marker}{stripped}{marker}{trail}"

    @staticmethod
    def _convert_inline_code(node: Tag) -> str:
        text = node.get_text()
        if not text:
            return ""
        fence = "``" if "`" in text else "`"
        return f"{fence}{text}{fence}"

    @staticmethod
    def _code_language(pre: Tag, code: Tag | None) -> str:
        language = pre.get("data-language") or ""
        if language:
            return str(language).strip().lower()
        for holder in (code, pre):
            if holder is None:
                continue
            for cls in holder.get("class") or []:
                match = _LANGUAGE_CLASS.match(cls)
                if match:
                    return match.group("language").lower()
        return ""

    def _convert_pre(self, node: Tag) -> str:
        code = node.find("code")
        language = self._code_language(node, code)
        body = (code or node).get_text().rstrip("\n")
        return f"\n\n```{language}\n{body}\n```\n\n"

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    def _convert_list(self, node: Tag, depth: int) -> str:
        ordered = node.name == "ol"
        start = 1
        if ordered:
            try:
                start = int(node.get("start") or 1)
            except ValueError:
                start = 1

        items = []
        for offset, li in enumerate(node.find_all("li", recursive=False)):
            marker = f"{start + offset}." if ordered else "-"
            items.append(self._convert_item(li, depth, marker))
        if not items:
            return ""
        body = "\n".join(items)
        return f"\n\n{body}\n\n" if depth == 0 else f"\n{body}\n"

    def _convert_item(self, li: Tag, depth: int, marker: str) -> str:
        """One list item: marker line, continuation paragraphs, nested lists.

        Only the first line of the first paragraph carries the marker;
        following lines of that paragraph are realigned by
        reindent_list_continuations. Later paragraphs and fences are
        indented to the content column here.
        """
        indent = " " * (depth * LIST_INDENT_WIDTH)
        column = " " * (len(indent) + len(marker) + 1)

        chunks: list[tuple[str, str]] = []
        pending: list[str] = []
        for child in li.children:
            if isinstance(child, Tag) and child.name in ("ul", "ol"):
                chunks.append(("text", "".join(pending)))
                pending = []
                chunks.append(("list", self._convert_list(child, depth + 1).strip("\n")))
            else:
                pending.append(self._convert(child, depth + 1))
        chunks.append(("text", "".join(pending)))

        out: list[str] = []
        has_marker_line = False
        for kind, chunk in chunks:
            if kind == "list":
                if chunk:
                    if not has_marker_line:
                        out.append(f"{indent}{marker}")
                        has_marker_line = True
                    out.append(chunk)
                continue
            for paragraph in _PARAGRAPH_BREAK.split(chunk.strip()):
                paragraph = paragraph.strip("\n")
                if not paragraph.strip():
                    continue
                starts_fence = paragraph.lstrip().startswith(("```", "~~~"))
                if not has_marker_line and not starts_fence:
                    out.append(f"{indent}{marker} {paragraph.strip()}")
                    has_marker_line = True
                    continue
                if not has_marker_line:
                    out.append(f"{indent}{marker}")
                    has_marker_line = True
                lines = paragraph.split("\n")
                if starts_fence:
                    block = "\n".join(f"{column}{line}" if line else line for line in lines)
                else:
                    block = column + paragraph.lstrip()
                out.append(f"\n{block}")

        if not has_marker_line:
            out.append(f"{indent}{marker}")
        return "\n".join(out)

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def _cell(self, cell: Tag) -> str:
        text = _WHITESPACE.sub(" ", self._children(cell, 0)).strip()
        return text.replace("|", "\\|")

    def _convert_table(self, node: Tag) -> str:
        rows: list[list[str]] = []
        for tr in node.find_all("tr"):
            cells = [self._cell(c) for c in tr.find_all(["th", "td"], recursive=False)]
            if cells:
                rows.append(cells)
        if not rows:
            logger.debug("Skipping table without rows")
            return ""

        width = max(len(row) for row in rows)
        rows = [row + [""] * (width - len(row)) for row in rows]
        lines = [
            "| " + " | ".join(rows[0]) + " |",
            "| " + " | ".join(["---"] * width) + " |",
        ]
        lines.extend("| " + " | ".join(row) + " |" for row in rows[1:])
        return "\n\n" + "\n".join(lines) + "\n\n"


__all__ = [
    "MarkupRenderer",
]
