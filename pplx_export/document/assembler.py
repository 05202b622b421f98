"""Document Assembler.

Builds the final Markdown document from accepted turns:
- Optional YAML frontmatter (title, date, source)
- Optional "# title" heading
- Full layout (User/Assistant labels, dividers) or Concise layout
- Citation index for the Endnotes and Footnotes styles

The registry is frozen before the index is built, so the index reflects
exactly the citations the body refers to.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from datetime import date

from pplx_export.citations.registry import CitationRegistry
from pplx_export.citations.styles import render_index
from pplx_export.config.preferences import ExportPreferences
from pplx_export.core.constants import TITLE_SUFFIX
from pplx_export.core.logging import get_logger
from pplx_export.schemas.conversation import Role, Turn
from pplx_export.schemas.options import Layout


logger = get_logger(__name__)

DIVIDER = "---"
DEFAULT_FILENAME = "perplexity-conversation.md"

_HEADING_START = re.compile(r"^#{1,6}[ \t]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def clean_title(page_title: str | None) -> str:
    """Conversation title: the page title without the " | Perplexity" suffix."""
    title = (page_title or "").strip()
    if title.endswith(TITLE_SUFFIX.strip()):
        title = title[: -len(TITLE_SUFFIX.strip())].rstrip(" |")
    return title.strip()


def filename_for(title: str) -> str:
    """File name for a title: lower-cased, non-alphanumerics collapsed to spaces.

    Example:
        >>> filename_for("What's new in Python 3.13?")
        'what s new in python 3 13.md'
    """
    slug = _NON_ALNUM.sub(" ", title.lower()).strip()
    return f"{slug}.md" if slug else DEFAULT_FILENAME


class DocumentAssembler:
    """Assembles turns and the citation index into one Markdown document.

    Example:
        >>> assembler = DocumentAssembler(ExportPreferences(include_frontmatter=False))
        >>> assembler.assemble([Turn.user("Hi"), Turn.assistant("Hello")], CitationRegistry())
        '**User:** Hi\\n\\n---\\n\\n**Assistant:** Hello'
    """

    def __init__(self, preferences: ExportPreferences) -> None:
        self.preferences = preferences

    def assemble(
        self,
        turns: Sequence[Turn],
        registry: CitationRegistry,
        title: str = "",
        source_url: str = "",
        exported_on: date | None = None,
    ) -> str:
        """Build the document.

        Args:
            turns: Accepted turns in document order
            registry: Registry of the accepted attempt; frozen here
            title: Conversation title
            source_url: Page URL, recorded in the frontmatter
            exported_on: Export date, today when omitted

        Returns:
            The trimmed Markdown document
        """
        registry.freeze()
        parts: list[str] = []

        if self.preferences.include_frontmatter:
            parts.append(self._frontmatter(title, source_url, exported_on or date.today()))
        if self.preferences.title_as_h1 and title:
            parts.append(f"# {title}")

        if self.preferences.layout is Layout.FULL:
            parts.append(self._full_body(turns))
        else:
            parts.append(self._concise_body(turns))

        index = render_index(registry.citations(), self.preferences.citation_style)
        if index:
            parts.append(index)

        document = "\n\n".join(p for p in parts if p.strip())
        logger.debug("Document assembled", turns=len(turns), citations=len(registry))
        return document.strip()

    @staticmethod
    def _frontmatter(title: str, source_url: str, exported_on: date) -> str:
        lines = [
            DIVIDER,
            f"title: {json.dumps(title, ensure_ascii=False)}",
            f"date: {exported_on.isoformat()}",
            f"source: {source_url}",
            DIVIDER,
        ]
        return "\n".join(lines)

    @staticmethod
    def _labelled(turn: Turn) -> str:
        label = f"**{turn.role.value}:**"
        content = turn.content.strip()
        if _HEADING_START.match(content):
            return f"{label}\n\n{content}"
        return f"{label} {content}"

    def _full_body(self, turns: Sequence[Turn]) -> str:
        """Labels on every turn; a divider after each query and between answers."""
        blocks: list[str] = []
        for i, turn in enumerate(turns):
            blocks.append(self._labelled(turn))
            is_last = i == len(turns) - 1
            if is_last:
                continue
            if turn.role is Role.USER:
                blocks.append(DIVIDER)
            elif any(t.role is Role.ASSISTANT for t in turns[i + 1:]):
                blocks.append(DIVIDER)
        return "\n\n".join(blocks)

    @staticmethod
    def _concise_body(turns: Sequence[Turn]) -> str:
        """Answers only, separated by dividers."""
        answers = [t.content.strip() for t in turns if t.role is Role.ASSISTANT]
        return f"\n\n{DIVIDER}\n\n".join(a for a in answers if a)


__all__ = [
    "DEFAULT_FILENAME",
    "DocumentAssembler",
    "clean_title",
    "filename_for",
]
