"""Unit tests for the Document Assembler."""

from datetime import date

import pytest

from pplx_export.citations.registry import CitationRegistry
from pplx_export.config.preferences import ExportPreferences
from pplx_export.document.assembler import (
    DEFAULT_FILENAME,
    DocumentAssembler,
    clean_title,
    filename_for,
)
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.conversation import Turn
from pplx_export.schemas.options import Layout


TURNS = [
    Turn.user("What is Rust?"),
    Turn.assistant("Rust is safe[1]."),
    Turn.user("Is it fast?"),
    Turn.assistant("Yes[2]."),
]


@pytest.fixture
def cited_registry() -> CitationRegistry:
    registry = CitationRegistry()
    registry.add_citation("https://a.example/")
    registry.add_citation("https://b.example/")
    return registry


class TestTitles:
    """Tests for titles and file names."""

    def test_clean_title_strips_suffix(self) -> None:
        """Test that the site suffix is removed."""
        assert clean_title("What is Rust? | Perplexity") == "What is Rust?"

    def test_clean_title_without_suffix(self) -> None:
        """Test that other titles are kept."""
        assert clean_title("  Rust notes ") == "Rust notes"
        assert clean_title(None) == ""

    def test_filename_for(self) -> None:
        """Test slugging of punctuation and case."""
        assert filename_for("What's new in Python 3.13?") == "what s new in python 3 13.md"

    def test_filename_for_empty_title(self) -> None:
        """Test the default file name."""
        assert filename_for("") == DEFAULT_FILENAME
        assert filename_for("???") == DEFAULT_FILENAME


class TestFullLayout:
    """Tests for the labelled layout."""

    def test_labels_and_dividers(self, cited_registry: CitationRegistry) -> None:
        """Test labels on every turn and dividers between them."""
        prefs = ExportPreferences(include_frontmatter=False, citation_style=CitationStyle.NONE)

        document = DocumentAssembler(prefs).assemble(TURNS, cited_registry)

        assert document == (
            "**User:** What is Rust?\n\n---\n\n"
            "**Assistant:** Rust is safe[1].\n\n---\n\n"
            "**User:** Is it fast?\n\n---\n\n"
            "**Assistant:** Yes[2]."
        )

    def test_heading_answer_starts_on_new_line(self, registry: CitationRegistry) -> None:
        """Test that an answer opening with a heading is not run into its label."""
        prefs = ExportPreferences(include_frontmatter=False)
        turns = [Turn.user("Q"), Turn.assistant("## Summary\n\nText")]

        document = DocumentAssembler(prefs).assemble(turns, registry)

        assert "**Assistant:**\n\n## Summary\n\nText" in document

    def test_endnotes_index(self, cited_registry: CitationRegistry) -> None:
        """Test that the Endnotes style appends a Sources section."""
        prefs = ExportPreferences(include_frontmatter=False, citation_style=CitationStyle.ENDNOTES)

        document = DocumentAssembler(prefs).assemble(TURNS, cited_registry)

        assert document.endswith(
            "### Sources\n\n[1] https://a.example/\n[2] https://b.example/"
        )

    def test_footnotes_index(self, cited_registry: CitationRegistry) -> None:
        """Test footnote definitions after the body."""
        prefs = ExportPreferences(
            include_frontmatter=False, citation_style=CitationStyle.FOOTNOTES
        )

        document = DocumentAssembler(prefs).assemble(TURNS, cited_registry)

        assert document.endswith("[^1]: https://a.example/\n[^2]: https://b.example/")

    @pytest.mark.parametrize(
        "style", [CitationStyle.INLINE, CitationStyle.PARENTHESIZED, CitationStyle.NAMED]
    )
    def test_inline_styles_have_no_index(
        self, style: CitationStyle, cited_registry: CitationRegistry
    ) -> None:
        """Test that link styles need no index."""
        prefs = ExportPreferences(include_frontmatter=False, citation_style=style)

        document = DocumentAssembler(prefs).assemble(TURNS, cited_registry)

        assert "https://" not in document

    def test_registry_frozen(self, cited_registry: CitationRegistry) -> None:
        """Test that assembling freezes the registry."""
        DocumentAssembler(ExportPreferences()).assemble(TURNS, cited_registry)

        assert cited_registry.frozen


class TestConciseLayout:
    """Tests for the answers-only layout."""

    def test_answers_only(self, registry: CitationRegistry) -> None:
        """Test that queries and labels are omitted."""
        prefs = ExportPreferences(include_frontmatter=False, layout=Layout.CONCISE)

        document = DocumentAssembler(prefs).assemble(TURNS, registry)

        assert document == "Rust is safe[1].\n\n---\n\nYes[2]."


class TestHeader:
    """Tests for frontmatter and the title heading."""

    def test_frontmatter(self, registry: CitationRegistry) -> None:
        """Test the YAML block with a quoted title."""
        prefs = ExportPreferences(citation_style=CitationStyle.NONE)

        document = DocumentAssembler(prefs).assemble(
            TURNS[:2],
            registry,
            title='Rust "2024"',
            source_url="https://www.perplexity.ai/search/rust",
            exported_on=date(2024, 5, 1),
        )

        assert document.startswith(
            "---\n"
            'title: "Rust \\"2024\\""\n'
            "date: 2024-05-01\n"
            "source: https://www.perplexity.ai/search/rust\n"
            "---\n\n"
            "**User:** What is Rust?"
        )

    def test_title_as_h1(self, registry: CitationRegistry) -> None:
        """Test the optional title heading."""
        prefs = ExportPreferences(include_frontmatter=False, title_as_h1=True)

        document = DocumentAssembler(prefs).assemble(TURNS[:2], registry, title="Rust")

        assert document.startswith("# Rust\n\n**User:** What is Rust?")

    def test_title_as_h1_without_title(self, registry: CitationRegistry) -> None:
        """Test that an empty title adds no heading."""
        prefs = ExportPreferences(include_frontmatter=False, title_as_h1=True)

        document = DocumentAssembler(prefs).assemble(TURNS[:2], registry)

        assert document.startswith("**User:**")
