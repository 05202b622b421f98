"""Unit tests for structural Markdown normalization."""

import pytest

from pplx_export.rendering.structure import (
    CitationSlots,
    apply_spacing,
    protect_blocks,
    reindent_list_continuations,
    repair_citation_emphasis,
    restore_blocks,
)
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.options import SpacingPolicy


URL = "https://a.example/"


class TestCitationSlots:
    """Tests for slot expansion and spacing around citations."""

    def test_adjacent_runs_merge(self) -> None:
        """Test that adjacent tokens attach to the text as one run."""
        slots = CitationSlots()
        text = "Fact." + slots.add("[1]") + slots.add("[2]")

        assert slots.settle(text, CitationStyle.ENDNOTES) == "Fact.[1][2]"

    def test_parenthesized_gets_one_leading_space(self) -> None:
        """Test that spaced styles are separated from the preceding word."""
        slots = CitationSlots()
        text = "Rust is fast" + slots.add(f"([1]({URL}))") + "."

        assert slots.settle(text, CitationStyle.PARENTHESIZED) == f"Rust is fast ([1]({URL}))."

    def test_parenthesized_existing_space_not_doubled(self) -> None:
        """Test that whitespace before the token collapses to one space."""
        slots = CitationSlots()
        text = "Rust is fast  " + slots.add(f"([1]({URL}))") + "."

        assert slots.settle(text, CitationStyle.PARENTHESIZED) == f"Rust is fast ([1]({URL}))."

    def test_parenthesized_run_space_joined(self) -> None:
        """Test that merged spaced runs are joined by one space."""
        slots = CitationSlots()
        text = "Fact" + slots.add("([1](u1))") + " " + slots.add("([2](u2))") + "."

        assert slots.settle(text, CitationStyle.PARENTHESIZED) == "Fact ([1](u1)) ([2](u2))."

    def test_attached_style_drops_lead_space(self) -> None:
        """Test that Endnotes runs attach directly to the text."""
        slots = CitationSlots()
        text = "Rust is fast " + slots.add("[1]") + "."

        assert slots.settle(text, CitationStyle.ENDNOTES) == "Rust is fast[1]."

    def test_trailing_space_before_word(self) -> None:
        """Test that a run is separated from a following word."""
        slots = CitationSlots()
        text = "Fast" + slots.add(f"[1]({URL})") + "and safe."

        assert slots.settle(text, CitationStyle.INLINE) == f"Fast[1]({URL}) and safe."

    def test_none_removes_token_and_lead_space(self) -> None:
        """Test that the None style leaves no stray whitespace."""
        slots = CitationSlots()
        text = "Rust is fast " + slots.add("") + "."

        assert slots.settle(text, CitationStyle.NONE) == "Rust is fast."

    def test_none_between_words_keeps_one_space(self) -> None:
        """Test that removing a citation never glues two words."""
        slots = CitationSlots()
        text = "fast" + slots.add("") + "and safe"

        assert slots.settle(text, CitationStyle.NONE) == "fast and safe"


class TestRepairCitationEmphasis:
    """Tests for moving citations out of emphasis."""

    def test_citation_moved_out_of_bold(self) -> None:
        """Test that a bold claim ends before its citation."""
        slots = CitationSlots()
        text = "**Rust is safe " + slots.add("[1]") + "**"

        repaired = repair_citation_emphasis(text)

        assert slots.settle(repaired, CitationStyle.ENDNOTES) == "**Rust is safe**[1]"

    def test_citation_moved_out_of_italics(self) -> None:
        """Test the same repair for italics."""
        slots = CitationSlots()
        text = "*Rust is safe " + slots.add("[1]") + "*"

        repaired = repair_citation_emphasis(text)

        assert slots.settle(repaired, CitationStyle.ENDNOTES) == "*Rust is safe*[1]"

    def test_bold_around_only_citation_unwrapped(self) -> None:
        """Test that a bold holding nothing but a citation disappears."""
        slots = CitationSlots()
        text = "Claim **" + slots.add("[1]") + "**"

        repaired = repair_citation_emphasis(text)

        assert slots.settle(repaired, CitationStyle.ENDNOTES) == "Claim[1]"

    def test_orphan_bold_after_citation_removed(self) -> None:
        """Test that an unpaired ** after a citation at line end is dropped."""
        slots = CitationSlots()
        text = "Claim" + slots.add("[1]") + "**\nNext line"

        repaired = repair_citation_emphasis(text)

        assert slots.settle(repaired, CitationStyle.ENDNOTES) == "Claim[1]\nNext line"

    def test_plain_bold_untouched(self) -> None:
        """Test that emphasis without citations is left alone."""
        assert repair_citation_emphasis("**bold** and *italic*") == "**bold** and *italic*"


class TestReindentListContinuations:
    """Tests for wrapped list-item lines."""

    def test_nested_continuation_aligned_to_own_marker(self) -> None:
        """Test that a wrapped line of a nested item aligns to that item."""
        text = "- Parent item\n    - Child item\n  wrapped continuation"

        assert reindent_list_continuations(text) == (
            "- Parent item\n    - Child item\n      wrapped continuation"
        )

    def test_ordered_item_continuation(self) -> None:
        """Test that the content column accounts for the number width."""
        text = "10. Item\nwrapped"

        assert reindent_list_continuations(text) == "10. Item\n    wrapped"

    def test_deeper_lines_untouched(self) -> None:
        """Test that lines already at or past the column keep their indent."""
        text = "- Item\n      deeper"

        assert reindent_list_continuations(text) == text

    def test_paragraph_after_blank_line_stays_in_item(self) -> None:
        """Test that an indented paragraph after a blank line joins its item."""
        text = "- Item\n    - Child\n\n   child paragraph"

        assert reindent_list_continuations(text) == "- Item\n    - Child\n\n  child paragraph"

    def test_unindented_line_after_blank_closes_list(self) -> None:
        """Test that a flush paragraph after a blank line ends the list."""
        text = "- Item\n\nParagraph\ncontinues"

        assert reindent_list_continuations(text) == text

    def test_heading_and_table_are_not_continuations(self) -> None:
        """Test that structural lines are never reindented."""
        text = "- Item\n## Heading\n- Other\n| a | b |"

        assert reindent_list_continuations(text) == text

    def test_fenced_code_untouched(self) -> None:
        """Test that code inside fences keeps its indentation."""
        text = "- Item\n  ```\nx = 1\n  ```"

        assert reindent_list_continuations(text) == text


class TestProtectBlocks:
    """Tests for code and table protection."""

    def test_fence_and_table_restored(self) -> None:
        """Test that protected blocks come back unchanged."""
        text = "Intro\n```py\na\n\n\nb\n```\n| a |\n| - |\nEnd"

        protected, blocks = protect_blocks(text)

        assert len(blocks) == 2
        assert "a\n\n\nb" not in protected
        assert restore_blocks(protected, blocks) == text

    def test_tables_optional(self) -> None:
        """Test that tables can be left in place."""
        protected, blocks = protect_blocks("| a |\n| - |", tables=False)

        assert blocks == []
        assert protected == "| a |\n| - |"

    def test_unterminated_fence_runs_to_end(self) -> None:
        """Test that a missing closing fence protects the rest."""
        text = "Intro\n```\ncode\n\n\nmore"

        protected, blocks = protect_blocks(text)

        assert protected.startswith("Intro\n")
        assert blocks == ["```\ncode\n\n\nmore"]


class TestApplySpacing:
    """Tests for the blank-line policies."""

    def test_standard_collapses_blank_runs(self) -> None:
        """Test that Standard keeps at most one blank line."""
        assert apply_spacing("a\n\n\n\nb\n   \n\nc", SpacingPolicy.STANDARD) == "a\n\nb\n\nc"

    def test_compact_one_blank_before_table(self) -> None:
        """Test Compact keeps exactly one blank line before a table and none elsewhere."""
        text = (
            "Para one.\n\nPara two.\n\n\n"
            "| a | b |\n| --- | --- |\n| 1 | 2 |\n\nAfter."
        )

        assert apply_spacing(text, SpacingPolicy.COMPACT) == (
            "Para one.\nPara two.\n\n| a | b |\n| --- | --- |\n| 1 | 2 |\nAfter."
        )

    @pytest.mark.parametrize("policy", list(SpacingPolicy))
    def test_code_blank_lines_preserved(self, policy: SpacingPolicy) -> None:
        """Test that blank lines inside code fences survive every policy."""
        text = "Intro\n\n```\nline 1\n\n\nline 2\n```"

        assert "line 1\n\n\nline 2" in apply_spacing(text, policy)

    def test_strips_outer_blank_lines(self) -> None:
        """Test that leading and trailing blank lines are removed."""
        assert apply_spacing("\n\nText\n\n", SpacingPolicy.STANDARD) == "Text"

    @pytest.mark.parametrize("policy", list(SpacingPolicy))
    def test_hard_line_breaks_kept(self, policy: SpacingPolicy) -> None:
        """Test that two trailing spaces on a content line survive."""
        assert apply_spacing("line one  \nline two", policy) == "line one  \nline two"
