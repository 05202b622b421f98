"""Unit tests for the structured-markup renderer."""

import pytest

from pplx_export.citations.registry import CitationRegistry
from pplx_export.rendering.lookup import SourceLookupTable
from pplx_export.rendering.markup import MarkupRenderer
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.options import SpacingPolicy


WIKI = "https://en.wikipedia.org/wiki/Rust"
BLOG = "https://blog.rust-lang.org/"
DOCS = "https://doc.rust-lang.org/book/"


def decorated_marker(label: str, href: str | None = None, pinned: str | None = None) -> str:
    """Citation markup in the host's decorated shape."""
    attrs = f" data-pplx-urls='{pinned}'" if pinned else ""
    inner = f'<span class="text-3xs">{label}</span>'
    if href:
        inner = f'<a href="{href}">{inner}</a>'
    return f'<span class="citation"{attrs}>{inner}</span>'


class TestMarkupCitations:
    """Tests for citation marker resolution in markup."""

    def test_plain_marker_inline(self, registry: CitationRegistry) -> None:
        """Test a linked marker rendered inline."""
        html = '<p>Fact<a class="citation" href="https://a.example/">1</a>.</p>'

        result = MarkupRenderer(CitationStyle.INLINE).render(html, registry)

        assert result == "Fact[1](https://a.example/)."

    def test_decorated_marker_parenthesized(self, registry: CitationRegistry) -> None:
        """Test the decorated shape with a nested link."""
        html = f"<p>Rust is fast{decorated_marker('wikipedia', WIKI)}.</p>"

        result = MarkupRenderer(CitationStyle.PARENTHESIZED).render(html, registry)

        assert result == f"Rust is fast ([1]({WIKI}))."
        assert registry.get(WIKI).source_label == "wikipedia"

    def test_named_style_uses_domain(self, registry: CitationRegistry) -> None:
        """Test the Named style label."""
        html = f"<p>Rust is fast{decorated_marker('wikipedia', WIKI)}.</p>"

        result = MarkupRenderer(CitationStyle.NAMED).render(html, registry)

        assert result == f"Rust is fast ([wikipedia]({WIKI}))."

    def test_pinned_urls_take_priority(self, registry: CitationRegistry) -> None:
        """Test that pinned URLs beat the direct link."""
        pinned = '["https://a.example/","https://b.example/"]'
        html = f"<p>Fact{decorated_marker('a+1', 'https://z.example/', pinned)}.</p>"

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "Fact[1][2]."
        assert "https://z.example/" not in registry

    def test_pinned_urls_whitespace_list(self, registry: CitationRegistry) -> None:
        """Test that a non-JSON pinned attribute is split on whitespace."""
        html = f"<p>Fact{decorated_marker('a+1', pinned='https://a.example/ https://b.example/')}.</p>"

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "Fact[1][2]."

    def test_aggregate_marker_uses_lookup(
        self, registry: CitationRegistry, lookup: SourceLookupTable
    ) -> None:
        """Test that an aggregate backed by three URLs yields three numbers."""
        lookup.record("wikipedia+2", [WIKI, BLOG, DOCS])
        html = f"<p>Rust is popular{decorated_marker('wikipedia+2', WIKI)}.</p>"

        result = MarkupRenderer(CitationStyle.ENDNOTES, lookup=lookup).render(html, registry)

        assert result == "Rust is popular[1][2][3]."
        assert len(registry) == 3

    def test_aggregate_marker_without_lookup_uses_link(self, registry: CitationRegistry) -> None:
        """Test the fallback to the marker's own link."""
        html = f"<p>Rust is popular{decorated_marker('wikipedia+2', WIKI)}.</p>"

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "Rust is popular[1]."

    def test_unresolvable_marker_under_none(self, registry: CitationRegistry) -> None:
        """Test that a marker without URLs disappears under the None style."""
        html = f"<p>Fact{decorated_marker('reddit')}.</p>"

        result = MarkupRenderer(CitationStyle.NONE).render(html, registry)

        assert result == "Fact."
        assert len(registry) == 0

    def test_unresolvable_marker_keeps_label(self, registry: CitationRegistry) -> None:
        """Test that a marker without URLs degrades to its visible label."""
        html = f"<p>Fact {decorated_marker('reddit')}.</p>"

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "Fact reddit."

    def test_same_source_same_number_across_blocks(self, registry: CitationRegistry) -> None:
        """Test that the registry is shared by every block of an attempt."""
        renderer = MarkupRenderer(CitationStyle.ENDNOTES)
        renderer.render('<p>One<a class="citation" href="https://a.example/#x">1</a>.</p>', registry)
        renderer.render('<p>Two<a class="citation" href="https://b.example/">1</a>.</p>', registry)

        result = renderer.render(
            '<p>Three<a class="citation" href="https://a.example/#y">4</a>.</p>', registry
        )

        assert result == "Three[1]."

    def test_citation_moved_out_of_bold(self, registry: CitationRegistry) -> None:
        """Test that bold closes before a trailing citation."""
        html = (
            '<p><strong>Rust is safe<a class="citation" '
            'href="https://a.example/">1</a></strong></p>'
        )

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "**Rust is safe**[1]"


class TestMarkupTreeWalk:
    """Tests for converting markup structure to Markdown."""

    def test_heading_emphasis_and_link(self, registry: CitationRegistry) -> None:
        """Test headings, inline emphasis and ordinary links."""
        html = (
            "<h2>Overview</h2>"
            "<p>Rust is <strong>fast</strong> and <em>safe</em>. "
            'See <a href="https://rust-lang.org/">the site</a>.</p>'
        )

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == (
            "## Overview\n\n"
            "Rust is **fast** and *safe*. See [the site](https://rust-lang.org/)."
        )

    def test_nested_list(self, registry: CitationRegistry) -> None:
        """Test that nested items are indented by one level."""
        html = "<ul>\n  <li>Parent<ul><li>Child</li></ul></li>\n  <li>Second</li>\n</ul>"

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "- Parent\n    - Child\n- Second"

    def test_ordered_list_start(self, registry: CitationRegistry) -> None:
        """Test that ordered lists honour their start attribute."""
        html = '<ol start="3"><li>Third</li><li>Fourth</li></ol>'

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "3. Third\n4. Fourth"

    def test_nested_item_wrapped_line_aligned(self, registry: CitationRegistry) -> None:
        """Test that a line break inside a nested item aligns to that item."""
        html = "<ul><li>Parent<ul><li>Child line<br>wrapped</li></ul></li></ul>"

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "- Parent\n    - Child line\n      wrapped"

    def test_item_paragraphs(self, registry: CitationRegistry) -> None:
        """Test that later paragraphs of an item sit at its content column."""
        html = "<ul><li><p>First para</p><p>Second para</p></li></ul>"

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "- First para\n\n  Second para"

    def test_table(self, registry: CitationRegistry) -> None:
        """Test pipe tables with escaped pipes and padded rows."""
        html = (
            "<table><thead><tr><th>Lang</th><th>Safe</th></tr></thead>"
            "<tbody><tr><td>Rust</td><td>Yes | mostly</td></tr>"
            "<tr><td>C</td></tr></tbody></table>"
        )

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == (
            "| Lang | Safe |\n"
            "| --- | --- |\n"
            "| Rust | Yes \\| mostly |\n"
            "| C |  |"
        )

    def test_compact_spacing_before_table(self, registry: CitationRegistry) -> None:
        """Test that Compact keeps one blank line before a table only."""
        html = (
            "<p>Intro</p><p>More</p>"
            "<table><tr><th>a</th><th>b</th></tr><tr><td>1</td><td>2</td></tr></table>"
            "<p>After</p>"
        )

        result = MarkupRenderer(CitationStyle.ENDNOTES, SpacingPolicy.COMPACT).render(html, registry)

        assert result == "Intro\nMore\n\n| a | b |\n| --- | --- |\n| 1 | 2 |\nAfter"

    def test_code_block_language(self, registry: CitationRegistry) -> None:
        """Test fenced code with the language from its class."""
        html = '<pre><code class="language-python">print("hi")\n</code></pre>'

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == '```python\nprint("hi")\n```'

    def test_wrapped_code_lifted_with_label(self, registry: CitationRegistry) -> None:
        """Test that pre-wrap inline code becomes a fence with the label's language."""
        html = (
            '<div><div><span class="text-text-200">python</span></div>'
            '<code style="white-space: pre-wrap;">x = 1</code></div>'
        )

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "```python\nx = 1\n```"

    def test_inline_code(self, registry: CitationRegistry) -> None:
        """Test inline code spans."""
        html = "<p>Call <code>len(x)</code> here.</p>"

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "Call `len(x)` here."

    def test_skips_comments_and_controls(self, registry: CitationRegistry) -> None:
        """Test that comments and buttons are not content."""
        html = "<p>Text<!-- note --><button>Copy</button></p>"

        result = MarkupRenderer(CitationStyle.ENDNOTES).render(html, registry)

        assert result == "Text"

    @pytest.mark.parametrize("style", list(CitationStyle))
    def test_empty_block(self, style: CitationStyle, registry: CitationRegistry) -> None:
        """Test that empty markup renders to an empty string."""
        assert MarkupRenderer(style).render("<div>\n</div>", registry) == ""
