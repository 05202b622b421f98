"""Unit tests for the command-line entry point.

The browser session is replaced by patching run_export.
"""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pplx_export.cli import (
    NO_CONTENT_MESSAGE,
    ConsoleFocusPrompt,
    build_parser,
    main,
    resolve_preferences,
    resolve_settings,
    sink_for,
)
from pplx_export.config.preferences import ExportPreferences
from pplx_export.core.config import Settings
from pplx_export.core.exceptions import AllStrategiesExhaustedError, PageInteractionError
from pplx_export.exporter import ExportResult
from pplx_export.output import ClipboardSink, FileSink
from pplx_export.schemas.citations import CitationStyle
from pplx_export.schemas.conversation import StrategyName
from pplx_export.schemas.options import Layout, OutputMethod


RESULT = ExportResult(
    markdown="**User:** Q\n\n---\n\n**Assistant:** A",
    title="What is Rust?",
    filename="what is rust.md",
    strategy=StrategyName.DIRECT_SCAN,
    turn_count=2,
    citation_count=0,
)


@pytest.fixture
def cli_env(test_settings: Settings) -> Iterator[None]:
    """Isolate main() from the environment and logging setup."""
    with (
        patch("pplx_export.cli.configure_logging"),
        patch("pplx_export.cli.get_settings", return_value=test_settings),
        patch("pplx_export.cli.get_preferences", return_value=ExportPreferences()),
    ):
        yield


class TestArguments:
    """Tests for flag parsing and option resolution."""

    def test_flags_override_preferences(self) -> None:
        """Test that every preference flag applies."""
        args = build_parser().parse_args(
            [
                "--style", "endnotes",
                "--layout", "concise",
                "--strategies", "export_capture, direct_scan,copy_affordance",
                "--clipboard",
                "--no-frontmatter",
                "--title-as-h1",
            ]
        )

        prefs = resolve_preferences(args, ExportPreferences())

        assert prefs.citation_style is CitationStyle.ENDNOTES
        assert prefs.layout is Layout.CONCISE
        assert prefs.strategy_priority == [
            StrategyName.EXPORT_CAPTURE,
            StrategyName.DIRECT_SCAN,
            StrategyName.COPY_AFFORDANCE,
        ]
        assert prefs.output_method is OutputMethod.CLIPBOARD
        assert prefs.include_frontmatter is False
        assert prefs.title_as_h1 is True

    def test_no_flags_keep_base(self) -> None:
        """Test that the environment's preferences survive without flags."""
        base = ExportPreferences(citation_style=CitationStyle.FOOTNOTES)

        prefs = resolve_preferences(build_parser().parse_args([]), base)

        assert prefs == base

    def test_incomplete_priority_rejected(self) -> None:
        """Test that a priority missing a strategy fails validation."""
        args = build_parser().parse_args(["--strategies", "direct_scan"])

        with pytest.raises(ValueError):
            resolve_preferences(args, ExportPreferences())

    def test_browser_flags(self, test_settings: Settings) -> None:
        """Test the CDP endpoint and headless flags."""
        args = build_parser().parse_args(["--cdp", "http://localhost:9222", "--headless"])

        settings = resolve_settings(args, test_settings)

        assert settings.cdp_endpoint == "http://localhost:9222"
        assert settings.headless is True

    def test_sink_for(self, tmp_path: Path) -> None:
        """Test the sink chosen by the output method."""
        clipboard = ExportPreferences(output_method=OutputMethod.CLIPBOARD)

        assert isinstance(sink_for(clipboard, tmp_path), ClipboardSink)
        assert isinstance(sink_for(ExportPreferences(), tmp_path), FileSink)


class TestConsoleFocusPrompt:
    """Tests for the terminal focus prompt."""

    def test_show_and_hide(self) -> None:
        """Test that the status spinner starts once and stops on hide."""
        console = MagicMock()
        prompt = ConsoleFocusPrompt(console)

        prompt.show()
        prompt.show()
        prompt.hide()
        prompt.hide()

        console.status.assert_called_once()
        console.status.return_value.start.assert_called_once()
        console.status.return_value.stop.assert_called_once()


@pytest.mark.usefixtures("cli_env")
class TestMain:
    """Tests for exit codes and output."""

    def test_success_writes_file(self, tmp_path: Path) -> None:
        """Test a successful export to a directory."""
        with patch("pplx_export.cli.run_export", new=AsyncMock(return_value=RESULT)):
            code = main(["--output-dir", str(tmp_path)])

        assert code == 0
        written = (tmp_path / "what is rust.md").read_text(encoding="utf-8")
        assert written == RESULT.markdown + "\n"

    def test_success_to_clipboard(self) -> None:
        """Test that --clipboard copies instead of writing."""
        with (
            patch("pplx_export.cli.run_export", new=AsyncMock(return_value=RESULT)),
            patch("pplx_export.output.pyperclip.copy") as mock_copy,
        ):
            code = main(["--clipboard"])

        assert code == 0
        mock_copy.assert_called_once_with(RESULT.markdown)

    def test_nothing_found(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the user-facing message when no strategy found content."""
        error = AllStrategiesExhaustedError(["copy_affordance", "direct_scan", "export_capture"])
        with patch("pplx_export.cli.run_export", new=AsyncMock(side_effect=error)):
            code = main([])

        assert code == 1
        assert NO_CONTENT_MESSAGE in capsys.readouterr().err

    def test_browser_failure(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that driver failures exit non-zero."""
        error = PageInteractionError("no page", action="connect")
        with patch("pplx_export.cli.run_export", new=AsyncMock(side_effect=error)):
            code = main([])

        assert code == 1
        assert "Export failed" in capsys.readouterr().err

    def test_invalid_priority(self) -> None:
        """Test the usage exit code for a bad strategy list."""
        with patch("pplx_export.cli.run_export", new=AsyncMock(return_value=RESULT)) as mock_run:
            code = main(["--strategies", "direct_scan,bogus"])

        assert code == 2
        mock_run.assert_not_called()

    def test_write_failure(self, tmp_path: Path) -> None:
        """Test that an unwritable destination exits non-zero."""
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with patch("pplx_export.cli.run_export", new=AsyncMock(return_value=RESULT)):
            code = main(["--output-dir", str(blocker)])

        assert code == 1
