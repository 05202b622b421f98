"""Command-line entry point.

Usage:
    pplx-export --cdp http://localhost:9222
    pplx-export https://www.perplexity.ai/search/... --style endnotes --clipboard

Attaches to a running Chromium over CDP (the user's logged-in browser) or
launches one at the given URL, exports the open thread and writes the
document to a file or the clipboard.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.status import Status

from pplx_export import __version__
from pplx_export.browser.playwright_driver import BrowserSession, ReactPropsCitationResolver
from pplx_export.config.preferences import ExportPreferences, get_preferences
from pplx_export.core.config import Settings, get_settings
from pplx_export.core.exceptions import AllStrategiesExhaustedError, ExportError
from pplx_export.core.logging import configure_logging, export_context, get_logger
from pplx_export.exporter import ConversationExporter, ExportResult
from pplx_export.output import ClipboardSink, FileSink, OutputSink
from pplx_export.schemas.citations import CITATION_STYLE_DESCRIPTIONS, CitationStyle
from pplx_export.schemas.conversation import StrategyName
from pplx_export.schemas.options import Layout, OutputMethod, SpacingPolicy


logger = get_logger(__name__)

NO_CONTENT_MESSAGE = "No conversation content found to export."


class ConsoleFocusPrompt:
    """FocusPrompt shown on the terminal while the page lacks focus."""

    def __init__(self, console: Console) -> None:
        self.console = console
        self._status: Status | None = None

    def show(self) -> None:
        if self._status is not None:
            return
        self._status = self.console.status(
            "[yellow]Click inside the Perplexity page to continue the export...[/yellow]"
        )
        self._status.start()

    def hide(self) -> None:
        if self._status is None:
            return
        self._status.stop()
        self._status = None


def build_parser() -> argparse.ArgumentParser:
    styles = "; ".join(f"{s.value}: {d}" for s, d in CITATION_STYLE_DESCRIPTIONS.items())
    parser = argparse.ArgumentParser(
        prog="pplx-export",
        description="Export a Perplexity conversation to Markdown.",
    )
    parser.add_argument("url", nargs="?", help="Thread URL to open (optional with --cdp)")
    parser.add_argument("--cdp", help="DevTools endpoint of a running Chromium, e.g. http://localhost:9222")
    parser.add_argument("--headless", action="store_true", help="Launch the browser headless")
    parser.add_argument(
        "--style",
        choices=[s.value for s in CitationStyle],
        help=f"Citation style ({styles})",
    )
    parser.add_argument("--spacing", choices=[s.value for s in SpacingPolicy])
    parser.add_argument("--layout", choices=[s.value for s in Layout])
    parser.add_argument(
        "--strategies",
        help="Comma-separated strategy priority, e.g. export_capture,direct_scan,copy_affordance",
    )
    parser.add_argument("--clipboard", action="store_true", help="Copy to the clipboard instead of a file")
    parser.add_argument("--output-dir", type=Path, default=Path("."), help="Directory for the .md file")
    parser.add_argument("--no-frontmatter", action="store_true", help="Omit the YAML metadata block")
    parser.add_argument("--title-as-h1", action="store_true", help="Start the document with # title")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_preferences(args: argparse.Namespace, base: ExportPreferences) -> ExportPreferences:
    """Preferences from the environment, overridden by command-line flags."""
    updates: dict[str, object] = {}
    if args.style:
        updates["citation_style"] = CitationStyle(args.style)
    if args.spacing:
        updates["spacing"] = SpacingPolicy(args.spacing)
    if args.layout:
        updates["layout"] = Layout(args.layout)
    if args.strategies:
        updates["strategy_priority"] = [
            StrategyName(name.strip()) for name in args.strategies.split(",") if name.strip()
        ]
    if args.clipboard:
        updates["output_method"] = OutputMethod.CLIPBOARD
    if args.no_frontmatter:
        updates["include_frontmatter"] = False
    if args.title_as_h1:
        updates["title_as_h1"] = True
    # Round-trip through validation so the priority check still applies
    return ExportPreferences.model_validate({**base.model_dump(), **updates})


def resolve_settings(args: argparse.Namespace, base: Settings) -> Settings:
    updates: dict[str, object] = {}
    if args.cdp:
        updates["cdp_endpoint"] = args.cdp
    if args.headless:
        updates["headless"] = True
    return base.model_copy(update=updates)


def sink_for(preferences: ExportPreferences, output_dir: Path) -> OutputSink:
    if preferences.output_method is OutputMethod.CLIPBOARD:
        return ClipboardSink()
    return FileSink(output_dir)


async def run_export(
    settings: Settings,
    preferences: ExportPreferences,
    url: str | None,
    console: Console,
) -> ExportResult:
    with export_context(url):
        async with BrowserSession(settings, url) as driver:
            exporter = ConversationExporter(
                driver,
                settings,
                preferences,
                resolver=ReactPropsCitationResolver(driver),
                focus_prompt=ConsoleFocusPrompt(console),
            )
            return await exporter.export()


def main(argv: list[str] | None = None) -> int:
    """Run the exporter; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging()
    console = Console(stderr=True)

    try:
        settings = resolve_settings(args, get_settings())
        preferences = resolve_preferences(args, get_preferences())
    except ValueError as e:
        console.print(f"[red]✗[/red] Invalid options: {e}")
        return 2

    try:
        result = asyncio.run(run_export(settings, preferences, args.url, console))
    except AllStrategiesExhaustedError as e:
        logger.info("Export found nothing", attempted=e.attempted)
        console.print(f"[red]✗[/red] {NO_CONTENT_MESSAGE}")
        return 1
    except ExportError as e:
        console.print(f"[red]✗[/red] Export failed: {e}")
        return 1

    try:
        destination = sink_for(preferences, args.output_dir).write(result.markdown, result.filename)
    except (ExportError, OSError) as e:
        console.print(f"[red]✗[/red] Could not write document: {e}")
        return 1

    console.print(
        f"[green]✓[/green] Exported {result.turn_count} turns with "
        f"{result.citation_count} sources via {result.strategy.value} → {destination}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
