"""Output sinks for the finished document.

The exporter only produces a Markdown string; sinks decide where it goes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

import pyperclip

from pplx_export.core.exceptions import ClipboardAccessError
from pplx_export.core.logging import get_logger


logger = get_logger(__name__)


@runtime_checkable
class OutputSink(Protocol):
    """Protocol for document destinations."""

    def write(self, markdown: str, filename: str) -> str:
        """Deliver the document.

        Args:
            markdown: The finished document
            filename: Suggested file name

        Returns:
            Human-readable description of where it went
        """
        ...


class FileSink:
    """Writes the document as UTF-8 Markdown into a directory."""

    def __init__(self, directory: Path | str = ".") -> None:
        self.directory = Path(directory)

    def write(self, markdown: str, filename: str) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        path.write_text(markdown + "\n", encoding="utf-8")
        logger.info("Document written", path=str(path), size=len(markdown))
        return str(path)


class ClipboardSink:
    """Copies the document to the system clipboard."""

    def write(self, markdown: str, filename: str) -> str:
        try:
            pyperclip.copy(markdown)
        except pyperclip.PyperclipException as e:
            raise ClipboardAccessError(f"Could not copy to clipboard: {e}") from e
        logger.info("Document copied to clipboard", size=len(markdown))
        return "clipboard"


__all__ = [
    "ClipboardSink",
    "FileSink",
    "OutputSink",
]
