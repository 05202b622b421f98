"""Lookup table for aggregate citation markers.

The host collapses several adjacent sources into one visible marker such
as "wikipedia+2". The structured markup does not carry the hidden URLs,
but the export payload does: there the same spot is a run of numbered
references. Runs seen while rendering an export are recorded here under
the label the host would show for them, and the markup renderer resolves
aggregate markers through the table.
"""

from __future__ import annotations

from collections.abc import Sequence

from pplx_export.citations.urls import extract_domain_name, normalize_marker_label
from pplx_export.core.logging import get_logger


logger = get_logger(__name__)


def aggregate_label(urls: Sequence[str]) -> str:
    """Label the host shows for a run of sources ("wikipedia+2")."""
    if not urls:
        return ""
    domain = extract_domain_name(urls[0]) or "source"
    if len(urls) == 1:
        return domain
    return f"{domain}+{len(urls) - 1}"


class SourceLookupTable:
    """Marker label → URLs, shared by every attempt of one export.

    Example:
        >>> table = SourceLookupTable()
        >>> table.record_run(["https://en.wikipedia.org/a", "https://b.org/", "https://c.org/"])
        'wikipedia+2'
        >>> table.resolve("Wikipedia +2")
        ['https://en.wikipedia.org/a', 'https://b.org/', 'https://c.org/']
    """

    def __init__(self) -> None:
        self._by_label: dict[str, list[str]] = {}

    def __len__(self) -> int:
        return len(self._by_label)

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and normalize_marker_label(label) in self._by_label

    def record(self, label: str, urls: Sequence[str]) -> None:
        """Store URLs under a marker label; the first recording wins."""
        key = normalize_marker_label(label)
        unique = list(dict.fromkeys(u for u in urls if u))
        if not key or not unique or key in self._by_label:
            return
        self._by_label[key] = unique
        logger.debug("Recorded source lookup", label=key, sources=len(unique))

    def record_run(self, urls: Sequence[str]) -> str:
        """Record a run of adjacent sources under its aggregate label."""
        unique = list(dict.fromkeys(u for u in urls if u))
        label = aggregate_label(unique)
        if len(unique) > 1:
            self.record(label, unique)
        return label

    def resolve(self, label: str | None) -> list[str]:
        """URLs behind a marker label, empty when unknown."""
        if not label:
            return []
        return list(self._by_label.get(normalize_marker_label(label), []))

    def clear(self) -> None:
        self._by_label.clear()


__all__ = [
    "SourceLookupTable",
    "aggregate_label",
]
