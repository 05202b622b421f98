"""Global citation registry for one extraction attempt.

The CitationRegistry assigns dense sequence numbers to sources across the
whole document. It supports:
- Deduplication by canonical (fragment-stripped) URL
- Lookup of an already registered URL
- Reset between extraction attempts
- Freezing once the citation index is being built
"""

from __future__ import annotations

from collections.abc import Iterable

from pplx_export.citations.styles import ResolvedCitation
from pplx_export.citations.urls import canonicalize_url
from pplx_export.core.exceptions import CitationRegistryFrozenError
from pplx_export.schemas.citations import Citation


class CitationRegistry:
    """Store mapping canonical URL → sequence number.

    One registry is created per export and reset at the start of every
    extraction attempt; renderers receive it explicitly.

    Attributes:
        next_number: The next sequence number to assign
        frozen: Whether new URLs are refused

    Example:
        >>> registry = CitationRegistry()
        >>> registry.add_citation("https://a.example/x#intro")
        1
        >>> registry.add_citation("https://a.example/x#usage")
        1
        >>> registry.add_citation("https://b.example/y")
        2
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._by_url: dict[str, Citation] = {}
        self._next_number: int = 1
        self._frozen: bool = False

    @property
    def next_number(self) -> int:
        return self._next_number

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._by_url)

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and canonicalize_url(url) in self._by_url

    def reset(self) -> None:
        """Clear all citations and restart numbering at 1."""
        self._by_url.clear()
        self._next_number = 1
        self._frozen = False

    def add_citation(self, url: str, label: str | None = None) -> int:
        """Register a URL and return its sequence number.

        A URL whose canonical form is already known gets its existing
        number. Malformed URLs are registered under their naive canonical
        form, so every marker receives some number.

        Args:
            url: URL as it appears in the content
            label: Visible label of the marker, kept for the first sighting

        Returns:
            Sequence number of the citation

        Raises:
            CitationRegistryFrozenError: If the URL is new and the registry
                has been frozen by the assembler
        """
        canonical = canonicalize_url(url)
        existing = self._by_url.get(canonical)
        if existing is not None:
            return existing.sequence_number
        if self._frozen:
            raise CitationRegistryFrozenError(url)

        citation = Citation(
            sequence_number=self._next_number,
            canonical_url=canonical,
            display_url=url.strip(),
            source_label=label,
        )
        self._by_url[canonical] = citation
        self._next_number += 1
        return citation.sequence_number

    def resolve(self, urls: Iterable[str], label: str | None = None) -> list[ResolvedCitation]:
        """Register the URLs behind one marker and resolve them for rendering.

        Numbers repeated within the marker are dropped; every citation links
        to the URL its source was first registered with.

        Args:
            urls: Backing URLs of the marker, in marker order
            label: Visible label of the marker

        Returns:
            Resolved citations with distinct numbers
        """
        resolved: list[ResolvedCitation] = []
        seen: set[int] = set()
        for url in urls:
            number = self.add_citation(url, label)
            if number in seen:
                continue
            seen.add(number)
            resolved.append(ResolvedCitation(number, self._by_url[canonicalize_url(url)].display_url))
        return resolved

    def lookup(self, url: str) -> int | None:
        """Sequence number of a registered URL, or None."""
        citation = self._by_url.get(canonicalize_url(url))
        return citation.sequence_number if citation else None

    def get(self, url: str) -> Citation | None:
        return self._by_url.get(canonicalize_url(url))

    def citations(self) -> list[Citation]:
        """All citations in first-registration order."""
        # dicts keep insertion order, which is registration order
        return list(self._by_url.values())

    def freeze(self) -> None:
        """Refuse new URLs from now on; known URLs still resolve."""
        self._frozen = True


__all__ = [
    "CitationRegistry",
]
