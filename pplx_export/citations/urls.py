"""URL helpers for citation identity and labels.

- canonicalize_url: fragment-stripped identity key, never raises
- extract_domain_name: short site name used by the Named style
- extract_source_name: label of a decorated marker ("reddit+2" → "reddit")
"""

from __future__ import annotations

import re
from urllib.parse import SplitResult, urlsplit, urlunsplit

from pplx_export.core.exceptions import UrlParseError


_AGGREGATE_LABEL = re.compile(r"^([a-zA-Z]+)\+\d+$")
_NON_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9\-_]")


def parse_url(url: str) -> SplitResult:
    """Strictly parse an absolute URL.

    Args:
        url: Candidate URL

    Returns:
        The split URL

    Raises:
        UrlParseError: If the URL has no scheme or host, or is malformed
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError as e:
        raise UrlParseError(url, str(e)) from e
    if not parts.scheme or not parts.netloc:
        raise UrlParseError(url, "missing scheme or host")
    return parts


def canonicalize_url(url: str) -> str:
    """Return the citation identity key for a URL.

    Keeps scheme, host, path and query; drops the fragment. Scheme and host
    are lower-cased and an empty path becomes "/". Unparseable input falls
    back to everything before the first "#".

    Args:
        url: URL as it appeared in the content

    Returns:
        Canonical URL string
    """
    try:
        parts = parse_url(url)
    except UrlParseError:
        return url.split("#", 1)[0]

    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


def extract_domain_name(url: str) -> str | None:
    """Short site name for a URL.

    Strips a leading "www." and takes the second-to-last host label, unless
    that label is three characters or fewer and a third label exists
    (co.uk, com.au, github.io style suffixes).

    Example:
        >>> extract_domain_name("https://www.bbc.co.uk/news")
        'bbc'
        >>> extract_domain_name("https://en.wikipedia.org/wiki/Python")
        'wikipedia'
    """
    try:
        host = (parse_url(url).hostname or "").lower()
    except UrlParseError:
        return None
    if not host:
        return None

    host = re.sub(r"^www\.", "", host)
    parts = host.split(".")
    if len(parts) >= 2:
        if len(parts[-2]) <= 3 and len(parts) > 2:
            return parts[-3]
        return parts[-2]
    return parts[0]


def extract_source_name(text: str | None) -> str | None:
    """Source label of a decorated citation marker."""
    if not text:
        return None

    text = text.strip()
    match = _AGGREGATE_LABEL.match(text)
    if match:
        return match.group(1)

    clean = _NON_LABEL_CHARS.sub("", text).lower()
    return clean or None


def normalize_marker_label(text: str | None) -> str:
    """Lookup key for a marker's visible text ("Wikipedia +2" → "wikipedia+2")."""
    if not text:
        return ""
    return re.sub(r"\s+", "", text).lower()
