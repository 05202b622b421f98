"""Content fingerprints for deduplicating turn blocks across scroll steps."""

from __future__ import annotations

from pplx_export.core.constants import (
    FINGERPRINT_PREFIX_CHARS,
    FINGERPRINT_SUFFIX_CHARS,
    USER_FINGERPRINT_SUFFIX,
)
from pplx_export.schemas.conversation import Role


def fingerprint(content: str, role: Role = Role.ASSISTANT) -> str:
    """Cheap identity key: first 200 + last 50 characters + total length.

    User fingerprints carry a "|U" suffix so a query never collides with an
    answer of the same text.

    Example:
        >>> fingerprint("hello")
        'hello|hello|5'
        >>> fingerprint("hello", Role.USER)
        'hello|hello|5|U'
    """
    text = content.strip()
    key = f"{text[:FINGERPRINT_PREFIX_CHARS]}|{text[-FINGERPRINT_SUFFIX_CHARS:]}|{len(text)}"
    if role is Role.USER:
        key += USER_FINGERPRINT_SUFFIX
    return key


class SeenContent:
    """Fingerprints of turns already collected in one extraction attempt."""

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def __len__(self) -> int:
        return len(self._keys)

    def add(self, content: str, role: Role) -> bool:
        """Remember content; False when it was seen before."""
        key = fingerprint(content, role)
        if key in self._keys:
            return False
        self._keys.add(key)
        return True


__all__ = [
    "SeenContent",
    "fingerprint",
]
