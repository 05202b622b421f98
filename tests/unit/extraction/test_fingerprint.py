"""Unit tests for content fingerprints."""

from pplx_export.extraction.fingerprint import SeenContent, fingerprint
from pplx_export.schemas.conversation import Role


class TestFingerprint:
    """Tests for the deduplication key."""

    def test_short_content(self) -> None:
        """Test prefix, suffix and length for short text."""
        assert fingerprint("hello") == "hello|hello|5"

    def test_user_suffix(self) -> None:
        """Test that user fingerprints never collide with answers."""
        assert fingerprint("hello", Role.USER) == "hello|hello|5|U"
        assert fingerprint("hello", Role.USER) != fingerprint("hello", Role.ASSISTANT)

    def test_long_content_uses_prefix_and_suffix(self) -> None:
        """Test that only the first 200 and last 50 characters count."""
        text = "a" * 200 + "MIDDLE" + "b" * 50

        key = fingerprint(text)

        assert key == f"{'a' * 200}|{'b' * 50}|256"

    def test_surrounding_whitespace_ignored(self) -> None:
        """Test that the same block re-read with padding matches."""
        assert fingerprint("  hello\n") == fingerprint("hello")


class TestSeenContent:
    """Tests for per-attempt deduplication."""

    def test_add_reports_new_content(self) -> None:
        """Test that the second sighting is rejected."""
        seen = SeenContent()

        assert seen.add("Rust is fast.", Role.ASSISTANT) is True
        assert seen.add("Rust is fast.", Role.ASSISTANT) is False
        assert len(seen) == 1

    def test_roles_kept_apart(self) -> None:
        """Test that a query and an answer with equal text are both kept."""
        seen = SeenContent()

        assert seen.add("Yes", Role.USER) is True
        assert seen.add("Yes", Role.ASSISTANT) is True
