"""Tests for input sanitization utilities."""
import pytest

from elections.core.sanitization import (
    sanitize_text,
    sanitize_required_text,
    sanitize_pid,
    parse_access_key,
    MAX_TOPIC_LENGTH,
)


class TestSanitizeText:
    """Tests for sanitize_text function."""

    def test_sanitize_basic_text(self):
        assert sanitize_text("Hello World") == "Hello World"

    def test_sanitize_with_html_tags(self):
        """Test that HTML tags are stripped."""
        result = sanitize_text("<script>alert('xss')</script>")
        assert result == "alert('xss')"

    def test_sanitize_with_ampersand(self):
        """Ampersands are kept; escaping happens when rendering."""
        assert sanitize_text("A & B") == "A & B"

    def test_sanitize_trims_and_normalizes_whitespace(self):
        assert sanitize_text("  Hello    World  ") == "Hello World"

    def test_sanitize_with_max_length(self):
        with pytest.raises(ValueError, match="exceeds maximum length"):
            sanitize_text("a" * 11, max_length=10)

    def test_sanitize_rejects_malformed_tags(self):
        with pytest.raises(ValueError, match="invalid HTML-like patterns"):
            sanitize_text("1 < 2")

    def test_sanitize_non_string(self):
        with pytest.raises(ValueError, match="must be a string"):
            sanitize_text(123)


class TestSanitizeRequiredText:

    def test_keeps_valid_text(self):
        assert sanitize_required_text(" Budget ", "Topic", MAX_TOPIC_LENGTH) == "Budget"

    def test_rejects_text_that_is_only_tags(self):
        with pytest.raises(ValueError, match="Topic cannot be empty"):
            sanitize_required_text("<b></b>", "Topic", MAX_TOPIC_LENGTH)


class TestSanitizePid:

    def test_lowercases(self):
        assert sanitize_pid("Board-2026") == "board-2026"

    def test_allows_underscore(self):
        assert sanitize_pid("agm_vote") == "agm_vote"

    @pytest.mark.parametrize("pid", ["", "   ", "-leading", "has space", "semi;colon", "a/b"])
    def test_rejects_bad_slugs(self, pid):
        with pytest.raises(ValueError):
            sanitize_pid(pid)

    def test_rejects_too_long(self):
        with pytest.raises(ValueError, match="maximum length"):
            sanitize_pid("a" * 129)


class TestParseAccessKey:

    def test_valid_key(self):
        record_id, private_key = parse_access_key("17:9f86d081884c7d659a2feaa0c55ad015")
        assert record_id == 17
        assert private_key == "9f86d081884c7d659a2feaa0c55ad015"

    def test_surrounding_whitespace_ignored(self):
        assert parse_access_key("  3:abcdef0123456789 ")[0] == 3

    def test_uppercase_hex_normalized(self):
        assert parse_access_key("3:ABCDEF0123456789")[1] == "abcdef0123456789"

    @pytest.mark.parametrize("key", [
        "",
        "17",
        ":abcdef0123456789",
        "17:",
        "abc:abcdef0123456789",
        "17:not-hex-at-all!",
        "0:abcdef0123456789",
        "-1:abcdef0123456789",
        "17:abc",
    ])
    def test_rejects_malformed(self, key):
        with pytest.raises(ValueError, match="Access key format is invalid"):
            parse_access_key(key)

    def test_rejects_non_string(self):
        with pytest.raises(ValueError):
            parse_access_key(None)
