"""Input sanitization utilities."""
import re
from typing import Optional, Tuple

from elections.core.constants import PID_MAX_LENGTH


# Maximum length constraints for security
MAX_TOPIC_LENGTH = 255
MAX_QUESTION_LENGTH = 255
MAX_ANSWER_LENGTH = 255
MAX_REMARK_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 5000
MAX_ACCESS_KEY_LENGTH = 100  # "<record id>:<32 hex chars>"

PID_PATTERN = re.compile(r'^[a-z0-9][a-z0-9_-]*$')
ACCESS_KEY_PATTERN = re.compile(r'^(\d{1,18}):([0-9a-f]{8,64})$')


def sanitize_text(text: str, max_length: Optional[int] = None, strip_html: bool = True) -> str:
    """
    Sanitize text input to prevent XSS attacks.

    Strips HTML tags and normalizes whitespace. Output is not HTML-escaped;
    that is the renderer's job.

    Args:
        text: The input text to sanitize
        max_length: Optional maximum length to enforce
        strip_html: Whether to strip HTML tags (default True)

    Returns:
        Sanitized text with HTML tags removed and whitespace normalized

    Raises:
        ValueError: If text exceeds max_length or contains dangerous patterns
    """
    if not isinstance(text, str):
        raise ValueError("Input must be a string")

    sanitized = text.strip()

    if max_length and len(sanitized) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    if strip_html:
        sanitized = re.sub(r'<[^>]*>', '', sanitized)

    # Malformed tags survive the strip above
    if '<' in sanitized or '>' in sanitized:
        raise ValueError("Input contains invalid HTML-like patterns")

    sanitized = re.sub(r'\s+', ' ', sanitized)

    return sanitized


def sanitize_required_text(text: str, field: str, max_length: int) -> str:
    """Sanitize text that must not end up empty."""
    sanitized = sanitize_text(text, max_length=max_length)
    if not sanitized:
        raise ValueError(f"{field} cannot be empty")
    return sanitized


def sanitize_pid(pid: str) -> str:
    """
    Sanitize an election slug.

    Slugs are lowercase letters, digits, hyphens and underscores and must
    start with a letter or digit.

    Raises:
        ValueError: If the slug is empty, too long or has other characters
    """
    if not isinstance(pid, str):
        raise ValueError("Election ID must be a string")

    sanitized = pid.strip().lower()

    if not sanitized:
        raise ValueError("Election ID cannot be empty")

    if len(sanitized) > PID_MAX_LENGTH:
        raise ValueError(f"Election ID exceeds maximum length of {PID_MAX_LENGTH} characters")

    if not PID_PATTERN.match(sanitized):
        raise ValueError("Election ID can only contain letters, numbers, hyphens and underscores")

    return sanitized


def parse_access_key(access_key: str) -> Tuple[int, str]:
    """
    Split a voter access key into ``(record_id, private_key)``.

    The key is the string shown to the voter after casting a ballot,
    ``<record id>:<private key>``. Checking the format first avoids a
    database round trip for obvious garbage.

    Raises:
        ValueError: If the key is malformed
    """
    if not isinstance(access_key, str):
        raise ValueError("Access key must be a string")

    access_key = access_key.strip()

    if not access_key or len(access_key) > MAX_ACCESS_KEY_LENGTH:
        raise ValueError("Access key format is invalid")

    match = ACCESS_KEY_PATTERN.match(access_key.lower())
    if not match:
        raise ValueError("Access key format is invalid")

    record_id = int(match.group(1))
    if record_id <= 0:
        raise ValueError("Access key format is invalid")

    return record_id, match.group(2)
