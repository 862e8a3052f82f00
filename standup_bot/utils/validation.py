"""
Input validation and sanitization utilities.

Provides validation of inbound activities to prevent:
  - Denial of service via oversized payloads or message text
  - Injection of control characters into replies and logs
  - Markup injection through display names echoed back in mentions
  - Broken Markdown emphasis around names containing ``*`` or ``_``

Usage:
    from standup_bot.utils.validation import (
        validate_request_text,
        validate_activity_payload_size,
        escape_markup,
        InputTooLongError,
    )

    text = validate_request_text(activity.text)
"""

import html
import re
from typing import Optional


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_REQUEST_TEXT_LENGTH = 4096
MAX_ACTIVITY_PAYLOAD_BYTES = 256 * 1024

# Characters that should never appear in user-facing text
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

# Markdown emphasis and code characters
_MARKDOWN_CHAR_RE = re.compile(r"([\\`*_~])")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ValidationError(ValueError):
    """Base class for input validation errors."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InputTooLongError(ValidationError):
    """Raised when input exceeds maximum allowed length."""

    def __init__(self, field: str, length: int, max_length: int):
        self.length = length
        self.max_length = max_length
        super().__init__(
            f"Input for '{field}' is too long ({length} chars, max {max_length})",
            field=field,
        )


# ---------------------------------------------------------------------------
# Sanitization
# ---------------------------------------------------------------------------


def strip_control_characters(text: str) -> str:
    """Remove ASCII control characters (except tab, newline, carriage return)."""
    return _CONTROL_CHAR_RE.sub("", text)


def escape_markup(text: str) -> str:
    """
    Escape XML/HTML special characters.

    Display names are echoed back inside ``<at>...</at>`` mention markup, so
    a name such as ``"<b>Sam</b>"`` must not be interpreted by the client.

    Args:
        text: Input text.

    Returns:
        Escaped text.
    """
    return html.escape(text, quote=True)


def escape_markdown(text: str) -> str:
    """
    Backslash-escape Markdown emphasis and code characters.

    Present members are rendered in bold, so a name such as ``"a*b"`` must
    not close the emphasis early.
    """
    return _MARKDOWN_CHAR_RE.sub(r"\\\1", text)


# ---------------------------------------------------------------------------
# Field-specific validators
# ---------------------------------------------------------------------------


def validate_request_text(
    text: Optional[str],
    max_length: int = MAX_REQUEST_TEXT_LENGTH,
) -> str:
    """
    Validate and sanitize the text of an inbound message.

    Empty or missing text is allowed and becomes ``""``; it is treated as a
    plain order request downstream.

    Args:
        text: Raw message text (mentions already removed).
        max_length: Maximum allowed length.

    Returns:
        Sanitized, trimmed text.

    Raises:
        InputTooLongError: If text exceeds max_length.
    """
    if text is None:
        return ""

    text = strip_control_characters(text).strip()

    if len(text) > max_length:
        raise InputTooLongError("text", len(text), max_length)

    return text


def validate_activity_payload_size(payload_bytes: bytes) -> None:
    """
    Validate that an inbound activity doesn't exceed size limits.

    Raises:
        InputTooLongError: If payload exceeds maximum size.
    """
    if len(payload_bytes) > MAX_ACTIVITY_PAYLOAD_BYTES:
        raise InputTooLongError(
            "activity_payload",
            len(payload_bytes),
            MAX_ACTIVITY_PAYLOAD_BYTES,
        )
