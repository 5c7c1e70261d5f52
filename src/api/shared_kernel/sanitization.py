"""Free-text input cleanup applied to request payloads.

Strips markup and inline script handlers from names and contact fields
before they are stored. Passwords and tokens are never passed through here.
"""

from __future__ import annotations

import re
from typing import Any

_TAG = re.compile(r"<[^>]*>")
_SCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def sanitize_text(value: str) -> str:
    """Remove HTML tags, ``javascript:`` and ``on*=`` handlers; collapse whitespace.

    Example:
        >>> sanitize_text("  <b>Ana</b>   Souza ")
        'Ana Souza'
    """
    cleaned = _TAG.sub("", value.strip())
    cleaned = _SCRIPT_SCHEME.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def sanitize_input(value: Any) -> Any:
    """Pydantic ``mode="before"`` hook: sanitize strings, pass anything else."""
    if isinstance(value, str):
        return sanitize_text(value)
    return value
