"""
Input sanitization for chat text and credentials.
"""

from typing import Any

DEFAULT_MAX_LENGTH = 1000


def sanitize_input(text: Any, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """
    Clean user-supplied text before it reaches a backend.

    Non-strings become "", angle brackets are removed, surrounding
    whitespace is trimmed and the result is cut to ``max_length``.
    """
    if not isinstance(text, str):
        return ""
    cleaned = text.replace("<", "").replace(">", "").strip()
    return cleaned[:max_length]
