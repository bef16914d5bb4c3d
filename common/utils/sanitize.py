"""
Input sanitization helpers.
"""

import re
from typing import Optional

_MARKUP_CHARS = re.compile(r"[<>]")


def sanitize_input(value: Optional[str]) -> str:
    """
    Trim whitespace and strip angle brackets from user-supplied text.

    Args:
        value: Raw input (None becomes "")

    Returns:
        Sanitized string
    """
    if value is None:
        return ""
    return _MARKUP_CHARS.sub("", value.strip())
