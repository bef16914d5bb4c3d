"""
SnapNote-specific database utilities.

Provides collection names and index setup for the SnapNote application.
"""

from snapnote.database.collections import (
    USERS,
    JOURNAL_ENTRIES,
    RATE_LIMITS,
    ensure_indexes,
)

__all__ = [
    "USERS",
    "JOURNAL_ENTRIES",
    "RATE_LIMITS",
    "ensure_indexes",
]
