"""
Journal Services

Entry rules, storage and analytics for daily journal entries.
"""

from snapnote.services.journal.entry_ledger import EntryLedger
from snapnote.services.journal.journal_analytics import JournalAnalytics

__all__ = [
    "EntryLedger",
    "JournalAnalytics",
]
