"""
Journal pipeline functions.

Stateless orchestration logic for journal entry operations.
"""

import logging
from typing import Optional, List, Dict, Any

from snapnote.services.journal.entry_ledger import EntryLedger
from snapnote.services.journal.journal_analytics import JournalAnalytics
from snapnote.services.journal.entry_rules import estimated_reading_time

logger = logging.getLogger(__name__)


async def create_entry_pipeline(
    entry_ledger: EntryLedger,
    user_id: str,
    content: str,
    writing_duration: float,
    mood: Optional[str] = None,
    tags: Optional[List[str]] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Write today's journal entry.

    Args:
        entry_ledger: For entry persistence
        user_id: Current user's ID
        content: Entry text
        writing_duration: Seconds spent writing
        mood: Optional mood
        tags: Optional tags
        metadata: Client ipAddress / userAgent / timezone

    Returns:
        dict with the formatted entry

    Raises:
        ValidationException: Invalid entry fields
        ConflictException: Already written today
    """
    entry = await entry_ledger.create_entry(
        user_id=user_id,
        content=content,
        writing_duration=writing_duration,
        mood=mood,
        tags=tags,
        metadata=metadata
    )

    return {"entry": format_entry(entry)}


async def list_entries_pipeline(
    entry_ledger: EntryLedger,
    user_id: str,
    page: int = 1,
    limit: int = 20,
    month: Optional[int] = None,
    year: Optional[int] = None,
    search: Optional[str] = None
) -> Dict[str, Any]:
    """
    Get a page of entries with pagination metadata.

    Returns:
        dict with entries, pagination and hasWrittenToday
    """
    page = max(1, page)
    limit = min(EntryLedger.MAX_LIMIT, max(1, limit))

    entries, total = await entry_ledger.list_entries(
        user_id=user_id,
        page=page,
        limit=limit,
        month=month,
        year=year,
        search=search
    )

    total_pages = (total + limit - 1) // limit

    return {
        "entries": [format_entry(e) for e in entries],
        "pagination": {
            "currentPage": page,
            "totalPages": total_pages,
            "totalEntries": total,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1
        },
        "hasWrittenToday": await entry_ledger.has_entry_today(user_id)
    }


async def get_entry_pipeline(
    entry_ledger: EntryLedger,
    user_id: str,
    entry_id: str
) -> Dict[str, Any]:
    """
    Get one entry owned by the current user.

    Raises:
        NotFoundException: Entry missing or owned by someone else
    """
    entry = await entry_ledger.get_entry(user_id, entry_id)
    return {"entry": format_entry(entry)}


async def can_write_today_pipeline(
    entry_ledger: EntryLedger,
    user_id: str
) -> Dict[str, bool]:
    has_written = await entry_ledger.has_entry_today(user_id)
    return {
        "canWrite": not has_written,
        "hasWrittenToday": has_written
    }


async def get_stats_pipeline(
    journal_analytics: JournalAnalytics,
    user_id: str
) -> Dict[str, Any]:
    return await journal_analytics.get_summary(user_id)


async def get_calendar_pipeline(
    entry_ledger: EntryLedger,
    user_id: str,
    year: Optional[int] = None,
    month: Optional[int] = None
) -> Dict[str, Any]:
    return await entry_ledger.get_calendar(user_id, year=year, month=month)


def format_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Format entry document for API response."""
    word_count = entry.get("wordCount", 0)
    return {
        "id": str(entry["_id"]),
        "content": entry.get("content"),
        "wordCount": word_count,
        "characterCount": entry.get("characterCount", 0),
        "writingDuration": entry.get("writingDuration"),
        "mood": entry.get("mood"),
        "tags": entry.get("tags", []),
        "dayKey": entry.get("dayKey"),
        "estimatedReadingTime": estimated_reading_time(word_count),
        "createdAt": entry.get("createdAt"),
        "updatedAt": entry.get("updatedAt")
    }
