"""
Journal analytics service.

Handles streaks, monthly/mood aggregation and consistency rate.
"""

import logging
import math
from datetime import datetime, timezone, timedelta, date
from typing import Iterable, List, Dict, Any, Optional, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from snapnote.database import JOURNAL_ENTRIES
from snapnote.services.auth.credential_store import as_utc, to_object_id
from snapnote.services.journal.entry_ledger import EntryLedger
from snapnote.services.journal.entry_rules import DAY_KEY_FORMAT

logger = logging.getLogger(__name__)

MAX_STREAK_DAYS = 365


def _parse_day(value: str) -> date:
    return datetime.strptime(value, DAY_KEY_FORMAT).date()


def _round2(value: Optional[float]) -> float:
    return round(value or 0, 2)


def compute_streak(
    day_keys: Iterable[str],
    today: date,
    max_days: int = MAX_STREAK_DAYS,
) -> int:
    """
    Count consecutive written days walking backward from today.

    A missing entry today does not end the streak, since today can still
    be written. Any earlier missing day ends it. Scans at most max_days.

    Args:
        day_keys: Day keys of the user's entries
        today: Current UTC date
        max_days: Upper bound on the streak

    Returns:
        Streak length in days
    """
    written = set(day_keys)
    streak = 0
    check = today

    if check.strftime(DAY_KEY_FORMAT) not in written:
        check -= timedelta(days=1)

    while streak < max_days and check.strftime(DAY_KEY_FORMAT) in written:
        streak += 1
        check -= timedelta(days=1)

    return streak


def compute_consistency_rate(total_entries: int, first_day: Optional[date], today: date) -> int:
    """
    Percentage of days with an entry since the first one, capped at 100.

    Returns 0 when there are no entries.
    """
    if not total_entries or first_day is None:
        return 0

    days_since_first = max(0, (today - first_day).days)
    rate = math.floor(total_entries / (days_since_first + 1) * 100 + 0.5)
    return min(100, rate)


class JournalAnalytics:
    """
    Statistics derived from the entry ledger.
    """

    def __init__(self, db: AsyncIOMotorDatabase, entry_ledger: EntryLedger):
        """
        Initialize JournalAnalytics.

        Args:
            db: MongoDB database connection (for aggregations)
            entry_ledger: For entry lookups
        """
        self._db = db
        self._entry_ledger = entry_ledger
        self._entries_collection = db[JOURNAL_ENTRIES]

    async def current_streak(
        self,
        user_id: Union[str, ObjectId],
        now: Optional[datetime] = None,
    ) -> int:
        """Current writing streak for a user."""
        today = (now or datetime.now(timezone.utc)).date()
        since = (today - timedelta(days=MAX_STREAK_DAYS)).strftime(DAY_KEY_FORMAT)
        day_keys = await self._entry_ledger.get_day_keys_since(user_id, since)
        return compute_streak(day_keys, today)

    async def monthly_aggregate(
        self,
        user_id: Union[str, ObjectId],
        year: int,
    ) -> List[Dict[str, Any]]:
        """
        Per-month totals for one year.

        Returns:
            Twelve rows {month, entries, totalWords, totalCharacters,
            avgWritingDuration}, months without entries zero-filled
        """
        pipeline = [
            {
                "$match": {
                    "userId": to_object_id(user_id),
                    "dayKey": {"$gte": f"{year:04d}-01-01", "$lt": f"{year + 1:04d}-01-01"},
                }
            },
            {
                "$group": {
                    "_id": {"$month": "$createdAt"},
                    "count": {"$sum": 1},
                    "totalWords": {"$sum": "$wordCount"},
                    "totalCharacters": {"$sum": "$characterCount"},
                    "avgWritingDuration": {"$avg": "$writingDuration"},
                }
            },
            {"$sort": {"_id": 1}},
        ]

        rows = await self._entries_collection.aggregate(pipeline).to_list(length=None)
        by_month = {row["_id"]: row for row in rows}

        monthly = []
        for month in range(1, 13):
            row = by_month.get(month, {})
            monthly.append({
                "month": month,
                "entries": row.get("count", 0),
                "totalWords": row.get("totalWords", 0),
                "totalCharacters": row.get("totalCharacters", 0),
                "avgWritingDuration": _round2(row.get("avgWritingDuration")),
            })

        return monthly

    async def mood_distribution(self, user_id: Union[str, ObjectId]) -> Dict[str, int]:
        """Mood -> entry count over all of a user's entries."""
        pipeline = [
            {"$match": {"userId": to_object_id(user_id)}},
            {"$group": {"_id": "$mood", "count": {"$sum": 1}}},
        ]
        rows = await self._entries_collection.aggregate(pipeline).to_list(length=None)
        return {row["_id"]: row["count"] for row in rows}

    async def consistency_rate(
        self,
        user_id: Union[str, ObjectId],
        now: Optional[datetime] = None,
    ) -> int:
        today = (now or datetime.now(timezone.utc)).date()
        total = await self._entry_ledger.count_entries(user_id)
        first, _ = await self._entry_ledger.get_first_and_last(user_id)
        first_day = _parse_day(first["dayKey"]) if first else None
        return compute_consistency_rate(total, first_day, today)

    async def get_summary(
        self,
        user_id: Union[str, ObjectId],
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Full journal statistics for the stats endpoint.

        Returns:
            dict with keys:
                - summary: totals, averages, currentStreak, hasWrittenToday
                - monthlyStats: current-year monthly_aggregate rows
                - moodDistribution: mood -> count
        """
        now = now or datetime.now(timezone.utc)

        pipeline = [
            {"$match": {"userId": to_object_id(user_id)}},
            {
                "$group": {
                    "_id": None,
                    "totalEntries": {"$sum": 1},
                    "totalWords": {"$sum": "$wordCount"},
                    "totalCharacters": {"$sum": "$characterCount"},
                    "avgWritingDuration": {"$avg": "$writingDuration"},
                    "avgWordsPerEntry": {"$avg": "$wordCount"},
                }
            },
        ]
        rows = await self._entries_collection.aggregate(pipeline).to_list(length=None)
        totals = rows[0] if rows else {}

        return {
            "summary": {
                "totalEntries": totals.get("totalEntries", 0),
                "currentStreak": await self.current_streak(user_id, now),
                "hasWrittenToday": await self._entry_ledger.has_entry_today(user_id, now),
                "totalWords": totals.get("totalWords", 0),
                "totalCharacters": totals.get("totalCharacters", 0),
                "averageWritingDuration": _round2(totals.get("avgWritingDuration")),
                "averageWordsPerEntry": _round2(totals.get("avgWordsPerEntry")),
            },
            "monthlyStats": await self.monthly_aggregate(user_id, now.year),
            "moodDistribution": await self.mood_distribution(user_id),
        }

    async def get_account_stats(
        self,
        user: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Account age and journaling consistency for the profile stats page.

        Args:
            user: User document (needs _id, createdAt, lastLoginAt)
        """
        now = now or datetime.now(timezone.utc)
        today = now.date()
        user_id = user["_id"]

        total = await self._entry_ledger.count_entries(user_id)
        first, last = await self._entry_ledger.get_first_and_last(user_id)

        first_day = _parse_day(first["dayKey"]) if first else None
        days_since_first = (today - first_day).days if first_day else 0

        joined = as_utc(user.get("createdAt"))
        account_days = (now - joined).days if joined else 0

        return {
            "accountAge": {
                "days": max(0, account_days),
                "joinDate": joined,
            },
            "journaling": {
                "totalEntries": total,
                "firstEntryDate": first["createdAt"] if first else None,
                "lastEntryDate": last["createdAt"] if last else None,
                "daysSinceFirstEntry": days_since_first,
                "consistencyRate": compute_consistency_rate(total, first_day, today),
            },
            "lastLogin": user.get("lastLoginAt"),
        }
