"""
Journal entry storage.

Enforces one entry per user per UTC day. The unique (userId, dayKey) index
is the source of truth; the find_one pre-check only saves a round trip in
the common case.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from common.utils import sanitize_input
from common.utils.exceptions import ConflictException, NotFoundException, ValidationException
from snapnote.database import JOURNAL_ENTRIES
from snapnote.services.auth.credential_store import to_object_id
from snapnote.services.journal.entry_rules import (
    DEFAULT_MOOD,
    clean_tags,
    day_key,
    derive_entry_fields,
    month_day_range,
    validate_entry,
)

logger = logging.getLogger(__name__)


class EntryLedger:
    """
    Handles journal entry storage and retrieval.
    Entries are immutable once written.
    """

    DEFAULT_LIMIT = 20
    MAX_LIMIT = 50

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize EntryLedger.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._entries_collection = db[JOURNAL_ENTRIES]

    async def create_entry(
        self,
        user_id: Union[str, ObjectId],
        content: Optional[str],
        writing_duration: Any,
        mood: Optional[str] = None,
        tags: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Write today's entry for a user.

        Args:
            user_id: MongoDB user ID
            content: Raw entry text (sanitized here)
            writing_duration: Seconds spent writing, in (0, 60]
            mood: Optional mood, defaults to neutral
            tags: Optional tags
            metadata: ipAddress / userAgent / timezone of the client
            now: Creation instant (defaults to current UTC time)

        Returns:
            Saved entry document

        Raises:
            ValidationException: Itemized field errors
            ConflictException: An entry already exists for this UTC day
        """
        sanitized_content = sanitize_input(content)
        cleaned_tags = clean_tags(tags)

        errors = validate_entry(sanitized_content, writing_duration, mood, cleaned_tags)
        if errors:
            raise ValidationException(
                message="Validation failed",
                code="VALIDATION_ERROR",
                errors=errors,
            )

        now = now or datetime.now(timezone.utc)
        oid = to_object_id(user_id)
        derived = derive_entry_fields(sanitized_content, now)

        existing = await self._entries_collection.find_one(
            {"userId": oid, "dayKey": derived["dayKey"]},
            {"_id": 1},
        )
        if existing:
            raise self._already_written()

        metadata = metadata or {}
        entry = {
            "userId": oid,
            "content": sanitized_content,
            "writingDuration": writing_duration,
            "mood": mood or DEFAULT_MOOD,
            "tags": cleaned_tags,
            "metadata": {
                "ipAddress": metadata.get("ipAddress"),
                "userAgent": metadata.get("userAgent"),
                "timezone": metadata.get("timezone") or "UTC",
            },
            "createdAt": now,
            "updatedAt": now,
            **derived,
        }

        try:
            result = await self._entries_collection.insert_one(entry)
        except DuplicateKeyError:
            # Concurrent submission won the unique (userId, dayKey) index
            raise self._already_written()

        entry["_id"] = result.inserted_id
        logger.info(f"Journal entry created for user {user_id} on {derived['dayKey']}")
        return entry

    async def has_entry_today(
        self,
        user_id: Union[str, ObjectId],
        now: Optional[datetime] = None,
    ) -> bool:
        """True if the user already wrote during the current UTC day."""
        entry = await self._entries_collection.find_one(
            {"userId": to_object_id(user_id), "dayKey": day_key(now)},
            {"_id": 1},
        )
        return entry is not None

    async def list_entries(
        self,
        user_id: Union[str, ObjectId],
        page: int = 1,
        limit: int = DEFAULT_LIMIT,
        month: Optional[int] = None,
        year: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Get a page of entries, newest first.

        Args:
            user_id: MongoDB user ID
            page: 1-indexed page number
            limit: Page size (clamped to 1..50)
            month: Month filter, only applied together with year
            year: Year filter, only applied together with month
            search: Case-insensitive literal match on content

        Returns:
            tuple of (entries, total matching count)
        """
        page = max(1, page)
        limit = min(self.MAX_LIMIT, max(1, limit))

        query: Dict[str, Any] = {"userId": to_object_id(user_id)}

        if month is not None and year is not None and 1 <= month <= 12:
            start, end = month_day_range(year, month)
            query["dayKey"] = {"$gte": start, "$lt": end}

        if search and search.strip():
            term = sanitize_input(search)
            if term:
                query["content"] = {"$regex": re.escape(term), "$options": "i"}

        cursor = self._entries_collection.find(query, {"metadata": 0})
        cursor = cursor.sort("createdAt", -1)
        cursor = cursor.skip((page - 1) * limit)
        cursor = cursor.limit(limit)

        entries = await cursor.to_list(length=limit)
        total = await self._entries_collection.count_documents(query)

        return entries, total

    async def get_entry(
        self,
        user_id: Union[str, ObjectId],
        entry_id: str,
    ) -> Dict[str, Any]:
        """
        Get one entry owned by the user.

        Raises:
            NotFoundException: Unknown id, malformed id, or owned by someone else
        """
        try:
            entry_oid = ObjectId(entry_id)
        except (InvalidId, TypeError):
            raise self._entry_not_found()

        entry = await self._entries_collection.find_one(
            {"_id": entry_oid, "userId": to_object_id(user_id)},
            {"metadata": 0},
        )
        if not entry:
            raise self._entry_not_found()

        return entry

    async def get_calendar(
        self,
        user_id: Union[str, ObjectId],
        year: Optional[int] = None,
        month: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Get the days of one month that have an entry.

        Args:
            user_id: MongoDB user ID
            year: Defaults to the current UTC year
            month: 1-12, defaults to the current UTC month

        Returns:
            dict with year, month and entries [{date, mood, wordCount, hasEntry}]

        Raises:
            ValidationException: Month outside 1-12
        """
        now = now or datetime.now(timezone.utc)
        target_year = year if year is not None else now.year
        target_month = month if month is not None else now.month

        if target_month < 1 or target_month > 12:
            raise ValidationException(
                message="Month must be between 1 and 12",
                code="INVALID_MONTH",
                errors=[{"field": "month", "message": "Month must be between 1 and 12"}],
            )

        start, end = month_day_range(target_year, target_month)
        cursor = self._entries_collection.find(
            {
                "userId": to_object_id(user_id),
                "dayKey": {"$gte": start, "$lt": end},
            },
            {"dayKey": 1, "mood": 1, "wordCount": 1},
        ).sort("dayKey", 1)

        entries = await cursor.to_list(length=None)

        return {
            "year": target_year,
            "month": target_month,
            "entries": [
                {
                    "date": entry["dayKey"],
                    "mood": entry.get("mood"),
                    "wordCount": entry.get("wordCount", 0),
                    "hasEntry": True,
                }
                for entry in entries
            ],
        }

    async def get_day_keys_since(
        self,
        user_id: Union[str, ObjectId],
        since_day_key: str,
    ) -> List[str]:
        """Day keys of all entries on or after a given day."""
        cursor = self._entries_collection.find(
            {"userId": to_object_id(user_id), "dayKey": {"$gte": since_day_key}},
            {"dayKey": 1},
        )
        entries = await cursor.to_list(length=None)
        return [entry["dayKey"] for entry in entries]

    async def count_entries(self, user_id: Union[str, ObjectId]) -> int:
        return await self._entries_collection.count_documents({"userId": to_object_id(user_id)})

    async def get_first_and_last(
        self,
        user_id: Union[str, ObjectId],
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Oldest and newest entry of a user (None, None when there are none)."""
        oid = to_object_id(user_id)
        projection = {"dayKey": 1, "createdAt": 1}
        first = await self._entries_collection.find_one(
            {"userId": oid}, projection, sort=[("createdAt", 1)]
        )
        last = await self._entries_collection.find_one(
            {"userId": oid}, projection, sort=[("createdAt", -1)]
        )
        return first, last

    async def get_all_entries(self, user_id: Union[str, ObjectId]) -> List[Dict[str, Any]]:
        """Every entry of a user, newest first. Used by data export."""
        cursor = self._entries_collection.find(
            {"userId": to_object_id(user_id)},
            {"metadata": 0},
        ).sort("createdAt", -1)
        return await cursor.to_list(length=None)

    async def delete_all_for_user(self, user_id: Union[str, ObjectId]) -> int:
        """
        Remove every entry of a user.

        Returns:
            Number of entries deleted
        """
        result = await self._entries_collection.delete_many({"userId": to_object_id(user_id)})
        logger.info(f"Deleted {result.deleted_count} journal entries for user {user_id}")
        return result.deleted_count

    @staticmethod
    def _already_written() -> ConflictException:
        return ConflictException(
            message="You have already written your journal entry for today",
            code="ALREADY_WRITTEN_TODAY",
        )

    @staticmethod
    def _entry_not_found() -> NotFoundException:
        return NotFoundException(
            message="The requested journal entry was not found",
            code="ENTRY_NOT_FOUND",
        )
