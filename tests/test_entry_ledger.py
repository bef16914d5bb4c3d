"""
Unit tests for EntryLedger.

Tests the once-per-day rule, validation and owner-scoped reads.
"""

import asyncio

import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import ConflictException, NotFoundException, ValidationException
from snapnote.schemas import CalendarResponse
from snapnote.services.journal.entry_ledger import EntryLedger


NOW = datetime(2026, 3, 10, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def ledger(mock_db):
    return EntryLedger(db=mock_db)


# ─────────────────────────────────────────────────────────────────
# create_entry
# ─────────────────────────────────────────────────────────────────

class TestCreateEntry:
    @pytest.mark.asyncio
    async def test_creates_entry_with_derived_fields(self, ledger, mock_collection, sample_user_id):
        mock_collection.find_one.return_value = None
        mock_collection.insert_one.return_value = MagicMock(inserted_id=ObjectId())

        entry = await ledger.create_entry(
            sample_user_id,
            "  Today was a <b>good</b> day  ",
            45,
            tags=["work", "  "],
            metadata={"ipAddress": "1.2.3.4"},
            now=NOW,
        )

        assert entry["content"] == "Today was a bgood/b day"
        assert entry["wordCount"] == 5
        assert entry["characterCount"] == len("Today was a bgood/b day")
        assert entry["dayKey"] == "2026-03-10"
        assert entry["mood"] == "neutral"
        assert entry["tags"] == ["work"]
        assert entry["metadata"] == {"ipAddress": "1.2.3.4", "userAgent": None, "timezone": "UTC"}
        assert entry["userId"] == ObjectId(sample_user_id)

    @pytest.mark.asyncio
    async def test_duration_over_sixty_seconds_rejected(self, ledger, mock_collection, sample_user_id):
        with pytest.raises(ValidationException) as exc_info:
            await ledger.create_entry(sample_user_id, "Too slow", 61, now=NOW)

        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.details["errors"][0]["field"] == "writingDuration"
        mock_collection.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_nan_duration_rejected_and_nothing_stored(self, memory_db, memory_entries, sample_user_id):
        ledger = EntryLedger(db=memory_db)

        with pytest.raises(ValidationException) as exc_info:
            await ledger.create_entry(sample_user_id, "Timeless", float("nan"), now=NOW)

        assert exc_info.value.details["errors"][0]["field"] == "writingDuration"
        assert memory_entries.docs == []

    @pytest.mark.asyncio
    async def test_content_empty_after_sanitizing_rejected(self, ledger, sample_user_id):
        with pytest.raises(ValidationException) as exc_info:
            await ledger.create_entry(sample_user_id, "  <> ", 10, now=NOW)

        assert exc_info.value.details["errors"][0]["message"] == "Journal entry cannot be empty"

    @pytest.mark.asyncio
    async def test_second_entry_same_day_conflicts(self, ledger, mock_collection, sample_user_id):
        mock_collection.find_one.return_value = {"_id": ObjectId()}

        with pytest.raises(ConflictException) as exc_info:
            await ledger.create_entry(sample_user_id, "Again", 10, now=NOW)

        assert exc_info.value.code == "ALREADY_WRITTEN_TODAY"
        mock_collection.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_unique_index_violation_conflicts(self, ledger, mock_collection, sample_user_id):
        mock_collection.find_one.return_value = None
        mock_collection.insert_one.side_effect = DuplicateKeyError("E11000")

        with pytest.raises(ConflictException) as exc_info:
            await ledger.create_entry(sample_user_id, "Raced", 10, now=NOW)

        assert exc_info.value.code == "ALREADY_WRITTEN_TODAY"

    @pytest.mark.asyncio
    async def test_concurrent_submissions_store_exactly_one(self, memory_db, memory_entries, sample_user_id):
        ledger = EntryLedger(db=memory_db)

        results = await asyncio.gather(
            *[ledger.create_entry(sample_user_id, f"Entry {i}", 30, now=NOW) for i in range(5)],
            return_exceptions=True,
        )

        created = [r for r in results if isinstance(r, dict)]
        conflicts = [r for r in results if isinstance(r, ConflictException)]
        assert len(created) == 1
        assert len(conflicts) == 4
        assert len(memory_entries.docs) == 1

    @pytest.mark.asyncio
    async def test_new_utc_day_allows_new_entry(self, memory_db, memory_entries, sample_user_id):
        ledger = EntryLedger(db=memory_db)

        await ledger.create_entry(sample_user_id, "Late", 30, now=datetime(2026, 3, 10, 23, 59, tzinfo=timezone.utc))
        await ledger.create_entry(sample_user_id, "Early", 30, now=datetime(2026, 3, 11, 0, 1, tzinfo=timezone.utc))

        assert [doc["dayKey"] for doc in memory_entries.docs] == ["2026-03-10", "2026-03-11"]


# ─────────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────────

class TestListEntries:
    @pytest.mark.asyncio
    async def test_pages_newest_first(self, ledger, mock_collection, make_cursor, sample_user_id):
        cursor = make_cursor([{"_id": ObjectId()}])
        mock_collection.find.return_value = cursor
        mock_collection.count_documents.return_value = 21

        entries, total = await ledger.list_entries(sample_user_id, page=2, limit=20)

        assert len(entries) == 1
        assert total == 21
        cursor.sort.assert_called_once_with("createdAt", -1)
        cursor.skip.assert_called_once_with(20)
        cursor.limit.assert_called_once_with(20)

    @pytest.mark.asyncio
    async def test_limit_clamped_to_fifty(self, ledger, mock_collection, make_cursor, sample_user_id):
        cursor = make_cursor([])
        mock_collection.find.return_value = cursor
        mock_collection.count_documents.return_value = 0

        await ledger.list_entries(sample_user_id, limit=500)

        cursor.limit.assert_called_once_with(50)

    @pytest.mark.asyncio
    async def test_month_filter_needs_year(self, ledger, mock_collection, make_cursor, sample_user_id):
        mock_collection.find.return_value = make_cursor([])
        mock_collection.count_documents.return_value = 0

        await ledger.list_entries(sample_user_id, month=3)
        assert "dayKey" not in mock_collection.find.call_args[0][0]

        await ledger.list_entries(sample_user_id, month=3, year=2026)
        assert mock_collection.find.call_args[0][0]["dayKey"] == {"$gte": "2026-03-01", "$lt": "2026-04-01"}

    @pytest.mark.asyncio
    async def test_search_is_literal(self, ledger, mock_collection, make_cursor, sample_user_id):
        mock_collection.find.return_value = make_cursor([])
        mock_collection.count_documents.return_value = 0

        await ledger.list_entries(sample_user_id, search="a.b*")

        query = mock_collection.find.call_args[0][0]
        assert query["content"] == {"$regex": r"a\.b\*", "$options": "i"}


class TestGetEntry:
    @pytest.mark.asyncio
    async def test_scoped_to_owner(self, ledger, mock_collection, sample_user_id):
        entry_id = ObjectId()
        mock_collection.find_one.return_value = {"_id": entry_id}

        await ledger.get_entry(sample_user_id, str(entry_id))

        query = mock_collection.find_one.call_args[0][0]
        assert query == {"_id": entry_id, "userId": ObjectId(sample_user_id)}

    @pytest.mark.asyncio
    async def test_foreign_entry_not_found(self, ledger, mock_collection, sample_user_id):
        mock_collection.find_one.return_value = None

        with pytest.raises(NotFoundException) as exc_info:
            await ledger.get_entry(sample_user_id, str(ObjectId()))

        assert exc_info.value.code == "ENTRY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_malformed_id_not_found(self, ledger, mock_collection, sample_user_id):
        with pytest.raises(NotFoundException):
            await ledger.get_entry(sample_user_id, "nope")

        mock_collection.find_one.assert_not_called()


class TestCalendar:
    @pytest.mark.asyncio
    async def test_lists_written_days(self, ledger, mock_collection, make_cursor, sample_user_id):
        mock_collection.find.return_value = make_cursor([
            {"dayKey": "2026-03-01", "mood": "happy", "wordCount": 12},
            {"dayKey": "2026-03-04", "mood": "sad", "wordCount": 3},
        ])

        calendar = await ledger.get_calendar(sample_user_id, now=NOW)

        assert calendar["year"] == 2026
        assert calendar["month"] == 3
        assert calendar["entries"][0] == {
            "date": "2026-03-01",
            "mood": "happy",
            "wordCount": 12,
            "hasEntry": True,
        }
        CalendarResponse.model_validate(calendar)

    @pytest.mark.asyncio
    async def test_invalid_month(self, ledger, sample_user_id):
        with pytest.raises(ValidationException) as exc_info:
            await ledger.get_calendar(sample_user_id, year=2026, month=13)

        assert exc_info.value.code == "INVALID_MONTH"


class TestDeleteAll:
    @pytest.mark.asyncio
    async def test_returns_deleted_count(self, ledger, mock_collection, sample_user_id):
        mock_collection.delete_many.return_value = MagicMock(deleted_count=7)

        assert await ledger.delete_all_for_user(sample_user_id) == 7
        mock_collection.delete_many.assert_awaited_once_with({"userId": ObjectId(sample_user_id)})
