"""Shared test fixtures for SnapNote backend tests."""

import asyncio

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from common.auth import JWTAuth


@pytest.fixture
def sample_user_id():
    return str(ObjectId())


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() and aggregate() return cursors synchronously (not
    # coroutines), so use MagicMock for them. Async methods like find_one,
    # insert_one, count_documents etc. stay as AsyncMock.
    collection.find = MagicMock()
    collection.aggregate = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def jwt_auth():
    # Low bcrypt cost keeps the suite fast
    return JWTAuth(
        access_secret="test-access-secret",
        refresh_secret="test-refresh-secret",
        bcrypt_rounds=4,
    )


@pytest.fixture
def sample_user_doc(sample_user_id, jwt_auth):
    now = datetime.now(timezone.utc)
    return {
        "_id": ObjectId(sample_user_id),
        "email": "a@b.com",
        "passwordHash": jwt_auth.hash_password("Str0ng!Pass"),
        "isEmailVerified": False,
        "mfaEnabled": False,
        "mfaSecret": None,
        "mfaBackupCodes": [],
        "refreshTokens": [],
        "loginAttempts": 0,
        "lastLoginAt": None,
        "preferences": {"emailReminders": False, "theme": "light"},
        "createdAt": now,
        "updatedAt": now,
    }


def cursor_returning(items):
    """A Motor-like cursor whose chained calls end in to_list(items)."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=items)
    return cursor


@pytest.fixture
def make_cursor():
    return cursor_returning


class InMemoryEntries:
    """
    Just enough of a Motor collection to exercise the unique
    (userId, dayKey) index under concurrent inserts.

    Every call yields to the event loop first, so concurrent callers
    interleave between the pre-check and the insert.
    """

    def __init__(self):
        self.docs = []

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(key) == value for key, value in query.items())

    async def find_one(self, query, projection=None, **kwargs):
        await asyncio.sleep(0)
        for doc in self.docs:
            if self._matches(doc, query):
                return dict(doc)
        return None

    async def insert_one(self, doc):
        await asyncio.sleep(0)
        for existing in self.docs:
            if existing["userId"] == doc["userId"] and existing["dayKey"] == doc["dayKey"]:
                raise DuplicateKeyError("E11000 duplicate key error index: one_entry_per_day")
        doc["_id"] = ObjectId()
        self.docs.append(doc)
        result = MagicMock()
        result.inserted_id = doc["_id"]
        return result


@pytest.fixture
def memory_entries():
    return InMemoryEntries()


@pytest.fixture
def memory_db(memory_entries):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=memory_entries)
    return db
