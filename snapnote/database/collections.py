"""
SnapNote collection names and index setup.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)

USERS = "users"
JOURNAL_ENTRIES = "journalentries"
RATE_LIMITS = "ratelimits"


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create the indexes the services rely on.

    The unique (userId, dayKey) index is what actually enforces one entry
    per user per day; the pre-check in EntryLedger is only a fast path.
    """
    users = db[USERS]
    await users.create_index([("email", ASCENDING)], unique=True)
    await users.create_index([("refreshTokens.tokenHash", ASCENDING)])

    entries = db[JOURNAL_ENTRIES]
    await entries.create_index(
        [("userId", ASCENDING), ("dayKey", ASCENDING)],
        unique=True,
        name="one_entry_per_day",
    )
    await entries.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])

    rate_limits = db[RATE_LIMITS]
    await rate_limits.create_index(
        [("key", ASCENDING), ("windowStart", ASCENDING)],
        unique=True,
    )
    await rate_limits.create_index("expiresAt", expireAfterSeconds=0)

    logger.info("Database indexes ensured")
