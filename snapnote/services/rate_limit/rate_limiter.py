"""
Fixed-window rate limiting backed by MongoDB.

Each (bucket, client) pair gets one counter document per window. Counters
expire through the TTL index on expiresAt.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import RateLimitException
from snapnote.database import RATE_LIMITS

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = {"window": 15 * 60, "limit": 100}


class RateLimiter:
    """
    Counts requests per bucket and client key.

    limits example:
    {
        "login": {"window": 900, "limit": 10},
        "sensitive": {"window": 900, "limit": 3},
    }
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        limits: Dict[str, Dict[str, int]],
        enabled: bool = True,
    ):
        """
        Initialize RateLimiter.

        Args:
            db: MongoDB database connection
            limits: Bucket name -> {"window": seconds, "limit": max requests}
            enabled: When False, hit() never counts or raises
        """
        self._db = db
        self._limits = limits
        self._enabled = enabled
        self._collection = db[RATE_LIMITS]

    async def hit(
        self,
        bucket: str,
        client_key: str,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Count one request and enforce the bucket limit.

        Args:
            bucket: Operation class, e.g. "login"
            client_key: Client identifier (IP address or user ID)
            now: Current time (defaults to UTC now)

        Returns:
            Request count in the current window (0 when disabled)

        Raises:
            RateLimitException: Limit exceeded for this window
        """
        if not self._enabled:
            return 0

        cfg = self._limits.get(bucket, DEFAULT_LIMIT)
        window = cfg["window"]
        now = now or datetime.now(timezone.utc)

        epoch = int(now.timestamp())
        window_start_epoch = epoch - (epoch % window)
        window_start = datetime.fromtimestamp(window_start_epoch, tz=timezone.utc)
        window_end = window_start + timedelta(seconds=window)

        key = f"{bucket}:{client_key}"
        count = await self._increment(key, window_start, window_end)

        if count > cfg["limit"]:
            retry_after = max(1, int((window_end - now).total_seconds()))
            logger.warning(f"Rate limit exceeded for bucket {bucket} ({count}/{cfg['limit']})")
            raise RateLimitException(retry_after=retry_after)

        return count

    async def _increment(self, key: str, window_start: datetime, window_end: datetime) -> int:
        query = {"key": key, "windowStart": window_start}
        update = {
            "$inc": {"count": 1},
            "$setOnInsert": {"expiresAt": window_end},
        }

        try:
            doc = await self._collection.find_one_and_update(
                query,
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # Two upserts raced to create the window; the document exists now
            doc = await self._collection.find_one_and_update(
                query,
                update,
                return_document=ReturnDocument.AFTER,
            )

        return doc["count"] if doc else 1
