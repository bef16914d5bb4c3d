"""Unit tests for profile, export and account pipelines."""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from snapnote.pipelines.user import (
    delete_account_pipeline,
    export_data_pipeline,
    get_profile_pipeline,
)


@pytest.fixture
def account_service(sample_user_id):
    now = datetime(2026, 3, 10, tzinfo=timezone.utc)
    service = MagicMock()
    service.get_profile = AsyncMock(return_value={"_id": ObjectId(sample_user_id), "email": "a@b.com"})
    service.export_all = AsyncMock(return_value={
        "user": {"_id": ObjectId(sample_user_id), "email": "a@b.com"},
        "entries": [
            {"_id": ObjectId(), "content": "one two", "wordCount": 2, "createdAt": now},
            {"_id": ObjectId(), "content": "three", "wordCount": 1, "createdAt": now},
        ],
        "exportedAt": now,
    })
    service.delete_account = AsyncMock()
    return service


class TestUserPipelines:
    @pytest.mark.asyncio
    async def test_profile_is_formatted(self, account_service, sample_user_id):
        result = await get_profile_pipeline(account_service=account_service, user_id=sample_user_id)

        assert result["user"]["id"] == sample_user_id
        assert result["user"]["email"] == "a@b.com"

    @pytest.mark.asyncio
    async def test_export_shape(self, account_service, sample_user_id):
        result = await export_data_pipeline(account_service=account_service, user_id=sample_user_id)

        assert result["user"]["id"] == sample_user_id
        assert result["totalEntries"] == 2
        assert [e["wordCount"] for e in result["journalEntries"]] == [2, 1]
        assert result["exportDate"] == datetime(2026, 3, 10, tzinfo=timezone.utc)
        account_service.export_all.assert_awaited_once_with(sample_user_id, "json")

    @pytest.mark.asyncio
    async def test_delete_passes_phrase_through(self, account_service, sample_user_id):
        result = await delete_account_pipeline(
            account_service=account_service,
            user_id=sample_user_id,
            password="Str0ng!Pass",
            confirmation_text="DELETE MY ACCOUNT",
        )

        assert result == {"message": "Account deleted successfully"}
        account_service.delete_account.assert_awaited_once_with(
            sample_user_id, "Str0ng!Pass", "DELETE MY ACCOUNT"
        )
