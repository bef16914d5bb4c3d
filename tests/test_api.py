"""
HTTP-level tests for routing, auth guard and the error envelope.

Services are swapped through app.dependency_overrides; no database
connection is made (the lifespan does not run under ASGITransport).
"""

import httpx
import pytest
import pytest_asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from api import app
from common.utils.exceptions import ConflictException
from snapnote.dependencies import (
    get_client_ip,
    get_auth_middleware,
    get_entry_ledger,
    get_rate_limiter,
)
import snapnote.dependencies as dependencies
from snapnote.middleware import AuthMiddleware
from snapnote.schemas import CanWriteTodayResponse, EntryResponse


@pytest.fixture
def user(sample_user_id):
    return {"_id": ObjectId(sample_user_id), "email": "a@b.com"}


@pytest.fixture
def entry_ledger():
    return MagicMock(create_entry=AsyncMock(), has_entry_today=AsyncMock(return_value=False))


@pytest.fixture
def rate_limiter():
    return MagicMock(hit=AsyncMock(return_value=1))


@pytest.fixture
def overrides(jwt_auth, user, entry_ledger, rate_limiter):
    credential_store = MagicMock(get_user_by_id=AsyncMock(return_value=user))
    app.dependency_overrides[get_auth_middleware] = lambda: AuthMiddleware(jwt_auth, credential_store)
    app.dependency_overrides[get_entry_ledger] = lambda: entry_ledger
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(overrides):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers(jwt_auth, sample_user_id):
    return {"Authorization": f"Bearer {jwt_auth.create_access_token(sample_user_id)}"}


class TestJournalEndpoints:
    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get("/api/journal/can-write-today")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": {"message": "Access token is required", "code": "NO_TOKEN"},
        }

    @pytest.mark.asyncio
    async def test_can_write_today(self, client, auth_headers):
        response = await client.get("/api/journal/can-write-today", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"canWrite": True, "hasWrittenToday": False}
        CanWriteTodayResponse.model_validate(response.json()["data"])

    @pytest.mark.asyncio
    async def test_create_entry(self, client, auth_headers, entry_ledger, user, rate_limiter):
        now = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)
        entry_ledger.create_entry.return_value = {
            "_id": ObjectId(),
            "userId": user["_id"],
            "content": "Good day",
            "writingDuration": 42,
            "mood": "happy",
            "tags": [],
            "wordCount": 2,
            "characterCount": 8,
            "dayKey": "2026-03-10",
            "createdAt": now,
            "updatedAt": now,
        }

        response = await client.post(
            "/api/journal/entries",
            json={"content": "Good day", "writingDuration": 42, "mood": "happy"},
            headers={**auth_headers, "Timezone": "Europe/Stockholm"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["entry"]["wordCount"] == 2
        assert body["data"]["entry"]["estimatedReadingTime"] == 1
        EntryResponse.model_validate(body["data"]["entry"])

        kwargs = entry_ledger.create_entry.call_args.kwargs
        assert kwargs["metadata"]["timezone"] == "Europe/Stockholm"
        buckets = [c.args[0] for c in rate_limiter.hit.call_args_list]
        assert buckets == ["api", "entry_create"]
        assert rate_limiter.hit.call_args_list[1].args == ("entry_create", str(user["_id"]))

    @pytest.mark.asyncio
    async def test_forwarded_for_ignored_by_default(self, client, auth_headers, rate_limiter):
        await client.get(
            "/api/journal/can-write-today",
            headers={**auth_headers, "X-Forwarded-For": "203.0.113.7", "X-Real-IP": "203.0.113.8"},
        )

        key = rate_limiter.hit.call_args_list[0].args[1]
        assert key not in ("203.0.113.7", "203.0.113.8")

    @pytest.mark.asyncio
    async def test_second_entry_conflict_envelope(self, client, auth_headers, entry_ledger):
        entry_ledger.create_entry.side_effect = ConflictException(
            message="You have already written your journal entry for today",
            code="ALREADY_WRITTEN_TODAY",
        )

        response = await client.post(
            "/api/journal/entries",
            json={"content": "Again", "writingDuration": 10},
            headers=auth_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ALREADY_WRITTEN_TODAY"

    @pytest.mark.asyncio
    async def test_malformed_body_is_itemized(self, client, auth_headers):
        response = await client.post(
            "/api/journal/entries",
            json={"content": "No duration"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["errors"][0]["field"] == "writingDuration"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    async def test_non_finite_duration_rejected(self, client, auth_headers, entry_ledger, literal):
        response = await client.post(
            "/api/journal/entries",
            content=f'{{"content": "hello", "writingDuration": {literal}}}'.encode(),
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["errors"][0]["field"] == "writingDuration"
        entry_ledger.create_entry.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic(self, client, auth_headers, entry_ledger):
        entry_ledger.has_entry_today.side_effect = RuntimeError("boom")

        response = await client.get("/api/journal/can-write-today", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "ok"


class TestClientIp:
    @staticmethod
    def make_request(headers, host="10.0.0.5"):
        return MagicMock(headers=headers, client=MagicMock(host=host))

    def test_peer_address_used_by_default(self):
        request = self.make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "X-Real-IP": "203.0.113.8"})

        assert get_client_ip(request) == "10.0.0.5"

    def test_forwarded_for_honored_behind_trusted_proxy(self, monkeypatch):
        monkeypatch.setattr(dependencies, "_trust_proxy_headers", True)
        request = self.make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

        assert get_client_ip(request) == "203.0.113.7"

    def test_real_ip_fallback_behind_trusted_proxy(self, monkeypatch):
        monkeypatch.setattr(dependencies, "_trust_proxy_headers", True)
        request = self.make_request({"X-Real-IP": "203.0.113.8"})

        assert get_client_ip(request) == "203.0.113.8"

    def test_no_client_falls_back_to_unspecified(self):
        request = MagicMock(headers={}, client=None)

        assert get_client_ip(request) == "0.0.0.0"
