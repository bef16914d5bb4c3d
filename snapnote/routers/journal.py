"""
FastAPI router for Journal endpoints.

Provides endpoints for writing and reading daily journal entries.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request

from snapnote.dependencies import (
    require_auth,
    rate_limit,
    get_client_ip,
    get_user_agent,
    get_entry_ledger,
    get_journal_analytics,
)
from snapnote.services.journal.entry_ledger import EntryLedger
from snapnote.services.journal.journal_analytics import JournalAnalytics
from snapnote.schemas.journal import CreateEntryRequest
from snapnote.pipelines import journal as pipelines
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/journal", tags=["journal"])


@router.post(
    "/entries",
    status_code=201,
    dependencies=[Depends(rate_limit("entry_create", per_user=True))],
)
async def create_entry(
    request: Request,
    body: CreateEntryRequest,
    user: Annotated[dict, Depends(require_auth)],
    entry_ledger: Annotated[EntryLedger, Depends(get_entry_ledger)],
):
    """
    Write today's journal entry.

    At most one entry per user per UTC day.
    """
    metadata = {
        "ipAddress": get_client_ip(request),
        "userAgent": get_user_agent(request),
        "timezone": request.headers.get("Timezone") or "UTC",
    }

    result = await pipelines.create_entry_pipeline(
        entry_ledger=entry_ledger,
        user_id=str(user["_id"]),
        content=body.content,
        writing_duration=body.writingDuration,
        mood=body.mood,
        tags=body.tags,
        metadata=metadata
    )

    return success_response(result, message="Journal entry created successfully")


@router.get("/entries")
async def list_entries(
    user: Annotated[dict, Depends(require_auth)],
    entry_ledger: Annotated[EntryLedger, Depends(get_entry_ledger)],
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1970),
    search: Optional[str] = Query(None, max_length=100),
):
    """
    List entries, newest first.

    Month filtering applies only when both month and year are given.
    """
    result = await pipelines.list_entries_pipeline(
        entry_ledger=entry_ledger,
        user_id=str(user["_id"]),
        page=page,
        limit=limit,
        month=month,
        year=year,
        search=search
    )

    return success_response(result)


@router.get("/entries/{entry_id}")
async def get_entry(
    entry_id: str,
    user: Annotated[dict, Depends(require_auth)],
    entry_ledger: Annotated[EntryLedger, Depends(get_entry_ledger)],
):
    """Get one of the caller's entries."""
    result = await pipelines.get_entry_pipeline(
        entry_ledger=entry_ledger,
        user_id=str(user["_id"]),
        entry_id=entry_id
    )

    return success_response(result)


@router.get("/can-write-today")
async def can_write_today(
    user: Annotated[dict, Depends(require_auth)],
    entry_ledger: Annotated[EntryLedger, Depends(get_entry_ledger)],
):
    """Whether today's entry is still open."""
    result = await pipelines.can_write_today_pipeline(
        entry_ledger=entry_ledger,
        user_id=str(user["_id"])
    )

    return success_response(result)


@router.get("/stats")
async def get_stats(
    user: Annotated[dict, Depends(require_auth)],
    journal_analytics: Annotated[JournalAnalytics, Depends(get_journal_analytics)],
):
    """Totals, streak, monthly statistics and mood distribution."""
    result = await pipelines.get_stats_pipeline(
        journal_analytics=journal_analytics,
        user_id=str(user["_id"])
    )

    return success_response(result)


@router.get("/calendar")
async def get_calendar(
    user: Annotated[dict, Depends(require_auth)],
    entry_ledger: Annotated[EntryLedger, Depends(get_entry_ledger)],
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
):
    """Days of a month with an entry (defaults to the current month)."""
    result = await pipelines.get_calendar_pipeline(
        entry_ledger=entry_ledger,
        user_id=str(user["_id"]),
        year=year,
        month=month
    )

    return success_response(result)
