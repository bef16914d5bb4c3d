"""
Pydantic models for Journal request/response validation.

Entry rules (length, duration, mood, tags) are enforced by the entry
ledger so every violation is reported as one itemized list.
"""

from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field


# =============================================================================
# Request Schemas
# =============================================================================

class CreateEntryRequest(BaseModel):
    """POST /api/journal/entries"""
    content: str
    writingDuration: float = Field(..., allow_inf_nan=False, description="Seconds spent writing, max 60")
    mood: Optional[str] = Field(None, description="very-happy | happy | neutral | sad | very-sad")
    tags: Optional[List[str]] = None


# =============================================================================
# Response Schemas (used inside success_response data)
# =============================================================================

class EntryResponse(BaseModel):
    """A journal entry."""
    id: str
    content: str
    wordCount: int
    characterCount: int
    writingDuration: float
    mood: str
    tags: List[str]
    dayKey: str
    estimatedReadingTime: int
    createdAt: datetime
    updatedAt: Optional[datetime] = None


class PaginationResponse(BaseModel):
    currentPage: int
    totalPages: int
    totalEntries: int
    hasNextPage: bool
    hasPrevPage: bool


class EntryListResponse(BaseModel):
    """Response data for GET /api/journal/entries"""
    entries: List[EntryResponse]
    pagination: PaginationResponse
    hasWrittenToday: bool


class CanWriteTodayResponse(BaseModel):
    """Response data for GET /api/journal/can-write-today"""
    canWrite: bool
    hasWrittenToday: bool


class CalendarDay(BaseModel):
    date: str
    mood: Optional[str] = None
    wordCount: int
    hasEntry: bool = True


class CalendarResponse(BaseModel):
    """Response data for GET /api/journal/calendar"""
    year: int
    month: int
    entries: List[CalendarDay]


class MonthlyStat(BaseModel):
    month: int
    entries: int
    totalWords: int
    totalCharacters: int
    avgWritingDuration: float


class StatsSummary(BaseModel):
    totalEntries: int
    currentStreak: int
    hasWrittenToday: bool
    totalWords: int
    totalCharacters: int
    averageWritingDuration: float
    averageWordsPerEntry: float


class StatsResponse(BaseModel):
    """Response data for GET /api/journal/stats"""
    summary: StatsSummary
    monthlyStats: List[MonthlyStat]
    moodDistribution: Dict[str, int]
