"""
Journal entry validation and derived fields.

Plain functions over entry values. Nothing here touches the database;
EntryLedger calls these explicitly before writing.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from common.utils import sanitize_input

MOODS = ("very-happy", "happy", "neutral", "sad", "very-sad")
DEFAULT_MOOD = "neutral"

MAX_CONTENT_LENGTH = 2000
MAX_WRITING_DURATION = 60
MAX_TAGS = 10
MAX_TAG_LENGTH = 50

WORDS_PER_MINUTE = 200

DAY_KEY_FORMAT = "%Y-%m-%d"


def day_key(moment: Optional[datetime] = None) -> str:
    """
    Canonical UTC calendar day for an instant, e.g. "2026-10-19".

    Naive datetimes are taken to be UTC already.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(DAY_KEY_FORMAT)


def count_words(content: str) -> int:
    return len(content.split())


def estimated_reading_time(word_count: int) -> int:
    """Minutes to read at 200 words per minute, never less than 1."""
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def clean_tags(tags: Optional[List[Any]]) -> List[str]:
    """Sanitize tags and drop the ones that end up empty."""
    if not tags:
        return []
    cleaned = [sanitize_input(tag) if isinstance(tag, str) else tag for tag in tags]
    return [tag for tag in cleaned if tag != ""]


def validate_entry(
    content: Optional[str],
    writing_duration: Any,
    mood: Optional[str] = None,
    tags: Optional[List[Any]] = None,
) -> List[Dict[str, str]]:
    """
    Check an entry submission against every rule.

    Args:
        content: Sanitized entry text
        writing_duration: Seconds spent writing
        mood: Optional mood value
        tags: Optional sanitized tags

    Returns:
        List of {"field", "message"} items, empty when valid
    """
    errors: List[Dict[str, str]] = []

    if not content:
        errors.append({"field": "content", "message": "Journal entry cannot be empty"})
    elif len(content) > MAX_CONTENT_LENGTH:
        errors.append({
            "field": "content",
            "message": f"Content cannot exceed {MAX_CONTENT_LENGTH} characters",
        })

    if (
        isinstance(writing_duration, bool)
        or not isinstance(writing_duration, (int, float))
        or not math.isfinite(writing_duration)
    ):
        errors.append({"field": "writingDuration", "message": "Writing duration must be a number"})
    elif writing_duration <= 0 or writing_duration > MAX_WRITING_DURATION:
        errors.append({
            "field": "writingDuration",
            "message": f"Writing duration must be between 0 and {MAX_WRITING_DURATION} seconds",
        })

    if mood is not None and mood not in MOODS:
        errors.append({"field": "mood", "message": f"Mood must be one of: {', '.join(MOODS)}"})

    if tags:
        if len(tags) > MAX_TAGS:
            errors.append({"field": "tags", "message": f"Cannot have more than {MAX_TAGS} tags"})
        for tag in tags:
            if not isinstance(tag, str) or len(tag) > MAX_TAG_LENGTH:
                errors.append({
                    "field": "tags",
                    "message": f"Each tag must be between 1 and {MAX_TAG_LENGTH} characters",
                })
                break

    return errors


def derive_entry_fields(content: str, created_at: datetime) -> Dict[str, Any]:
    """Word count, character count and day key for a new entry."""
    return {
        "wordCount": count_words(content),
        "characterCount": len(content),
        "dayKey": day_key(created_at),
    }


def month_day_range(year: int, month: int) -> Tuple[str, str]:
    """
    Day-key bounds [start, end) covering one calendar month.

    Day keys sort lexically in date order, so a string range query is enough.
    """
    start = f"{year:04d}-{month:02d}-01"
    if month == 12:
        end = f"{year + 1:04d}-01-01"
    else:
        end = f"{year:04d}-{month + 1:02d}-01"
    return start, end
