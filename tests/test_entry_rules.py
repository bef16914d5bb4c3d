"""Unit tests for journal entry rules and derived fields."""

import pytest
from datetime import datetime, timedelta, timezone

from snapnote.services.journal.entry_rules import (
    clean_tags,
    day_key,
    derive_entry_fields,
    estimated_reading_time,
    month_day_range,
    validate_entry,
)


def fields(errors):
    return [error["field"] for error in errors]


class TestValidateEntry:
    def test_valid_entry(self):
        assert validate_entry("Today was good.", 45, "happy", ["work"]) == []

    @pytest.mark.parametrize("duration", [0.1, 30, 60])
    def test_duration_within_bounds(self, duration):
        assert validate_entry("ok", duration) == []

    @pytest.mark.parametrize("duration", [0, -5, 60.5, 61])
    def test_duration_out_of_bounds(self, duration):
        assert fields(validate_entry("ok", duration)) == ["writingDuration"]

    @pytest.mark.parametrize("duration", [None, "45", True])
    def test_duration_must_be_a_number(self, duration):
        assert fields(validate_entry("ok", duration)) == ["writingDuration"]

    @pytest.mark.parametrize("duration", [float("nan"), float("inf"), float("-inf")])
    def test_duration_must_be_finite(self, duration):
        assert fields(validate_entry("ok", duration)) == ["writingDuration"]

    def test_empty_content(self):
        errors = validate_entry("", 30)

        assert errors == [{"field": "content", "message": "Journal entry cannot be empty"}]

    def test_content_length_limit(self):
        assert validate_entry("x" * 2000, 30) == []
        assert fields(validate_entry("x" * 2001, 30)) == ["content"]

    def test_unknown_mood(self):
        assert fields(validate_entry("ok", 30, mood="ecstatic")) == ["mood"]

    def test_too_many_tags(self):
        assert fields(validate_entry("ok", 30, tags=[f"t{i}" for i in range(11)])) == ["tags"]

    def test_tag_too_long(self):
        assert fields(validate_entry("ok", 30, tags=["x" * 51])) == ["tags"]

    def test_every_failure_is_reported(self):
        errors = validate_entry("", 61, mood="bad")

        assert fields(errors) == ["content", "writingDuration", "mood"]


class TestDerivedFields:
    def test_counts_and_day_key(self):
        created_at = datetime(2026, 5, 1, 23, 59, tzinfo=timezone.utc)

        derived = derive_entry_fields("one two  three", created_at)

        assert derived == {"wordCount": 3, "characterCount": 14, "dayKey": "2026-05-01"}

    @pytest.mark.parametrize("words, minutes", [(0, 1), (1, 1), (200, 1), (201, 2), (450, 3)])
    def test_reading_time(self, words, minutes):
        assert estimated_reading_time(words) == minutes

    def test_day_key_uses_utc(self):
        tokyo = timezone(timedelta(hours=9))
        # 08:00 in Tokyo is still the previous day in UTC
        assert day_key(datetime(2026, 5, 2, 8, 0, tzinfo=tokyo)) == "2026-05-01"

    def test_naive_day_key_is_utc(self):
        assert day_key(datetime(2026, 5, 2, 0, 0)) == "2026-05-02"

    def test_clean_tags_drops_empty(self):
        assert clean_tags(["  work ", "<>", "", "life"]) == ["work", "life"]


class TestMonthDayRange:
    def test_regular_month(self):
        assert month_day_range(2026, 2) == ("2026-02-01", "2026-03-01")

    def test_december_rolls_over(self):
        assert month_day_range(2026, 12) == ("2026-12-01", "2027-01-01")
