"""Tests for core data models."""

from __future__ import annotations

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from moviememo.core.models import (
    Direction,
    HeroInsight,
    HeroKind,
    KeyCount,
    Language,
    LocationType,
    MonthBucket,
    PeriodComparison,
    TimeOfDay,
    WatchedEntry,
    format_cents,
    format_minutes,
)

# =============================================================================
# WatchedEntry Tests
# =============================================================================


class TestWatchedEntry:
    """Tests for the WatchedEntry record."""

    def test_defaults(self) -> None:
        """Optional fields default to None and enums to their fallbacks."""
        entry = WatchedEntry(title="Arrival", watched_date="2024-03-04")

        assert entry.id
        assert entry.location_type == LocationType.HOME
        assert entry.time_of_day == TimeOfDay.EVENING
        assert entry.language == Language.ENGLISH
        assert entry.spend_cents is None
        assert entry.duration_min is None

    def test_accepts_camel_case_keys(self) -> None:
        """Export-file keys populate the snake_case fields."""
        entry = WatchedEntry.model_validate(
            {
                "id": "abc",
                "title": "Arrival",
                "watchedDate": "2024-03-04",
                "locationType": "THEATER",
                "spendCents": 1250,
                "durationMin": 116,
                "timeOfDay": "NIGHT",
                "language": "te",
            }
        )

        assert entry.id == "abc"
        assert entry.location_type == LocationType.THEATER
        assert entry.spend_cents == 1250
        assert entry.duration_min == 116
        assert entry.time_of_day == TimeOfDay.NIGHT
        assert entry.language == Language.TELUGU

    def test_unknown_enum_values_fall_back(self) -> None:
        """Unrecognized raw values map to HOME / EVENING / ENGLISH."""
        entry = WatchedEntry.model_validate(
            {
                "title": "X",
                "watchedDate": "2024-03-04",
                "locationType": "SPACESHIP",
                "timeOfDay": "DAWN",
                "language": "xx",
            }
        )

        assert entry.location_type == LocationType.HOME
        assert entry.time_of_day == TimeOfDay.EVENING
        assert entry.language == Language.ENGLISH

    def test_enum_values_are_case_insensitive(self) -> None:
        entry = WatchedEntry(title="X", watched_date="2024-03-04", location_type="theater")
        assert entry.location_type == LocationType.THEATER

    def test_date_objects_become_iso_text(self) -> None:
        entry = WatchedEntry(title="X", watched_date=date(2024, 3, 4))
        assert entry.watched_date == "2024-03-04"
        assert entry.watched_on == date(2024, 3, 4)

        entry = WatchedEntry(title="X", watched_date=datetime(2024, 3, 4, 21, 30))
        assert entry.watched_date == "2024-03-04"

    def test_malformed_date_parses_to_none(self) -> None:
        """Malformed dates are kept as text but have no calendar day."""
        entry = WatchedEntry(title="X", watched_date="04/03/2024")

        assert entry.watched_date == "04/03/2024"
        assert entry.watched_on is None

    def test_empty_id_is_generated(self) -> None:
        entry = WatchedEntry(id="", title="X", watched_date="2024-03-04")
        assert len(entry.id) == 36

    @pytest.mark.parametrize("field,value", [("rating", 11), ("spend_cents", -1), ("duration_min", -5)])
    def test_out_of_range_values_rejected(self, field: str, value: int) -> None:
        with pytest.raises(ValidationError):
            WatchedEntry(title="X", watched_date="2024-03-04", **{field: value})

    def test_odd_rating_allowed(self) -> None:
        entry = WatchedEntry(title="X", watched_date="2024-03-04", rating=7)
        assert entry.rating == 7

    def test_companion_names(self) -> None:
        """Names are comma-split and trimmed; blanks dropped, duplicates kept."""
        entry = WatchedEntry(title="X", watched_date="2024-03-04", companions=" Alice, Bob ,, Alice ")
        assert entry.companion_names() == ["Alice", "Bob", "Alice"]

        assert WatchedEntry(title="X", watched_date="2024-03-04").companion_names() == []

    def test_formatted_fields(self) -> None:
        entry = WatchedEntry(title="X", watched_date="2024-03-04", spend_cents=1250, duration_min=125)
        assert entry.formatted_spend == "$12.50"
        assert entry.formatted_duration == "2h 5m"

        bare = WatchedEntry(title="X", watched_date="2024-03-04")
        assert bare.formatted_spend == "N/A"
        assert bare.formatted_duration == "N/A"

    def test_export_dict_uses_camel_case(self) -> None:
        entry = WatchedEntry(title="X", watched_date="2024-03-04", spend_cents=500)
        exported = entry.to_export_dict()

        assert exported["watchedDate"] == "2024-03-04"
        assert exported["spendCents"] == 500
        assert exported["locationType"] == "HOME"
        assert WatchedEntry.from_dict(exported) == entry

    def test_entry_is_immutable(self) -> None:
        entry = WatchedEntry(title="X", watched_date="2024-03-04")
        with pytest.raises(ValidationError):
            entry.title = "Y"


# =============================================================================
# Display Name Tests
# =============================================================================


class TestDisplayNames:
    """Tests for enum display names."""

    def test_location_display_names(self) -> None:
        assert LocationType.FRIENDS_HOME.display_name == "Friend's Home"
        assert LocationType.THEATER.display_name == "Theater"

    def test_time_of_day_display_names(self) -> None:
        assert TimeOfDay.NIGHT.display_name == "Night"
        assert TimeOfDay.AFTERNOON.display_name == "Afternoon"

    def test_language_display_names(self) -> None:
        assert Language.ENGLISH.display_name == "English"
        assert Language.HINDI.display_name == "हिन्दी"
        assert Language.OTHER.display_name == "Other"


# =============================================================================
# Formatting Tests
# =============================================================================


class TestFormatting:
    """Tests for money and duration formatting."""

    def test_format_cents(self) -> None:
        assert format_cents(1250) == "$12.50"
        assert format_cents(0) == "$0.00"
        assert format_cents(4500, decimals=0) == "$45"

    def test_format_minutes(self) -> None:
        assert format_minutes(125) == "2h 5m"
        assert format_minutes(45) == "45m"
        assert format_minutes(60) == "1h 0m"
        assert format_minutes(0) == "0m"


# =============================================================================
# PeriodComparison Tests
# =============================================================================


class TestPeriodComparison:
    """Tests for current vs previous comparisons."""

    def test_increase(self) -> None:
        comparison = PeriodComparison(current=5, previous=4)

        assert comparison.delta == 1
        assert comparison.delta_percent == 25
        assert comparison.direction == Direction.UP
        assert comparison.delta_text == "+1"
        assert comparison.percent_text == "+25%"

    def test_decrease_truncates_toward_zero(self) -> None:
        comparison = PeriodComparison(current=1, previous=3)

        assert comparison.delta == -2
        assert comparison.delta_percent == -66
        assert comparison.direction == Direction.DOWN
        assert comparison.delta_text == "-2"

    def test_flat(self) -> None:
        comparison = PeriodComparison(current=3, previous=3)

        assert comparison.direction == Direction.FLAT
        assert comparison.delta_text == "±0"
        assert comparison.delta_percent == 0

    @pytest.mark.parametrize(
        "current,previous,expected",
        [(0, 0, 0), (3, 0, 100), (0, 2, -100), (1, 1, 0)],
    )
    def test_delta_percent_is_always_finite(self, current: int, previous: int, expected: int) -> None:
        """Zero previous never divides: 100 when anything happened, else 0."""
        assert PeriodComparison(current=current, previous=previous).delta_percent == expected

    def test_computed_fields_serialize(self) -> None:
        dumped = PeriodComparison(current=2, previous=1).model_dump(mode="json")
        assert dumped == {
            "current": 2,
            "previous": 1,
            "delta": 1,
            "delta_percent": 100,
            "direction": "up",
        }


# =============================================================================
# Small Model Tests
# =============================================================================


class TestBuildingBlocks:
    """Tests for KeyCount, MonthBucket and HeroInsight."""

    def test_key_count_rejects_negative(self) -> None:
        with pytest.raises(ValidationError):
            KeyCount(category="x", count=-1)

    def test_month_bucket_labels(self) -> None:
        bucket = MonthBucket(year_month="2024-03", count=2)
        assert bucket.display_month == "Mar"
        assert bucket.short_label == "Mar 24"

    def test_month_bucket_bad_key_falls_back(self) -> None:
        bucket = MonthBucket(year_month="garbage")
        assert bucket.display_month == "garbage"

    def test_hero_headlines(self) -> None:
        assert HeroInsight.just_starting(1).headline() == "You've logged 1 movie. Keep going!"
        assert (
            HeroInsight.volume_trend(count=5, delta=4, period_label="last month").headline()
            == "5 movies (+4 vs last month)."
        )
        assert (
            HeroInsight.time_of_day(category="Night", percent=75, count=3).headline()
            == "Night is your time: 75% of movies (3)."
        )
        assert (
            HeroInsight.spending(total_cents=3200, avg_cents=1600).headline()
            == "You spent $32.00, about $16.00 per movie."
        )

    def test_hero_kind_tags(self) -> None:
        assert HeroInsight.spending(total_cents=1, avg_cents=1).kind == HeroKind.SPENDING
