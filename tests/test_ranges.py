"""Tests for date range resolution."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from moviememo.core.ranges import (
    RangePreset,
    RangeSelector,
    SEGMENTS,
    parse_selector,
    resolve_range,
)

NOW = datetime(2024, 3, 20, 12, 0, 0)


class TestNamedRanges:
    """Tests for the four named periods."""

    def test_this_month(self) -> None:
        resolved = resolve_range(RangeSelector.this_month(), now=NOW)

        assert resolved.start == datetime(2024, 3, 1)
        assert resolved.end == datetime(2024, 3, 31, 23, 59, 59)
        assert resolved.previous.start == datetime(2024, 2, 1)
        assert resolved.previous.end == datetime(2024, 2, 29, 23, 59, 59)
        assert resolved.label == "This Month"
        assert resolved.comparison_label == "last month"

    def test_this_month_in_january_compares_to_december(self) -> None:
        resolved = resolve_range(RangeSelector.this_month(), now=datetime(2024, 1, 10))

        assert resolved.previous.start == datetime(2023, 12, 1)
        assert resolved.previous.end == datetime(2023, 12, 31, 23, 59, 59)

    def test_last_3_months(self) -> None:
        resolved = resolve_range(RangeSelector.last_3_months(), now=NOW)

        assert resolved.start == datetime(2023, 12, 20, 12, 0, 0)
        assert resolved.end == NOW
        assert resolved.previous.end == resolved.start - timedelta(seconds=1)
        assert resolved.previous.duration == resolved.duration

    def test_last_3_months_clamps_day(self) -> None:
        """May 31 minus three months is Feb 29 in a leap year."""
        resolved = resolve_range(RangeSelector.last_3_months(), now=datetime(2024, 5, 31))
        assert resolved.start == datetime(2024, 2, 29)

    def test_this_year(self) -> None:
        resolved = resolve_range(RangeSelector.this_year(), now=NOW)

        assert resolved.start == datetime(2024, 1, 1)
        assert resolved.end == NOW
        assert resolved.previous.start == datetime(2023, 1, 1)
        assert resolved.previous.end == datetime(2023, 3, 20, 12, 0, 0)
        assert resolved.comparison_label == "last year"

    def test_all_time_has_no_previous(self) -> None:
        resolved = resolve_range(RangeSelector.all_time(), now=NOW)

        assert resolved.start == datetime.min
        assert resolved.end == NOW
        assert resolved.previous is None
        assert resolved.is_all_time

    @pytest.mark.parametrize("preset", [p for p in SEGMENTS if p != RangePreset.ALL_TIME])
    def test_previous_window_precedes_start(self, preset: RangePreset) -> None:
        resolved = resolve_range(RangeSelector(preset=preset), now=NOW)

        assert resolved.previous is not None
        assert resolved.previous.end < resolved.start
        assert resolved.start <= resolved.end
        # Calendar month/year lengths may differ by a few days
        assert abs(resolved.previous.duration - resolved.duration) <= timedelta(days=3)


class TestCustomRanges:
    """Tests for caller-supplied windows."""

    def test_dates_cover_whole_days(self) -> None:
        selector = RangeSelector.custom(date(2024, 3, 1), date(2024, 3, 10))

        assert selector.start == datetime(2024, 3, 1)
        assert selector.end == datetime(2024, 3, 10, 23, 59, 59)

    def test_inverted_range_is_swapped(self) -> None:
        """An end before the start never errors."""
        selector = RangeSelector.custom(date(2024, 3, 10), date(2024, 3, 1))

        assert selector.start == datetime(2024, 3, 1)
        assert selector.end == datetime(2024, 3, 10, 23, 59, 59)

    def test_previous_window_has_same_duration(self) -> None:
        resolved = resolve_range(RangeSelector.custom(date(2024, 3, 1), date(2024, 3, 10)), now=NOW)

        assert resolved.previous.end == datetime(2024, 2, 29, 23, 59, 59)
        assert resolved.previous.duration == resolved.duration
        assert resolved.label == "Custom"
        assert resolved.comparison_label == "prior period"

    def test_aware_datetimes_become_naive(self) -> None:
        selector = RangeSelector.custom(
            datetime(2024, 3, 1, tzinfo=timezone.utc),
            datetime(2024, 3, 2, tzinfo=timezone.utc),
        )
        assert selector.start.tzinfo is None
        assert selector.end.tzinfo is None

    def test_direct_construction_swaps_inverted_bounds(self) -> None:
        """Building the model directly normalizes the same way as custom()."""
        selector = RangeSelector(
            preset=RangePreset.CUSTOM,
            start=datetime(2024, 3, 31),
            end=datetime(2024, 3, 1),
        )
        resolved = resolve_range(selector, now=NOW)

        assert resolved.start == datetime(2024, 3, 1)
        assert resolved.end == datetime(2024, 3, 31)
        assert resolved.start <= resolved.end

    def test_direct_construction_with_aware_bounds(self) -> None:
        selector = RangeSelector(
            preset=RangePreset.CUSTOM,
            start=datetime(2024, 3, 1, tzinfo=timezone.utc),
            end=datetime(2024, 3, 10, tzinfo=timezone.utc),
        )
        resolved = resolve_range(selector, now=NOW)

        assert selector.start.tzinfo is None
        assert selector.end.tzinfo is None
        assert resolved.previous.end < resolved.start
        assert resolved.contains(date(2024, 3, 5))

    def test_direct_construction_with_date_strings(self) -> None:
        selector = RangeSelector(preset="custom", start="2024-03-10", end="2024-03-01")

        assert selector.start == datetime(2024, 3, 1)
        assert selector.end == datetime(2024, 3, 10, 23, 59, 59)

    def test_direct_and_classmethod_agree(self) -> None:
        direct = RangeSelector(
            preset=RangePreset.CUSTOM, start=date(2024, 3, 10), end=date(2024, 3, 1)
        )

        assert direct == RangeSelector.custom(date(2024, 3, 10), date(2024, 3, 1))
        assert direct.storage_key == RangeSelector.custom(date(2024, 3, 1), date(2024, 3, 10)).storage_key

    def test_custom_requires_bounds(self) -> None:
        with pytest.raises(ValueError):
            RangeSelector(preset=RangePreset.CUSTOM)

    def test_single_day_range(self) -> None:
        resolved = resolve_range(RangeSelector.custom(date(2024, 3, 5), date(2024, 3, 5)), now=NOW)

        assert resolved.contains(date(2024, 3, 5))
        assert not resolved.contains(date(2024, 3, 6))
        assert resolved.previous.contains(date(2024, 3, 4))


class TestStorageKeys:
    """Tests for persisted selector keys."""

    def test_named_keys(self) -> None:
        assert RangeSelector.this_month().storage_key == "thisMonth"
        assert RangeSelector.last_3_months().storage_key == "last3Months"
        assert RangeSelector.this_year().storage_key == "thisYear"
        assert RangeSelector.all_time().storage_key == "allTime"

    def test_custom_key_includes_both_bounds(self) -> None:
        a = RangeSelector.custom(date(2024, 3, 1), date(2024, 3, 10))
        b = RangeSelector.custom(date(2024, 3, 1), date(2024, 3, 11))

        assert a.storage_key.startswith("custom_")
        assert a.storage_key != b.storage_key
        assert a.storage_key == RangeSelector.custom(date(2024, 3, 1), date(2024, 3, 10)).storage_key

    @pytest.mark.parametrize("preset", SEGMENTS)
    def test_named_keys_round_trip(self, preset: RangePreset) -> None:
        assert parse_selector(preset.value).preset == preset

    def test_custom_key_round_trip(self) -> None:
        selector = RangeSelector.custom(date(2024, 3, 1), date(2024, 3, 10))
        parsed = parse_selector(selector.storage_key)

        assert parsed.preset == RangePreset.CUSTOM
        assert parsed.start == selector.start
        assert parsed.end == selector.end

    @pytest.mark.parametrize("key", [None, "", "lastWeek", "custom_abc_def", "custom_1"])
    def test_unknown_keys_fall_back_to_this_month(self, key: str | None) -> None:
        assert parse_selector(key) == RangeSelector.this_month()
