"""Aggregator - range-scoped statistics over a record snapshot.

Filters the snapshot to a resolved range once and computes every
range-scoped figure the insights screen needs from that single filtered
list: volume and its period comparison, watch time, spend, location and
weekday/weekend splits, and the categorical distributions. Monthly trend
buckets are the one exception: they always cover the entire snapshot.

Numeric rules:
- Percentages truncate toward zero and are 0 whenever the whole is 0.
- Averages are integer floor divisions over the entries that actually
  recorded the value (a missing duration or spend is excluded, not zero).

Records whose watched date cannot be parsed are silently left out of
every range-scoped figure and out of the monthly buckets.

Example:
    >>> from moviememo.insights.aggregator import aggregate
    >>> from moviememo.core.ranges import RangeSelector, resolve_range
    >>>
    >>> metrics = aggregate(entries, resolve_range(RangeSelector.this_month()))
    >>> metrics.movies_count, metrics.weekday_count
    (5, 5)
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from moviememo.core.models import (
    KeyCount,
    LocationType,
    MonthBucket,
    PeriodComparison,
    WatchedEntry,
)
from moviememo.core.ranges import DateWindow, ResolvedRange

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


# =============================================================================
# Numeric Helpers
# =============================================================================


def percent(part: int, whole: int) -> int:
    """Integer percentage of ``part`` in ``whole``, truncated toward zero.

    Returns 0 when ``whole`` is 0, so callers never see NaN or infinity.
    """
    if whole == 0:
        return 0
    return int(part * 100 / whole)


def safe_average(total: int, count: int) -> int:
    """Integer average, 0 when there is nothing to average."""
    if count <= 0:
        return 0
    return total // count


def to_key_counts(counter: Counter[str]) -> list[KeyCount]:
    """Counts sorted descending; ties keep first-encountered order."""
    return [KeyCount(category=key, count=count) for key, count in counter.most_common()]


# =============================================================================
# Result
# =============================================================================


@dataclass
class AggregatedMetrics:
    """Range-scoped figures computed from one filtered pass.

    ``total_all_time_entries`` counts every record in the snapshot, dated
    or not; it drives empty-state and "just starting" detection.
    """

    resolved_range: ResolvedRange
    entries: list[WatchedEntry] = field(default_factory=list)
    movies_count: int = 0
    comparison: PeriodComparison = field(default_factory=PeriodComparison)

    total_watch_time_minutes: int = 0
    avg_watch_time_minutes: int = 0

    total_spent_cents: int = 0
    avg_spent_cents: int = 0
    theater_avg_spend_cents: int = 0
    has_spend_data: bool = False

    location_counts: dict[LocationType, int] = field(default_factory=dict)
    weekday_count: int = 0
    weekend_count: int = 0

    location_buckets: list[KeyCount] = field(default_factory=list)
    day_of_week_buckets: list[KeyCount] = field(default_factory=list)
    time_of_day_buckets: list[KeyCount] = field(default_factory=list)
    top_genres: list[KeyCount] = field(default_factory=list)
    top_languages: list[KeyCount] = field(default_factory=list)
    companions: list[KeyCount] = field(default_factory=list)

    monthly_buckets: list[MonthBucket] = field(default_factory=list)

    total_all_time_entries: int = 0
    skipped_undated: int = 0

    @property
    def genre_tagged_count(self) -> int:
        return sum(bucket.count for bucket in self.top_genres)

    @property
    def time_of_day_total(self) -> int:
        return sum(bucket.count for bucket in self.time_of_day_buckets)

    def dominant_time_of_day(self) -> tuple[KeyCount, int] | None:
        """Most common time-of-day bucket and its share, if any entries."""
        if not self.time_of_day_buckets:
            return None
        top = self.time_of_day_buckets[0]
        return top, percent(top.count, self.time_of_day_total)


# =============================================================================
# Aggregation
# =============================================================================


def filter_entries(
    entries: Iterable[WatchedEntry],
    window: DateWindow | None,
) -> list[WatchedEntry]:
    """Entries whose watched date falls inside ``window`` (inclusive).

    Undated or malformed entries never match.
    """
    if window is None:
        return []
    selected: list[WatchedEntry] = []
    for entry in entries:
        day = entry.watched_on
        if day is not None and window.contains(day):
            selected.append(entry)
    return selected


def build_monthly_buckets(entries: Iterable[WatchedEntry]) -> list[MonthBucket]:
    """Per-month count/spend/duration totals over the whole snapshot.

    Sorted ascending by ``YYYY-MM``; months without entries are omitted.
    """
    by_month: dict[str, list[int]] = defaultdict(lambda: [0, 0, 0])
    for entry in entries:
        day = entry.watched_on
        if day is None:
            continue
        totals = by_month[f"{day.year:04d}-{day.month:02d}"]
        totals[0] += 1
        totals[1] += entry.spend_cents or 0
        totals[2] += entry.duration_min or 0

    return [
        MonthBucket(year_month=key, count=count, spend_cents=spend, watch_minutes=minutes)
        for key, (count, spend, minutes) in sorted(by_month.items())
    ]


def aggregate(snapshot: Iterable[WatchedEntry], resolved: ResolvedRange) -> AggregatedMetrics:
    """Compute every range-scoped figure for ``resolved``.

    Args:
        snapshot: The full record set. It is read, never modified.
        resolved: Output of ``resolve_range``.

    Returns:
        AggregatedMetrics for the range. This function never raises for
        malformed or missing optional fields.
    """
    all_entries = list(snapshot)
    entries = filter_entries(all_entries, resolved)
    previous_count = len(filter_entries(all_entries, resolved.previous))
    skipped = sum(1 for e in all_entries if e.watched_on is None)
    if skipped:
        logger.debug(f"Excluded {skipped} entries with unparsable watched dates")

    metrics = AggregatedMetrics(
        resolved_range=resolved,
        entries=entries,
        movies_count=len(entries),
        comparison=PeriodComparison(current=len(entries), previous=previous_count),
        total_all_time_entries=len(all_entries),
        skipped_undated=skipped,
    )

    _compute_watch_time(metrics, entries)
    _compute_spend(metrics, entries)
    _compute_locations(metrics, entries)
    _compute_day_split(metrics, entries)
    _compute_distributions(metrics, entries)
    metrics.monthly_buckets = build_monthly_buckets(all_entries)

    return metrics


# =============================================================================
# Metric Families
# =============================================================================


def _compute_watch_time(metrics: AggregatedMetrics, entries: list[WatchedEntry]) -> None:
    durations = [e.duration_min for e in entries if e.duration_min is not None]
    metrics.total_watch_time_minutes = sum(durations)
    metrics.avg_watch_time_minutes = safe_average(sum(durations), len(durations))


def _compute_spend(metrics: AggregatedMetrics, entries: list[WatchedEntry]) -> None:
    spends = [e.spend_cents for e in entries if e.spend_cents is not None]
    metrics.has_spend_data = bool(spends)
    metrics.total_spent_cents = sum(spends)
    metrics.avg_spent_cents = safe_average(sum(spends), len(spends))

    theater_spends = [
        e.spend_cents
        for e in entries
        if e.location_type == LocationType.THEATER and e.spend_cents is not None
    ]
    metrics.theater_avg_spend_cents = safe_average(sum(theater_spends), len(theater_spends))


def _compute_locations(metrics: AggregatedMetrics, entries: list[WatchedEntry]) -> None:
    counts: Counter[LocationType] = Counter(e.location_type for e in entries)
    metrics.location_counts = {location: counts.get(location, 0) for location in LocationType}
    metrics.location_buckets = to_key_counts(
        Counter({location.display_name: count for location, count in counts.items()})
    )


def _compute_day_split(metrics: AggregatedMetrics, entries: list[WatchedEntry]) -> None:
    by_weekday: Counter[str] = Counter()
    weekday = weekend = 0
    for entry in entries:
        day: date = entry.watched_on
        if day.weekday() < 5:
            weekday += 1
        else:
            weekend += 1
        by_weekday[WEEKDAY_NAMES[day.weekday()]] += 1

    metrics.weekday_count = weekday
    metrics.weekend_count = weekend
    metrics.day_of_week_buckets = to_key_counts(by_weekday)


def _compute_distributions(metrics: AggregatedMetrics, entries: list[WatchedEntry]) -> None:
    metrics.time_of_day_buckets = to_key_counts(
        Counter(e.time_of_day.display_name for e in entries)
    )

    genres = (e.genre.strip() for e in entries if e.genre)
    metrics.top_genres = to_key_counts(Counter(g for g in genres if g))

    metrics.top_languages = to_key_counts(Counter(e.language.display_name for e in entries))

    # One entry with "Alice, Bob" counts once for each name
    companions: Counter[str] = Counter()
    for entry in entries:
        companions.update(entry.companion_names())
    metrics.companions = to_key_counts(companions)
