"""Insights engine entry points.

``compute_insights`` is a pure, synchronous function of
``(snapshot, selector)``: it performs no I/O and touches no shared state,
so callers may run it on any worker thread.

``InsightsEngine`` adds the cache-aware surface used by a presentation
layer: it fetches the snapshot from a repository, memoizes results per
range, and discards results that were superseded by an invalidate while
they were being computed.

Example:
    >>> from moviememo.insights.engine import InsightsEngine
    >>> from moviememo.core.ranges import RangeSelector
    >>>
    >>> engine = InsightsEngine(repository)
    >>> data = engine.load_insights(RangeSelector.this_month())
    >>> data.hero.kind
    <HeroKind.VOLUME_TREND: 'volume_trend'>
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable

from moviememo.config import InsightsConfig
from moviememo.core.models import BasicStats, InsightsData, KeyCount, LocationType, WatchedEntry
from moviememo.core.ranges import RangeSelector, resolve_range
from moviememo.insights.aggregator import aggregate
from moviememo.insights.cache import InsightsCache
from moviememo.insights.hero import select_hero
from moviememo.insights.narrator import generate_smart_insights
from moviememo.insights.streaks import calculate_streaks
from moviememo.repository import WatchedEntryRepository
from moviememo.utils.logging import LogContext

logger = logging.getLogger(__name__)

BASIC_STATS_TOP_GENRES = 10


def compute_insights(
    snapshot: Iterable[WatchedEntry],
    selector: RangeSelector,
    now: datetime | None = None,
    config: InsightsConfig | None = None,
) -> InsightsData:
    """Compute the full insights result for one range.

    Args:
        snapshot: Every watched entry. Read only.
        selector: Named period or custom window.
        now: Reference instant. Defaults to the current local time.
        config: Engine heuristics; defaults apply when omitted.

    Returns:
        A new immutable InsightsData. This function never raises for
        malformed records.
    """
    cfg = config or InsightsConfig()
    now = now or datetime.now()
    entries = list(snapshot)

    with LogContext(f"Computing insights for {selector.storage_key}", logging.DEBUG, logger):
        resolved = resolve_range(selector, now=now)
        metrics = aggregate(entries, resolved)
        streaks = calculate_streaks(entries, now=now)
        hero = select_hero(metrics, cfg)
        smart_insights = generate_smart_insights(metrics, streaks, cfg)

    locations = metrics.location_counts
    return InsightsData(
        resolved_range=resolved,
        hero=hero,
        movies_count=metrics.movies_count,
        movies_comparison=metrics.comparison,
        total_watch_time_minutes=metrics.total_watch_time_minutes,
        avg_watch_time_per_movie_minutes=metrics.avg_watch_time_minutes,
        total_spent_cents=metrics.total_spent_cents,
        avg_spent_per_movie_cents=metrics.avg_spent_cents,
        theater_avg_spend_cents=metrics.theater_avg_spend_cents,
        has_spend_data=metrics.has_spend_data,
        theater_count=locations.get(LocationType.THEATER, 0),
        home_count=locations.get(LocationType.HOME, 0),
        friends_home_count=locations.get(LocationType.FRIENDS_HOME, 0),
        other_count=locations.get(LocationType.OTHER, 0),
        weekday_count=metrics.weekday_count,
        weekend_count=metrics.weekend_count,
        location_buckets=metrics.location_buckets,
        day_of_week_buckets=metrics.day_of_week_buckets,
        time_of_day_buckets=metrics.time_of_day_buckets,
        top_genres=metrics.top_genres,
        top_languages=metrics.top_languages,
        companions=metrics.companions,
        monthly_buckets=metrics.monthly_buckets,
        current_streak_weeks=streaks.current_weeks,
        best_streak_weeks=streaks.best_weeks,
        smart_insights=smart_insights,
        total_all_time_entries=metrics.total_all_time_entries,
    )


def project_basic_stats(all_time: InsightsData, this_month: InsightsData) -> BasicStats:
    """Project the simple statistics view from two insights results.

    Pure projection: nothing is re-aggregated, so both views always agree
    on grouping and averaging rules.

    Args:
        all_time: Result for the all-time range.
        this_month: Result for the this-month range.

    Returns:
        BasicStats for the statistics screen.
    """
    return BasicStats(
        total_movies_watched=all_time.movies_count,
        this_month_movies=this_month.movies_count,
        total_amount_spent_cents=all_time.total_spent_cents,
        this_month_spending_cents=this_month.total_spent_cents,
        average_theater_spend_cents=all_time.theater_avg_spend_cents,
        this_month_average_theater_spend_cents=this_month.theater_avg_spend_cents,
        weekday_count=all_time.weekday_count,
        weekend_count=all_time.weekend_count,
        total_watch_time_minutes=all_time.total_watch_time_minutes,
        top_genres=all_time.top_genres[:BASIC_STATS_TOP_GENRES],
        movies_by_location=all_time.location_buckets,
        movies_by_time_of_day=all_time.time_of_day_buckets,
        movies_by_language=all_time.top_languages,
        movies_by_companion=all_time.companions,
        monthly_trends=[
            KeyCount(category=bucket.year_month, count=bucket.count)
            for bucket in all_time.monthly_buckets
        ],
    )


class InsightsEngine:
    """Cache-aware insights service over a record repository.

    Attributes:
        repository: Source of the record snapshot.
        cache: Keyed memo table (created when not supplied).
        config: Engine heuristics.
        clock: Returns "now"; injectable for tests.
    """

    def __init__(
        self,
        repository: WatchedEntryRepository,
        cache: InsightsCache | None = None,
        config: InsightsConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or InsightsConfig()
        self.repository = repository
        self.cache = cache if cache is not None else InsightsCache(enabled=self.config.cache_enabled)
        self.clock = clock or datetime.now

        add_listener = getattr(repository, "add_change_listener", None)
        if callable(add_listener):
            add_listener(self.invalidate_all)

    def load_insights(
        self,
        selector: RangeSelector,
        force_recompute: bool = False,
    ) -> InsightsData:
        """Return insights for ``selector``, from cache when possible.

        Args:
            selector: Named period or custom window.
            force_recompute: Skip the cache lookup (the fresh result still
                replaces the cached one).

        Returns:
            The InsightsData for the range.
        """
        key = selector.storage_key
        if not force_recompute:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        generation = self.cache.generation
        snapshot = self.repository.get_all_watched_entries()
        result = compute_insights(snapshot, selector, now=self.clock(), config=self.config)
        self.cache.put(key, result, generation=generation)
        return result

    def load_basic_stats(self) -> BasicStats:
        """Statistics-screen view, projected from cached insights."""
        return project_basic_stats(
            self.load_insights(RangeSelector.all_time()),
            self.load_insights(RangeSelector.this_month()),
        )

    def invalidate_all(self) -> None:
        """Forget every cached result (call after the records change)."""
        removed = self.cache.invalidate()
        logger.debug(f"Insights cache invalidated ({removed} entries)")
