"""Weekly watch streaks.

A week counts toward a streak when at least one movie was watched in it.
Weeks are numbered by ``days_since_epoch // 7`` (1970-01-01 based), so
the arithmetic is pure integer work on the local calendar date.

Streaks always cover the entire history, independent of the selected
insights range.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from moviememo.core.models import WatchedEntry

logger = logging.getLogger(__name__)

EPOCH_ORDINAL = date(1970, 1, 1).toordinal()


@dataclass(frozen=True)
class StreakResult:
    """Current and best-ever streak, in whole weeks."""

    current_weeks: int = 0
    best_weeks: int = 0


def week_index(day: date) -> int:
    """Integer week number of a calendar day (floor of days-since-epoch / 7)."""
    return (day.toordinal() - EPOCH_ORDINAL) // 7


def active_weeks(entries: Iterable[WatchedEntry]) -> set[int]:
    """Distinct week indices with at least one dated entry."""
    weeks: set[int] = set()
    for entry in entries:
        day = entry.watched_on
        if day is not None:
            weeks.add(week_index(day))
    return weeks


def current_streak(weeks: set[int], today: date) -> int:
    """Consecutive active weeks ending at this week.

    If this week has no activity yet, counting starts from last week
    instead, so an unbroken run is not lost on Monday morning.
    """
    check = week_index(today)
    if check not in weeks:
        check -= 1
    streak = 0
    while check in weeks:
        streak += 1
        check -= 1
    return streak


def best_streak(weeks: set[int]) -> int:
    """Length of the longest run of consecutive active weeks."""
    if not weeks:
        return 0
    ordered = sorted(weeks)
    best = run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        if cur == prev + 1:
            run += 1
        else:
            run = 1
        best = max(best, run)
    return best


def calculate_streaks(
    entries: Iterable[WatchedEntry],
    now: datetime | date | None = None,
) -> StreakResult:
    """Compute current and best streaks over all entries.

    Args:
        entries: The full record snapshot.
        now: Reference instant for the current streak. Defaults to today.

    Returns:
        StreakResult; both values are 0 for an empty snapshot.
    """
    weeks = active_weeks(entries)
    if not weeks:
        return StreakResult()

    if now is None:
        today = date.today()
    elif isinstance(now, datetime):
        today = now.date()
    else:
        today = now

    result = StreakResult(current_weeks=current_streak(weeks, today), best_weeks=best_streak(weeks))
    logger.debug(
        f"Streaks over {len(weeks)} active weeks: "
        f"current={result.current_weeks}, best={result.best_weeks}"
    )
    return result
