"""Core data models for MovieMemo Insights.

This package contains the foundational data structures that the engine
consumes and produces:

- **WatchedEntry**: One logged viewing, owned by the external repository
- **RangeSelector / ResolvedRange**: Named or custom date windows
- **InsightsData / BasicStats**: The immutable results

Example:
    >>> from moviememo.core import WatchedEntry, RangeSelector, resolve_range
    >>>
    >>> entry = WatchedEntry(title="Arrival", watched_date="2024-03-04")
    >>> resolved = resolve_range(RangeSelector.this_month())
"""

from moviememo.core.models import (
    BasicStats,
    Direction,
    HeroInsight,
    HeroKind,
    InsightsData,
    KeyCount,
    Language,
    LocationType,
    MonthBucket,
    PeriodComparison,
    SmartInsight,
    TimeOfDay,
    WatchedEntry,
    format_cents,
    format_minutes,
)
from moviememo.core.ranges import (
    DateWindow,
    RangePreset,
    RangeSelector,
    ResolvedRange,
    SEGMENTS,
    parse_selector,
    resolve_range,
)

__all__ = [
    # Record
    "WatchedEntry",
    "LocationType",
    "TimeOfDay",
    "Language",
    # Building blocks
    "KeyCount",
    "MonthBucket",
    "PeriodComparison",
    "Direction",
    # Narrative
    "HeroInsight",
    "HeroKind",
    "SmartInsight",
    # Results
    "InsightsData",
    "BasicStats",
    # Ranges
    "RangePreset",
    "RangeSelector",
    "DateWindow",
    "ResolvedRange",
    "SEGMENTS",
    "parse_selector",
    "resolve_range",
    # Formatting
    "format_cents",
    "format_minutes",
]
