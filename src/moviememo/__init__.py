"""MovieMemo Insights - analytics engine for a personal movie log.

Given the full set of watched-entry records and a date range selector,
computes windowed statistics, period-over-period comparisons,
distributions, weekly streaks, a headline insight and a capped list of
narrative statements.

Example:
    >>> from moviememo import compute_insights, RangeSelector
    >>>
    >>> data = compute_insights(entries, RangeSelector.last_3_months())
    >>> data.hero.headline()
    '12 movies (+4 vs prior 3 months).'
"""

__version__ = "1.0.0"

from moviememo.core.models import BasicStats, InsightsData, WatchedEntry
from moviememo.core.ranges import RangeSelector, resolve_range
from moviememo.insights.engine import InsightsEngine, compute_insights, project_basic_stats

__all__ = [
    "__version__",
    "BasicStats",
    "InsightsData",
    "InsightsEngine",
    "RangeSelector",
    "WatchedEntry",
    "compute_insights",
    "project_basic_stats",
    "resolve_range",
]
