"""Insights computation for MovieMemo.

- **aggregator**: Range-scoped statistics from one filtered pass
- **streaks**: All-time weekly streaks
- **hero**: Headline insight selection
- **narrator**: Ordered, capped narrative statements
- **cache**: Keyed memo table with generation-checked writes
- **engine**: ``compute_insights`` and the cache-aware ``InsightsEngine``
"""

from moviememo.insights.cache import InsightsCache
from moviememo.insights.engine import InsightsEngine, compute_insights, project_basic_stats

__all__ = [
    "InsightsCache",
    "InsightsEngine",
    "compute_insights",
    "project_basic_stats",
]
