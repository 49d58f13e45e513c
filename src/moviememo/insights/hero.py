"""Hero insight selection.

Exactly one headline is chosen per range by walking an ordered list of
``(name, predicate, builder)`` rules; the first rule whose predicate
holds builds the hero. The last rule always matches, so a hero is always
defined.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from moviememo.config import InsightsConfig
from moviememo.core.models import HeroInsight
from moviememo.insights.aggregator import AggregatedMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeroRule:
    name: str
    applies: Callable[[AggregatedMetrics, InsightsConfig], bool]
    build: Callable[[AggregatedMetrics, InsightsConfig], HeroInsight]


def _volume_trend(m: AggregatedMetrics, cfg: InsightsConfig) -> HeroInsight:
    return HeroInsight.volume_trend(
        count=m.movies_count,
        delta=m.comparison.delta,
        period_label=m.resolved_range.comparison_label,
    )


def _is_just_starting(m: AggregatedMetrics, cfg: InsightsConfig) -> bool:
    # Percentages on a handful of records are noise
    return m.total_all_time_entries < cfg.small_dataset_threshold


def _has_comparable_activity(m: AggregatedMetrics, cfg: InsightsConfig) -> bool:
    if m.resolved_range.is_all_time:
        return False
    return m.comparison.current > 0 or m.comparison.previous > 0


def _has_dominant_time_of_day(m: AggregatedMetrics, cfg: InsightsConfig) -> bool:
    dominant = m.dominant_time_of_day()
    return dominant is not None and dominant[1] >= cfg.dominance_threshold_percent


def _time_of_day(m: AggregatedMetrics, cfg: InsightsConfig) -> HeroInsight:
    bucket, share = m.dominant_time_of_day()
    return HeroInsight.time_of_day(category=bucket.category, percent=share, count=bucket.count)


def _has_spending(m: AggregatedMetrics, cfg: InsightsConfig) -> bool:
    return m.has_spend_data and m.total_spent_cents > 0


def _spending(m: AggregatedMetrics, cfg: InsightsConfig) -> HeroInsight:
    return HeroInsight.spending(total_cents=m.total_spent_cents, avg_cents=m.avg_spent_cents)


HERO_RULES: tuple[HeroRule, ...] = (
    HeroRule("just_starting", _is_just_starting, lambda m, cfg: HeroInsight.just_starting(m.movies_count)),
    HeroRule("volume_trend", _has_comparable_activity, _volume_trend),
    HeroRule("time_of_day", _has_dominant_time_of_day, _time_of_day),
    HeroRule("spending", _has_spending, _spending),
    HeroRule("fallback", lambda m, cfg: True, _volume_trend),
)


def select_hero(
    metrics: AggregatedMetrics,
    config: InsightsConfig | None = None,
    rules: tuple[HeroRule, ...] = HERO_RULES,
) -> HeroInsight:
    """Pick the headline insight for the aggregated range.

    Args:
        metrics: Output of ``aggregate``.
        config: Engine heuristics; defaults apply when omitted.
        rules: Ordered rule list (first match wins).

    Returns:
        The hero insight. Never None.
    """
    cfg = config or InsightsConfig()
    for rule in rules:
        if rule.applies(metrics, cfg):
            logger.debug(f"Hero rule matched: {rule.name}")
            return rule.build(metrics, cfg)
    return _volume_trend(metrics, cfg)
