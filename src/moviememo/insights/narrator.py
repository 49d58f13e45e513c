"""Smart insight narration.

Turns aggregated metrics into short statements such as "Your average
movie length is 2h 5m." Rules run in a fixed order; a rule whose guard
fails is skipped, and the output is cut to the first
``max_smart_insights`` statements. Later rules are dropped, never
reprioritized.

Each statement carries the integer inputs it was derived from, so the
figures can be checked independently of the wording.

When the whole history holds fewer than ``small_dataset_threshold``
records, every statement is prefixed with "So far, ".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from moviememo.config import InsightsConfig
from moviememo.core.models import Direction, SmartInsight, format_cents, format_minutes
from moviememo.insights.aggregator import AggregatedMetrics, percent
from moviememo.insights.streaks import StreakResult

logger = logging.getLogger(__name__)

SMALL_DATASET_PREFIX = "So far, "

_TIME_OF_DAY_PHRASES = {
    "Morning": "in the morning",
    "Afternoon": "in the afternoon",
    "Evening": "in the evening",
    "Night": "at night",
}


@dataclass(frozen=True)
class NarrativeContext:
    """Inputs shared by every narrative rule."""

    metrics: AggregatedMetrics
    streaks: StreakResult
    config: InsightsConfig

    @property
    def is_small_dataset(self) -> bool:
        return self.metrics.total_all_time_entries < self.config.small_dataset_threshold


@dataclass(frozen=True)
class NarrativeRule:
    """One ordered narrative rule.

    Attributes:
        name: Stable rule id, copied into ``SmartInsight.kind``.
        applies: Guard; the rule is skipped when it returns False.
        build: Produces the statement (without the small-dataset prefix).
        proper_noun_lead: The text starts with a name that must keep its
            capitalization after the prefix.
    """

    name: str
    applies: Callable[[NarrativeContext], bool]
    build: Callable[[NarrativeContext], SmartInsight]
    proper_noun_lead: bool = False


# =============================================================================
# Rules
# =============================================================================


def _volume_applies(ctx: NarrativeContext) -> bool:
    m = ctx.metrics
    if m.resolved_range.is_all_time or m.comparison.previous <= 0:
        return False
    if m.comparison.direction == Direction.UP:
        return True
    return (
        m.comparison.direction == Direction.DOWN
        and abs(m.comparison.delta_percent) > ctx.config.volume_drop_threshold_percent
    )


def _volume_build(ctx: NarrativeContext) -> SmartInsight:
    m = ctx.metrics
    pct = abs(m.comparison.delta_percent)
    label = m.resolved_range.comparison_label
    if m.comparison.direction == Direction.UP:
        text = f"You're watching more movies recently (+{pct}% vs {label})."
        icon = "arrow.up.right"
    else:
        text = f"Fewer movies this period ({pct}% less vs {label})."
        icon = "arrow.down.right"
    return SmartInsight(
        kind="volume_trend",
        text=text,
        icon=icon,
        detail_title="Volume Trend",
        detail_body=(
            "Compares the number of movies watched in this period versus "
            "the same-length prior period."
        ),
        derivation={
            "current": m.comparison.current,
            "previous": m.comparison.previous,
            "delta_percent": m.comparison.delta_percent,
        },
    )


def _avg_length_build(ctx: NarrativeContext) -> SmartInsight:
    m = ctx.metrics
    return SmartInsight(
        kind="average_length",
        text=f"Your average movie length is {format_minutes(m.avg_watch_time_minutes)}.",
        icon="clock",
        detail_title="Average Watch Time",
        detail_body=(
            "Total watch time divided by the number of movies in this period "
            "that have a duration logged."
        ),
        derivation={
            "total_minutes": m.total_watch_time_minutes,
            "average_minutes": m.avg_watch_time_minutes,
        },
    )


def _top_genre_build(ctx: NarrativeContext) -> SmartInsight:
    m = ctx.metrics
    top = m.top_genres[0]
    share = percent(top.count, m.genre_tagged_count)
    return SmartInsight(
        kind="top_genre",
        text=f"{top.category} is your #1 genre ({share}%).",
        icon="tag",
        detail_title="Top Genre",
        detail_body=(
            "Percentage of movies with a genre tag that belong to the most "
            "common genre in this period."
        ),
        derivation={
            "genre": top.category,
            "count": top.count,
            "tagged_total": m.genre_tagged_count,
            "percent": share,
        },
    )


def _time_of_day_applies(ctx: NarrativeContext) -> bool:
    dominant = ctx.metrics.dominant_time_of_day()
    return dominant is not None and dominant[1] >= ctx.config.dominance_threshold_percent


def _time_of_day_build(ctx: NarrativeContext) -> SmartInsight:
    bucket, share = ctx.metrics.dominant_time_of_day()
    phrase = _TIME_OF_DAY_PHRASES.get(bucket.category, f"at {bucket.category.lower()}")
    return SmartInsight(
        kind="time_of_day",
        text=f"You mostly watch {phrase} ({share}% of movies).",
        icon="clock.fill",
        detail_title="Preferred Watch Time",
        detail_body=f"Percentage of movies logged with '{bucket.category}' as the time of day.",
        derivation={
            "category": bucket.category,
            "count": bucket.count,
            "total": ctx.metrics.time_of_day_total,
            "percent": share,
        },
    )


def _day_split_build(ctx: NarrativeContext) -> SmartInsight:
    m = ctx.metrics
    total = m.weekday_count + m.weekend_count
    if m.weekday_count > m.weekend_count:
        share = percent(m.weekday_count, total)
        text = f"You watch mostly on weekdays ({share}%), likely after work."
    else:
        share = percent(m.weekend_count, total)
        text = f"You're a weekend watcher ({share}% on weekends)."
    return SmartInsight(
        kind="weekday_weekend",
        text=text,
        icon="calendar",
        detail_title="Weekday vs Weekend",
        detail_body=(
            "Movies watched Monday to Friday vs Saturday and Sunday, based on the watched date."
        ),
        derivation={"weekday": m.weekday_count, "weekend": m.weekend_count, "percent": share},
    )


def _spending_build(ctx: NarrativeContext) -> SmartInsight:
    m = ctx.metrics
    return SmartInsight(
        kind="spending",
        text=(
            f"You spent {format_cents(m.total_spent_cents, decimals=0)} total, "
            f"averaging {format_cents(m.avg_spent_cents)} per movie."
        ),
        icon="dollarsign.circle",
        detail_title="Spending",
        detail_body=(
            "Total spend and average per movie for all entries with a spend "
            "amount logged in this period."
        ),
        derivation={"total_cents": m.total_spent_cents, "average_cents": m.avg_spent_cents},
    )


def _streak_build(ctx: NarrativeContext) -> SmartInsight:
    best = ctx.streaks.best_weeks
    unit = "week" if best == 1 else "weeks"
    return SmartInsight(
        kind="best_streak",
        text=f"Your best streak was {best} {unit} in a row.",
        icon="flame",
        detail_title="Watch Streak",
        detail_body=(
            "A week counts toward your streak if you watched at least one movie "
            "in it. Streaks are calculated from all-time data."
        ),
        derivation={"best_weeks": best, "current_weeks": ctx.streaks.current_weeks},
    )


NARRATIVE_RULES: tuple[NarrativeRule, ...] = (
    NarrativeRule("volume_trend", _volume_applies, _volume_build),
    NarrativeRule(
        "average_length", lambda ctx: ctx.metrics.avg_watch_time_minutes > 0, _avg_length_build
    ),
    NarrativeRule(
        "top_genre", lambda ctx: bool(ctx.metrics.top_genres), _top_genre_build, proper_noun_lead=True
    ),
    NarrativeRule("time_of_day", _time_of_day_applies, _time_of_day_build),
    NarrativeRule(
        "weekday_weekend",
        lambda ctx: ctx.metrics.weekday_count != ctx.metrics.weekend_count,
        _day_split_build,
    ),
    NarrativeRule("spending", lambda ctx: ctx.metrics.total_spent_cents > 0, _spending_build),
    NarrativeRule(
        "best_streak",
        lambda ctx: ctx.streaks.best_weeks >= ctx.config.min_best_streak_weeks,
        _streak_build,
    ),
)


# =============================================================================
# Generation
# =============================================================================


def _with_prefix(insight: SmartInsight, keep_case: bool) -> SmartInsight:
    text = insight.text
    if not keep_case and text:
        text = text[0].lower() + text[1:]
    return insight.model_copy(update={"text": f"{SMALL_DATASET_PREFIX}{text}"})


def generate_smart_insights(
    metrics: AggregatedMetrics,
    streaks: StreakResult,
    config: InsightsConfig | None = None,
    rules: tuple[NarrativeRule, ...] = NARRATIVE_RULES,
) -> list[SmartInsight]:
    """Generate the ordered, capped list of narrative statements.

    Args:
        metrics: Output of ``aggregate``.
        streaks: All-time streaks.
        config: Engine heuristics; defaults apply when omitted.
        rules: Ordered rule list.

    Returns:
        At most ``config.max_smart_insights`` statements, in rule order.
    """
    ctx = NarrativeContext(metrics=metrics, streaks=streaks, config=config or InsightsConfig())
    insights: list[SmartInsight] = []

    for rule in rules:
        if not rule.applies(ctx):
            continue
        insight = rule.build(ctx)
        if ctx.is_small_dataset:
            insight = _with_prefix(insight, keep_case=rule.proper_noun_lead)
        insights.append(insight)

    if len(insights) > ctx.config.max_smart_insights:
        dropped = [i.kind for i in insights[ctx.config.max_smart_insights:]]
        logger.debug(f"Narrative cap reached, dropping: {', '.join(dropped)}")

    return insights[: ctx.config.max_smart_insights]
