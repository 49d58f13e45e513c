"""Core data models for MovieMemo Insights.

Models follow a tiered flow:
1. RAW RECORD (WatchedEntry and its enums), owned by the external store
2. BUILDING BLOCKS (KeyCount, MonthBucket, PeriodComparison)
3. NARRATIVE (HeroInsight, SmartInsight)
4. FINAL RESULT (InsightsData, BasicStats)

Everything from tier 2 onward is frozen: a result is created once per
computation and superseded, never edited.
"""

from __future__ import annotations

import uuid as uuid_module
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Mapping

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from moviememo.core.ranges import ResolvedRange


# =============================================================================
# Enums
# =============================================================================


class LocationType(str, Enum):
    """Where a movie was watched."""

    HOME = "HOME"
    THEATER = "THEATER"
    FRIENDS_HOME = "FRIENDS_HOME"
    OTHER = "OTHER"

    @property
    def display_name(self) -> str:
        return {
            LocationType.HOME: "Home",
            LocationType.THEATER: "Theater",
            LocationType.FRIENDS_HOME: "Friend's Home",
            LocationType.OTHER: "Other",
        }[self]


class TimeOfDay(str, Enum):
    """Coarse time-of-day bucket recorded with each entry."""

    NIGHT = "NIGHT"
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Language(str, Enum):
    """Movie language, stored as a short code with a fixed display name."""

    ENGLISH = "en"
    TELUGU = "te"
    HINDI = "hi"
    TAMIL = "ta"
    KANNADA = "kn"
    MALAYALAM = "ml"
    BENGALI = "bn"
    MARATHI = "mr"
    GUJARATI = "gu"
    PUNJABI = "pa"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return _LANGUAGE_NAMES[self]


_LANGUAGE_NAMES = {
    Language.ENGLISH: "English",
    Language.TELUGU: "తెలుగు",
    Language.HINDI: "हिन्दी",
    Language.TAMIL: "தமிழ்",
    Language.KANNADA: "ಕನ್ನಡ",
    Language.MALAYALAM: "മലയാളം",
    Language.BENGALI: "বাংলা",
    Language.MARATHI: "मराठी",
    Language.GUJARATI: "ગુજરાતી",
    Language.PUNJABI: "ਪੰਜਾਬੀ",
    Language.OTHER: "Other",
}


class Direction(str, Enum):
    """Direction of a period-over-period change."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class HeroKind(str, Enum):
    """The four kinds of headline insight."""

    JUST_STARTING = "just_starting"
    VOLUME_TREND = "volume_trend"
    TIME_OF_DAY = "time_of_day"
    SPENDING = "spending"


# =============================================================================
# Formatting Helpers
# =============================================================================


def format_cents(cents: int, decimals: int = 2) -> str:
    """Format integer cents as dollars, e.g. ``1250 -> "$12.50"``."""
    return f"${cents / 100:.{decimals}f}"


def format_minutes(minutes: int) -> str:
    """Format minutes as ``"2h 5m"`` (or ``"45m"`` under an hour)."""
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def _coerce_enum(enum_cls: type[Enum], value: Any, default: Enum) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for candidate in (value, value.strip().upper(), value.strip().lower()):
            try:
                return enum_cls(candidate)
            except ValueError:
                continue
    return default


# =============================================================================
# Watched Entry (external record)
# =============================================================================


class WatchedEntry(BaseModel):
    """One logged movie viewing.

    Owned by the external repository; the insights engine only reads it.
    Accepts snake_case field names or the camelCase keys of the export
    file. Unknown enum raw values fall back to HOME / EVENING / ENGLISH.

    ``watched_date`` is kept as ISO text exactly as stored. Use
    :attr:`watched_on` for the parsed calendar day, which is ``None`` for
    malformed text.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: str(uuid_module.uuid4()))
    title: str
    rating: int | None = Field(default=None, ge=0, le=10)
    watched_date: str
    location_type: LocationType = LocationType.HOME
    location_notes: str | None = None
    companions: str | None = None
    spend_cents: int | None = Field(default=None, ge=0)
    duration_min: int | None = Field(default=None, ge=0)
    time_of_day: TimeOfDay = TimeOfDay.EVENING
    genre: str | None = None
    notes: str | None = None
    poster_uri: str | None = None
    language: Language = Language.ENGLISH
    theater_name: str | None = None
    city: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("id", mode="before")
    @classmethod
    def generate_id_if_empty(cls, v: Any) -> str:
        if not v:
            return str(uuid_module.uuid4())
        return str(v)

    @field_validator("watched_date", mode="before")
    @classmethod
    def normalize_watched_date(cls, v: Any) -> str:
        """Store dates as ISO ``YYYY-MM-DD`` text; keep other text verbatim."""
        if isinstance(v, datetime):
            return v.date().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        if v is None:
            return ""
        return str(v)

    @field_validator("location_type", mode="before")
    @classmethod
    def coerce_location(cls, v: Any) -> LocationType:
        return _coerce_enum(LocationType, v, LocationType.HOME)

    @field_validator("time_of_day", mode="before")
    @classmethod
    def coerce_time_of_day(cls, v: Any) -> TimeOfDay:
        return _coerce_enum(TimeOfDay, v, TimeOfDay.EVENING)

    @field_validator("language", mode="before")
    @classmethod
    def coerce_language(cls, v: Any) -> Language:
        return _coerce_enum(Language, v, Language.ENGLISH)

    @property
    def watched_on(self) -> date | None:
        """Parsed watched date, or ``None`` when the stored text is malformed."""
        try:
            return datetime.strptime(self.watched_date.strip(), "%Y-%m-%d").date()
        except ValueError:
            return None

    @property
    def formatted_spend(self) -> str:
        if self.spend_cents is None:
            return "N/A"
        return format_cents(self.spend_cents)

    @property
    def formatted_duration(self) -> str:
        if self.duration_min is None:
            return "N/A"
        return format_minutes(self.duration_min)

    def companion_names(self) -> list[str]:
        """Comma-split, trimmed companion names (duplicates kept)."""
        if not self.companions:
            return []
        return [name.strip() for name in self.companions.split(",") if name.strip()]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WatchedEntry":
        """Compatibility helper for model validation from dict."""
        return cls.model_validate(data)

    def to_export_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys of the export file."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Building Blocks
# =============================================================================


class KeyCount(BaseModel):
    """A ``(category, count)`` pair used for every categorical distribution."""

    model_config = ConfigDict(frozen=True)

    category: str
    count: int = Field(ge=0)


class MonthBucket(BaseModel):
    """Totals for one calendar month across all history.

    Attributes:
        year_month: Month key in ``YYYY-MM`` form.
        count: Entries watched that month.
        spend_cents: Sum of recorded spend (missing spend adds nothing).
        watch_minutes: Sum of recorded durations.
    """

    model_config = ConfigDict(frozen=True)

    year_month: str
    count: int = 0
    spend_cents: int = 0
    watch_minutes: int = 0

    def _as_date(self) -> date | None:
        try:
            return datetime.strptime(self.year_month, "%Y-%m").date()
        except ValueError:
            return None

    @property
    def display_month(self) -> str:
        """Short month name, e.g. ``"Mar"``."""
        parsed = self._as_date()
        return parsed.strftime("%b") if parsed else self.year_month

    @property
    def short_label(self) -> str:
        """Month and two-digit year, e.g. ``"Mar 24"``."""
        parsed = self._as_date()
        return parsed.strftime("%b %y") if parsed else self.year_month


class PeriodComparison(BaseModel):
    """Current vs previous window counts.

    ``delta_percent`` truncates toward zero. When ``previous`` is 0 it is
    defined as 100 if ``current > 0`` and 0 otherwise, so it is always a
    finite integer.
    """

    model_config = ConfigDict(frozen=True)

    current: int = 0
    previous: int = 0

    @computed_field
    @property
    def delta(self) -> int:
        return self.current - self.previous

    @computed_field
    @property
    def delta_percent(self) -> int:
        if self.previous <= 0:
            return 100 if self.current > 0 else 0
        return int(self.delta * 100 / self.previous)

    @computed_field
    @property
    def direction(self) -> Direction:
        if self.delta > 0:
            return Direction.UP
        if self.delta < 0:
            return Direction.DOWN
        return Direction.FLAT

    @property
    def delta_text(self) -> str:
        if self.direction == Direction.UP:
            return f"+{self.delta}"
        if self.direction == Direction.DOWN:
            return str(self.delta)
        return "±0"

    @property
    def percent_text(self) -> str:
        sign = "+" if self.delta >= 0 else ""
        return f"{sign}{self.delta_percent}%"


# =============================================================================
# Narrative
# =============================================================================


class HeroInsight(BaseModel):
    """The single headline insight for a range.

    A tagged variant: ``kind`` decides which payload fields are meaningful.

    - JUST_STARTING: ``count``
    - VOLUME_TREND: ``count``, ``delta``, ``period_label``
    - TIME_OF_DAY: ``category``, ``percent``, ``count``
    - SPENDING: ``total_cents``, ``avg_cents``
    """

    model_config = ConfigDict(frozen=True)

    kind: HeroKind
    count: int = 0
    delta: int = 0
    period_label: str | None = None
    category: str | None = None
    percent: int = 0
    total_cents: int = 0
    avg_cents: int = 0

    @classmethod
    def just_starting(cls, count: int) -> "HeroInsight":
        return cls(kind=HeroKind.JUST_STARTING, count=count)

    @classmethod
    def volume_trend(cls, count: int, delta: int, period_label: str) -> "HeroInsight":
        return cls(kind=HeroKind.VOLUME_TREND, count=count, delta=delta, period_label=period_label)

    @classmethod
    def time_of_day(cls, category: str, percent: int, count: int) -> "HeroInsight":
        return cls(kind=HeroKind.TIME_OF_DAY, category=category, percent=percent, count=count)

    @classmethod
    def spending(cls, total_cents: int, avg_cents: int) -> "HeroInsight":
        return cls(kind=HeroKind.SPENDING, total_cents=total_cents, avg_cents=avg_cents)

    def headline(self) -> str:
        """One-line human rendering of the hero card."""
        if self.kind == HeroKind.JUST_STARTING:
            noun = "movie" if self.count == 1 else "movies"
            return f"You've logged {self.count} {noun}. Keep going!"
        if self.kind == HeroKind.TIME_OF_DAY:
            return f"{self.category} is your time: {self.percent}% of movies ({self.count})."
        if self.kind == HeroKind.SPENDING:
            return (
                f"You spent {format_cents(self.total_cents)}, "
                f"about {format_cents(self.avg_cents)} per movie."
            )
        sign = "+" if self.delta > 0 else ""
        noun = "movie" if self.count == 1 else "movies"
        return f"{self.count} {noun} ({sign}{self.delta} vs {self.period_label})."


def _freeze_mapping(value: Mapping[str, int | str]) -> Mapping[str, int | str]:
    return MappingProxyType(dict(value))


def _thaw_mapping(value: Mapping[str, int | str]) -> dict[str, int | str]:
    return dict(value)


# Read-only after validation; dumps as a plain dict
Derivation = Annotated[
    Mapping[str, int | str],
    AfterValidator(_freeze_mapping),
    PlainSerializer(_thaw_mapping, return_type=dict),
]


class SmartInsight(BaseModel):
    """A short narrative statement derived from the aggregated metrics.

    Attributes:
        kind: Name of the rule that produced it.
        text: The statement shown to the user.
        icon: Symbol name for the presentation layer.
        detail_title: Heading of the explanation sheet.
        detail_body: Human explanation of how the figure was derived.
        derivation: The inputs the statement was computed from.
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    text: str
    icon: str
    detail_title: str
    detail_body: str
    derivation: Derivation = Field(default_factory=lambda: MappingProxyType({}))


# =============================================================================
# Final Result
# =============================================================================


class InsightsData(BaseModel):
    """Everything the insights screen shows for one resolved range.

    Created once per computation and never mutated; recomputation
    produces a new instance. Collections are tuples, so a cached result
    cannot be altered by any of its readers.
    """

    model_config = ConfigDict(frozen=True)

    resolved_range: ResolvedRange
    hero: HeroInsight

    # Volume
    movies_count: int = 0
    movies_comparison: PeriodComparison = Field(default_factory=PeriodComparison)

    # Watch time
    total_watch_time_minutes: int = 0
    avg_watch_time_per_movie_minutes: int = 0

    # Spend
    total_spent_cents: int = 0
    avg_spent_per_movie_cents: int = 0
    theater_avg_spend_cents: int = 0
    has_spend_data: bool = False

    # Location
    theater_count: int = 0
    home_count: int = 0
    friends_home_count: int = 0
    other_count: int = 0

    # Day split
    weekday_count: int = 0
    weekend_count: int = 0

    # Distributions (sorted by count desc)
    location_buckets: tuple[KeyCount, ...] = ()
    day_of_week_buckets: tuple[KeyCount, ...] = ()
    time_of_day_buckets: tuple[KeyCount, ...] = ()
    top_genres: tuple[KeyCount, ...] = ()
    top_languages: tuple[KeyCount, ...] = ()
    companions: tuple[KeyCount, ...] = ()

    # Trend chart (all history)
    monthly_buckets: tuple[MonthBucket, ...] = ()

    # Streaks (all history)
    current_streak_weeks: int = 0
    best_streak_weeks: int = 0

    # Narrative
    smart_insights: tuple[SmartInsight, ...] = ()

    # All-time total for empty-state detection
    total_all_time_entries: int = 0

    @property
    def is_empty(self) -> bool:
        """No records at all, the first-launch empty state."""
        return self.total_all_time_entries == 0

    @property
    def is_just_starting(self) -> bool:
        return self.hero.kind == HeroKind.JUST_STARTING


class BasicStats(BaseModel):
    """Simplified statistics view, projected from insights results."""

    model_config = ConfigDict(frozen=True)

    total_movies_watched: int = 0
    this_month_movies: int = 0
    total_amount_spent_cents: int = 0
    this_month_spending_cents: int = 0
    average_theater_spend_cents: int = 0
    this_month_average_theater_spend_cents: int = 0
    weekday_count: int = 0
    weekend_count: int = 0
    total_watch_time_minutes: int = 0
    top_genres: tuple[KeyCount, ...] = ()
    movies_by_location: tuple[KeyCount, ...] = ()
    movies_by_time_of_day: tuple[KeyCount, ...] = ()
    movies_by_language: tuple[KeyCount, ...] = ()
    movies_by_companion: tuple[KeyCount, ...] = ()
    monthly_trends: tuple[KeyCount, ...] = ()
