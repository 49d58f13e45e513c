"""Date range resolution for the insights screen.

A range selector is either one of four named periods or an explicit
custom window. Resolving a selector produces a concrete ``[start, end]``
interval (naive local datetimes, inclusive on both ends) and, for every
range except all-time, a same-length comparison window that precedes it.

Resolution never raises: inverted custom ranges are swapped, unknown
persisted keys fall back to this-month, and arithmetic that would leave
the representable datetime range is clamped.

Example:
    >>> from moviememo.core.ranges import RangeSelector, resolve_range
    >>>
    >>> resolved = resolve_range(RangeSelector.this_month())
    >>> resolved.label
    'This Month'
    >>> resolved.previous is not None
    True
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

logger = logging.getLogger(__name__)

ONE_SECOND = timedelta(seconds=1)
END_OF_DAY = time(23, 59, 59)
CUSTOM_KEY_PREFIX = "custom_"


# =============================================================================
# Enums
# =============================================================================


class RangePreset(str, Enum):
    """Kinds of range selector.

    The values double as the persisted storage keys of the named periods.
    """

    THIS_MONTH = "thisMonth"
    LAST_3_MONTHS = "last3Months"
    THIS_YEAR = "thisYear"
    ALL_TIME = "allTime"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def comparison_label(self) -> str:
        """How the comparison window is described in narrative text."""
        return _COMPARISON_LABELS[self]


_DISPLAY_NAMES = {
    RangePreset.THIS_MONTH: "This Month",
    RangePreset.LAST_3_MONTHS: "3 Months",
    RangePreset.THIS_YEAR: "This Year",
    RangePreset.ALL_TIME: "All Time",
    RangePreset.CUSTOM: "Custom",
}

_COMPARISON_LABELS = {
    RangePreset.THIS_MONTH: "last month",
    RangePreset.LAST_3_MONTHS: "prior 3 months",
    RangePreset.THIS_YEAR: "last year",
    RangePreset.ALL_TIME: "all time",
    RangePreset.CUSTOM: "prior period",
}

# Named periods in segment-control order
SEGMENTS: tuple[RangePreset, ...] = (
    RangePreset.THIS_MONTH,
    RangePreset.LAST_3_MONTHS,
    RangePreset.THIS_YEAR,
    RangePreset.ALL_TIME,
)


# =============================================================================
# Models
# =============================================================================


class RangeSelector(BaseModel):
    """A named period or a custom ``(start, end)`` window.

    Custom bounds are normalized on construction, whether built through
    :meth:`custom` or directly: bare dates widen to whole days, aware
    datetimes become naive local time, and inverted bounds are swapped.

    Attributes:
        preset: Which kind of range this is.
        start: Custom start (only for ``RangePreset.CUSTOM``).
        end: Custom end (only for ``RangePreset.CUSTOM``).
    """

    model_config = ConfigDict(frozen=True)

    preset: RangePreset
    start: datetime | None = None
    end: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def normalize_custom_bounds(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("preset") != RangePreset.CUSTOM:
            return data

        start = _parse_bound(data.get("start"))
        end = _parse_bound(data.get("end"))
        if not isinstance(start, date) or not isinstance(end, date):
            # Missing or unparseable bounds are reported by field validation
            return data

        if _to_datetime(end, end_of_day=False) < _to_datetime(start, end_of_day=False):
            start, end = end, start
        return {
            **data,
            "start": _to_datetime(start, end_of_day=False),
            "end": _to_datetime(end, end_of_day=True),
        }

    @model_validator(mode="after")
    def check_custom_bounds(self) -> "RangeSelector":
        if self.preset == RangePreset.CUSTOM and (self.start is None or self.end is None):
            raise ValueError("Custom range selectors need both start and end")
        return self

    @classmethod
    def this_month(cls) -> "RangeSelector":
        return cls(preset=RangePreset.THIS_MONTH)

    @classmethod
    def last_3_months(cls) -> "RangeSelector":
        return cls(preset=RangePreset.LAST_3_MONTHS)

    @classmethod
    def this_year(cls) -> "RangeSelector":
        return cls(preset=RangePreset.THIS_YEAR)

    @classmethod
    def all_time(cls) -> "RangeSelector":
        return cls(preset=RangePreset.ALL_TIME)

    @classmethod
    def custom(cls, start: date | datetime, end: date | datetime) -> "RangeSelector":
        """Build a custom selector.

        A bare ``date`` start means the beginning of that day and a bare
        ``date`` end means its last second. If ``end`` precedes ``start``
        the two are swapped first.

        Args:
            start: First day or instant of the window.
            end: Last day or instant of the window.

        Returns:
            A custom RangeSelector with naive local datetime bounds.
        """
        return cls(preset=RangePreset.CUSTOM, start=start, end=end)

    @property
    def storage_key(self) -> str:
        """Stable key used for caching and persisting the selection."""
        if self.preset != RangePreset.CUSTOM:
            return self.preset.value
        return f"{CUSTOM_KEY_PREFIX}{_epoch_seconds(self.start)}_{_epoch_seconds(self.end)}"

    @property
    def display_name(self) -> str:
        return self.preset.display_name


class DateWindow(BaseModel):
    """Inclusive ``[start, end]`` window of naive local datetimes."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, day: date) -> bool:
        """Check whether a calendar day (taken at local midnight) falls inside."""
        moment = datetime.combine(day, time.min)
        return self.start <= moment <= self.end


class ResolvedRange(DateWindow):
    """A concrete interval plus its optional comparison window.

    Attributes:
        preset: The kind of selector this was resolved from.
        key: Storage key of the selector (cache identity).
        label: Display label ("This Month", "Custom", ...).
        comparison_label: How the previous window is described.
        previous: Same-length window preceding ``start``; ``None`` only
            for the all-time range.
    """

    preset: RangePreset
    key: str
    label: str
    comparison_label: str
    previous: DateWindow | None = None

    @property
    def is_all_time(self) -> bool:
        return self.preset == RangePreset.ALL_TIME


# =============================================================================
# Resolution
# =============================================================================


def resolve_range(selector: RangeSelector, now: datetime | None = None) -> ResolvedRange:
    """Map a selector to a concrete interval and comparison window.

    Args:
        selector: The range selector.
        now: Reference instant. Defaults to the current local time.

    Returns:
        The resolved range. This function never raises.
    """
    now = _to_datetime(now, end_of_day=False) if now is not None else datetime.now()
    preset = selector.preset
    previous: DateWindow | None

    if preset == RangePreset.THIS_MONTH:
        start = datetime(now.year, now.month, 1)
        end = _add_months(start, 1) - ONE_SECOND
        previous = DateWindow(start=_add_months(start, -1), end=start - ONE_SECOND)
    elif preset == RangePreset.LAST_3_MONTHS:
        start = _add_months(now, -3)
        end = now
        previous = _preceding_window(start, end)
    elif preset == RangePreset.THIS_YEAR:
        start = datetime(now.year, 1, 1)
        end = now
        previous = DateWindow(start=_add_years(start, -1), end=_add_years(now, -1))
    elif preset == RangePreset.ALL_TIME:
        start = datetime.min
        end = now
        previous = None
    else:
        start = selector.start
        end = selector.end
        previous = _preceding_window(start, end)

    return ResolvedRange(
        preset=preset,
        key=selector.storage_key,
        label=preset.display_name,
        comparison_label=preset.comparison_label,
        start=start,
        end=end,
        previous=previous,
    )


def parse_selector(key: str | None) -> RangeSelector:
    """Turn a persisted storage key back into a selector.

    Unknown or malformed keys fall back to this-month.

    Args:
        key: A value previously produced by ``RangeSelector.storage_key``.

    Returns:
        The matching selector.
    """
    if not key:
        return RangeSelector.this_month()

    key = key.strip()
    for preset in SEGMENTS:
        if key == preset.value:
            return RangeSelector(preset=preset)

    if key.startswith(CUSTOM_KEY_PREFIX):
        try:
            raw_start, raw_end = key[len(CUSTOM_KEY_PREFIX):].split("_")
            return RangeSelector.custom(
                datetime.fromtimestamp(int(raw_start)),
                datetime.fromtimestamp(int(raw_end)),
            )
        except (ValueError, OverflowError, OSError):
            logger.debug(f"Malformed custom range key {key!r}, using this month")
            return RangeSelector.this_month()

    logger.debug(f"Unknown range key {key!r}, using this month")
    return RangeSelector.this_month()


# =============================================================================
# Helpers
# =============================================================================


def _to_datetime(value: date | datetime, end_of_day: bool) -> datetime:
    """Normalize to a naive local datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    return datetime.combine(value, END_OF_DAY if end_of_day else time.min)


def _parse_bound(value: Any) -> Any:
    """Parse ISO strings into a date or datetime; other values pass through."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return value


def _epoch_seconds(value: datetime | None) -> int:
    try:
        return int(value.timestamp())
    except (AttributeError, OverflowError, OSError, ValueError):
        return 0


def _add_months(value: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length."""
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    if year < 1:
        return datetime.min
    if year > 9999:
        return datetime.max
    day = min(value.day, calendar.monthrange(year, month + 1)[1])
    return value.replace(year=year, month=month + 1, day=day)


def _add_years(value: datetime, years: int) -> datetime:
    return _add_months(value, years * 12)


def _preceding_window(start: datetime, end: datetime) -> DateWindow:
    """Same-duration window ending one second before ``start``."""
    duration = end - start
    try:
        prev_end = start - ONE_SECOND
    except OverflowError:
        return DateWindow(start=datetime.min, end=datetime.min)
    try:
        prev_start = prev_end - duration
    except OverflowError:
        prev_start = datetime.min
    return DateWindow(start=prev_start, end=prev_end)
