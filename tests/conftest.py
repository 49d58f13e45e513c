"""Central Pytest Fixtures for MovieMemo Insights.

This module provides reusable records, snapshots and export files across
all test modules. Every date-dependent test runs against the fixed
reference instant ``NOW`` (Wednesday 2024-03-20 12:00), never the real
clock.

Fixtures included:
- Records: make_entry, scenario_entries, rich_entries
- Files: export_file, empty_export_file
- Config: insights_config, clean_env
"""

import json
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest

from moviememo.config import InsightsConfig, reset_config
from moviememo.core.models import LocationType, TimeOfDay, WatchedEntry

# Wednesday. March 2024 weekdays before it: 4-8, 11-15, 18-20.
NOW = datetime(2024, 3, 20, 12, 0, 0)
TODAY = NOW.date()


# =============================================================================
# Helper Functions
# =============================================================================


def build_entry(title: str = "Movie", watched: str | date = "2024-03-04", **kwargs: Any) -> WatchedEntry:
    """Create a WatchedEntry with sensible defaults.

    Args:
        title: Movie title.
        watched: Watched date as ISO text or a date.
        **kwargs: Any other WatchedEntry field (snake_case).

    Returns:
        A new WatchedEntry.
    """
    return WatchedEntry(title=title, watched_date=watched, **kwargs)


def write_export(path: Path, entries: list[WatchedEntry]) -> Path:
    """Write entries to ``path`` in the export-file format."""
    payload = {
        "watchedEntries": [e.to_export_dict() for e in entries],
        "watchlistItems": [],
        "genres": [],
        "exportDate": NOW.isoformat(),
        "version": "1.0",
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def now() -> datetime:
    """The fixed reference instant."""
    return NOW


@pytest.fixture
def make_entry() -> Callable[..., WatchedEntry]:
    """Factory for WatchedEntry records."""
    return build_entry


@pytest.fixture
def scenario_entries() -> list[WatchedEntry]:
    """Six records: five theater weekdays this month at $10, one last month."""
    march = [
        build_entry(
            f"March {day}",
            f"2024-03-{day:02d}",
            location_type=LocationType.THEATER,
            spend_cents=1000,
        )
        for day in (4, 5, 6, 7, 8)
    ]
    february = build_entry("February", "2024-02-12", location_type=LocationType.HOME)
    return march + [february]


@pytest.fixture
def rich_entries() -> list[WatchedEntry]:
    """A varied snapshot that exercises every narrative rule.

    This month: 4 movies (3 weekday, 1 weekend), 3 at night, all Drama
    except one Comedy, durations 120/90/150/100 minutes.
    Last month: 1 movie. Weekly activity covers the last 3 weeks.
    """
    return [
        build_entry(
            "Dune",
            "2024-03-05",
            location_type=LocationType.THEATER,
            spend_cents=1500,
            duration_min=120,
            time_of_day=TimeOfDay.NIGHT,
            genre="Drama",
            companions="Alice, Bob",
        ),
        build_entry(
            "Past Lives",
            "2024-03-12",
            duration_min=90,
            time_of_day=TimeOfDay.NIGHT,
            genre="Drama",
            companions="Alice",
        ),
        build_entry(
            "Oppenheimer",
            "2024-03-16",
            location_type=LocationType.THEATER,
            spend_cents=1700,
            duration_min=150,
            time_of_day=TimeOfDay.NIGHT,
            genre=" Drama ",
        ),
        build_entry(
            "Barbie",
            "2024-03-19",
            duration_min=100,
            time_of_day=TimeOfDay.AFTERNOON,
            genre="Comedy",
        ),
        build_entry("Wonka", "2024-02-14", duration_min=110, genre="Comedy"),
    ]


# =============================================================================
# File Fixtures
# =============================================================================


@pytest.fixture
def export_file(tmp_path: Path, scenario_entries: list[WatchedEntry]) -> Path:
    """Export file holding the scenario snapshot."""
    return write_export(tmp_path / "export.json", scenario_entries)


@pytest.fixture
def empty_export_file(tmp_path: Path) -> Path:
    """Export file with no records."""
    return write_export(tmp_path / "empty.json", [])


# =============================================================================
# Config Fixtures
# =============================================================================


@pytest.fixture
def insights_config() -> InsightsConfig:
    """Default engine heuristics."""
    return InsightsConfig()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Isolate tests from MOVIEMEMO_* variables and local config files."""
    for key in list(os.environ):
        if key.startswith("MOVIEMEMO_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("moviememo.config.DEFAULT_HOME", tmp_path / ".moviememo")
    reset_config()
    yield
    reset_config()

