"""Central Configuration System for MovieMemo Insights.

This module is the single source of truth for application configuration.
Every other module that needs settings imports from here.

The configuration system supports:
- Multi-source configuration (environment variables > config file > defaults)
- Tunable insight heuristics (dominance threshold, narrative cap, ...)
- Graceful degradation when the config file is missing or malformed

Example:
    >>> from moviememo.config import get_config
    >>>
    >>> cfg = get_config()
    >>> cfg.insights.dominance_threshold_percent
    40

Config File Format (YAML):
    ```yaml
    insights:
      dominance_threshold_percent: 40
      small_dataset_threshold: 5
      max_smart_insights: 6
      volume_drop_threshold_percent: 20
      min_best_streak_weeks: 2
      cache_enabled: true

    paths:
      data_file: ~/.moviememo/moviememo.json
      log_file: ~/.moviememo/moviememo.log

    default_range: thisMonth
    log_level: WARNING
    debug: false
    verbose: false
    ```
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from moviememo.core.ranges import RangePreset, SEGMENTS
from moviememo.exceptions import ConfigFileError

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_HOME = Path.home() / ".moviememo"


# =============================================================================
# Sections
# =============================================================================


class InsightsConfig(BaseModel):
    """Tunable heuristics of the insights engine.

    Attributes:
        dominance_threshold_percent: Share at which one time of day counts
            as dominant (hero card and narrative rule).
        small_dataset_threshold: Below this many records overall the
            user is "just starting": no comparisons, "So far, " wording.
        max_smart_insights: Cap on narrative statements.
        volume_drop_threshold_percent: A drop must exceed this to be
            mentioned; any rise is mentioned.
        min_best_streak_weeks: Best streak needed for the streak statement.
        cache_enabled: Memoize results per range.

    Example:
        >>> InsightsConfig(dominance_threshold_percent=50)
    """

    dominance_threshold_percent: int = Field(
        default=40, ge=0, le=100, description="Time-of-day dominance threshold."
    )
    small_dataset_threshold: int = Field(
        default=5, ge=0, description="All-time count below which data is 'just starting'."
    )
    max_smart_insights: int = Field(default=6, ge=0, description="Narrative statement cap.")
    volume_drop_threshold_percent: int = Field(
        default=20, ge=0, description="Minimum drop worth a narrative statement."
    )
    min_best_streak_weeks: int = Field(
        default=2, ge=1, description="Best streak needed for the streak statement."
    )
    cache_enabled: bool = Field(default=True, description="Memoize results per range.")


class PathsConfig(BaseModel):
    """Filesystem locations.

    Attributes:
        data_file: Export-format JSON snapshot used by the CLI.
        log_file: Optional log file; console-only when unset.
    """

    data_file: Path = Field(default=DEFAULT_HOME / "moviememo.json")
    log_file: Path | None = None

    @field_validator("data_file", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Configuration priority (highest wins):
    1. Environment variables (MOVIEMEMO_*, nested with ``__``)
    2. Config file (YAML)
    3. In-code defaults

    Attributes:
        insights: Engine heuristics.
        paths: Filesystem locations.
        default_range: Persisted range selection key.
        log_level: Console log level.
        debug: Enable debug mode (verbose logging, tracebacks).
        verbose: Enable verbose console output.
    """

    insights: InsightsConfig = Field(default_factory=InsightsConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    default_range: str = Field(default=RangePreset.THIS_MONTH.value)
    log_level: str = Field(default="WARNING")
    debug: bool = Field(default=False, description="Enable debug mode.")
    verbose: bool = Field(default=False, description="Enable verbose output.")

    model_config = {
        "env_prefix": "MOVIEMEMO_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # File values arrive as init kwargs; environment variables override them
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @field_validator("default_range", mode="before")
    @classmethod
    def known_range_key(cls, v: Any) -> str:
        """Only named periods persist; anything else falls back to this month."""
        keys = {preset.value for preset in SEGMENTS}
        if isinstance(v, str) and v in keys:
            return v
        logger.warning(f"Unknown default_range {v!r}, using {RangePreset.THIS_MONTH.value}")
        return RangePreset.THIS_MONTH.value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> str:
        level = str(v).upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return "WARNING"
        return level


# =============================================================================
# Module-Level Functions
# =============================================================================


def _read_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML config file into a dict.

    Raises:
        ConfigFileError: If the file cannot be read or parsed.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(f"Cannot read config file {path}: {e}") from e

    if not content.strip():
        return {}

    try:
        loaded = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Malformed YAML in {path}: {e}") from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigFileError(f"Config file {path} must contain a mapping at the top level")
    return loaded


def load_config(path: Path | None = None, strict: bool = False) -> AppConfig:
    """Load configuration from file, environment, and defaults.

    If no config file is found, uses defaults only (not an error).
    If the file is malformed, logs a warning and uses defaults, unless
    ``strict`` is set.

    Args:
        path: Optional explicit config file. If None, searches
            ``./moviememo.yaml`` and ``~/.moviememo/config.yaml``.
        strict: Raise ConfigFileError instead of falling back.

    Returns:
        Fully-populated AppConfig instance.

    Raises:
        ConfigFileError: Only in strict mode.
    """
    search_paths = [
        path,
        Path("./moviememo.yaml"),
        Path("./moviememo.yml"),
        DEFAULT_HOME / "config.yaml",
        DEFAULT_HOME / "config.yml",
    ]

    config_file: Path | None = None
    for search_path in search_paths:
        if search_path is not None and search_path.exists():
            config_file = search_path
            break

    if path is not None and config_file != path:
        logger.warning(f"Config file {path} not found. Using defaults.")

    config_data: dict[str, Any] = {}
    if config_file is not None:
        try:
            config_data = _read_config_file(config_file)
        except ConfigFileError as e:
            if strict:
                raise
            logger.warning(f"{e}. Using defaults.")

    try:
        return AppConfig(**config_data)
    except ValidationError as e:
        if strict:
            raise ConfigFileError(f"Invalid config values in {config_file}: {e}") from e
        logger.warning(f"Error parsing config values: {e.error_count()} errors. Using defaults.")
        return AppConfig()


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the cached configuration singleton.

    Returns:
        Cached AppConfig instance.
    """
    return load_config()


def reset_config() -> None:
    """Clear the configuration cache (used by tests)."""
    get_config.cache_clear()
