"""Logging for the moviememo package.

Everything logs through ``logging.getLogger(__name__)``, so all records
land under the ``moviememo`` logger. The CLI calls :func:`setup_logging`
once per run to pick the level (``--verbose`` / ``--debug`` or the
``log_level`` setting) and to add the optional ``paths.log_file``.
Records go to stderr through rich so JSON on stdout stays clean.

The insights engine wraps each computation in :class:`LogContext`, which
reports the stage timing at DEBUG:

    Computing insights for thisMonth...
    Computing insights for thisMonth completed in 0.00s
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


# =============================================================================
# Constants
# =============================================================================

PACKAGE_NAME = "moviememo"

# File handler layout; the console handler leaves layout to rich
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_stderr_console = Console(stderr=True)


# =============================================================================
# Setup
# =============================================================================


def setup_logging(level: str = "WARNING", log_file: Path | None = None) -> None:
    """Attach handlers to the ``moviememo`` logger.

    Handlers from an earlier call are closed and replaced. The package
    logger does not propagate, so host applications keep their own root
    configuration.

    Args:
        level: Level name; unknown names mean WARNING.
        log_file: Also append plain-text records here when given.
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    package_logger = logging.getLogger(PACKAGE_NAME)
    package_logger.setLevel(numeric_level)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=_stderr_console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=numeric_level == logging.DEBUG,
        # movie titles and genres may contain square brackets
        markup=False,
    )
    console_handler.setLevel(numeric_level)
    package_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
        package_logger.addHandler(file_handler)

    package_logger.propagate = False
    package_logger.debug(f"Logging configured: level={level}, file={log_file}")


# =============================================================================
# Timing
# =============================================================================


class LogContext:
    """Log the start and duration of one insights stage.

    A failure inside the block is logged at ERROR with its elapsed time
    and then re-raised.

    Attributes:
        message: Stage description, e.g. ``"Computing insights for allTime"``.
        level: Level for the start and completion records.
        logger: Logger to write to (the package logger by default).
        elapsed: Seconds spent inside the block, set on exit.
    """

    def __init__(
        self,
        message: str,
        level: int = logging.INFO,
        logger: logging.Logger | None = None,
    ) -> None:
        self.message = message
        self.level = level
        self.logger = logger or logging.getLogger(PACKAGE_NAME)
        self.elapsed: float = 0.0
        self._started: float = 0.0

    def __enter__(self) -> "LogContext":
        self._started = time.perf_counter()
        self.logger.log(self.level, f"{self.message}...")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.elapsed = time.perf_counter() - self._started

        if exc_type is not None:
            self.logger.error(f"{self.message} failed after {self.elapsed:.2f}s: {exc_val}")
        else:
            self.logger.log(self.level, f"{self.message} completed in {self.elapsed:.2f}s")
