"""Process-local memo table for insights results.

Results are keyed by the resolved range's storage key ("thisMonth",
"custom_<start>_<end>", ...). The table is the only shared mutable state
of the engine, so every read and write goes through one lock.

Invalidation bumps a generation counter. A computation records the
generation it started under and passes it to :meth:`InsightsCache.put`;
if an invalidate happened in between, the stale result is discarded
instead of being published.

Example:
    >>> cache = InsightsCache()
    >>> generation = cache.generation
    >>> result = compute(...)
    >>> cache.put("thisMonth", result, generation=generation)
    True
    >>> cache.get("thisMonth") is result
    True
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from moviememo.core.models import InsightsData

# Module logger
logger = logging.getLogger(__name__)


class InsightsCache:
    """Thread-safe ``key -> InsightsData`` table.

    Attributes:
        _entries: The memo table.
        _generation: Bumped on every invalidate.
        _enabled: When False all operations are no-ops.
        _hits: Lookup hits since creation.
        _misses: Lookup misses since creation.
    """

    def __init__(self, enabled: bool = True) -> None:
        self._entries: dict[str, InsightsData] = {}
        self._generation = 0
        self._enabled = enabled
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def generation(self) -> int:
        """Current invalidation generation."""
        with self._lock:
            return self._generation

    def get(self, key: str) -> InsightsData | None:
        """Return the cached result for ``key``, or None on a miss."""
        if not self._enabled:
            return None
        with self._lock:
            result = self._entries.get(key)
            if result is None:
                self._misses += 1
            else:
                self._hits += 1
        self._logger.debug(f"Cache {'hit' if result is not None else 'miss'} for {key}")
        return result

    def put(self, key: str, result: InsightsData, generation: int | None = None) -> bool:
        """Insert or replace the entry for ``key``.

        Args:
            key: Range storage key.
            result: A complete, immutable result.
            generation: Generation the computation started under. When it
                no longer matches, the result is stale and is dropped.

        Returns:
            True if the entry was stored.
        """
        if not self._enabled:
            return False
        with self._lock:
            if generation is not None and generation != self._generation:
                self._logger.debug(f"Discarding stale result for {key}")
                return False
            self._entries[key] = result
        return True

    def invalidate(self) -> int:
        """Drop every entry and start a new generation.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._generation += 1
        if count:
            self._logger.debug(f"Invalidated {count} cached results")
        return count

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        """Return cache statistics for debugging."""
        with self._lock:
            return {
                "enabled": self._enabled,
                "entry_count": len(self._entries),
                "generation": self._generation,
                "hits": self._hits,
                "misses": self._misses,
                "keys": sorted(self._entries),
            }
