"""Memoization of coverage validation results per (date, scope)."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import date

from roster_engine.coverage.types import Violation

logger = logging.getLogger(__name__)

CacheKey = tuple[date, tuple[str, ...] | None]


def cache_key(on_date: date, location_scope: Sequence[str] | None) -> CacheKey:
    """Scope order does not matter; None (all locations) is its own key."""
    if location_scope is None:
        return (on_date, None)
    return (on_date, tuple(sorted(set(location_scope))))


class CoverageValidationCache:
    """Explicit cache object owned by (or handed to) the validator.

    Entries expire after ``ttl_seconds`` (None = never). Every mutation that
    can change a roster must call ``invalidate``.
    """

    def __init__(
        self,
        ttl_seconds: float | None = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, tuple[Violation, ...]]] = {}
        self.invalidations = 0

    def get(self, on_date: date, location_scope: Sequence[str] | None) -> list[Violation] | None:
        key = cache_key(on_date, location_scope)
        hit = self._entries.get(key)
        if hit is None:
            return None
        stored_at, violations = hit
        if self.ttl_seconds is not None and self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        logger.debug("Coverage cache hit for %s", key)
        return list(violations)

    def set(
        self,
        on_date: date,
        location_scope: Sequence[str] | None,
        violations: Sequence[Violation],
    ) -> None:
        self._entries[cache_key(on_date, location_scope)] = (self._clock(), tuple(violations))

    def invalidate(self, on_date: date | None = None) -> None:
        """Drop entries for one date, or everything when no date is given."""
        self.invalidations += 1
        if on_date is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k[0] == on_date]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
