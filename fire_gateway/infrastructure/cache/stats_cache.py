"""Short-lived cache of computed financial stats per ownership scope"""

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from fire_gateway.domain.models import FinancialStats
from fire_gateway.infrastructure.cache.single_flight import SingleFlight
from fire_gateway.infrastructure.observability.metrics import stats_cache_counter

VARIANT_SEPARATOR = "|"


@dataclass(frozen=True)
class _CachedStats:
    stats: FinancialStats
    stored_at: float


def _scope_of(key: str) -> str:
    return key.split(VARIANT_SEPARATOR, 1)[0]


class StatsCache:
    """
    TTL cache keyed by scope cache key, optionally split into variants
    (e.g. one entry per preferred currency within a family scope).

    There is no automatic invalidation: writers must call invalidate() with
    the scope key after changing a scope's records. That drops every variant
    and discards any computation still in flight for the scope, so a result
    built from pre-change records is never stored. Concurrent misses for one
    key share a single computation; entries are only ever stored complete.
    """

    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _CachedStats] = {}
        self._generations: Dict[str, int] = {}
        self._flights = SingleFlight()

    @staticmethod
    def key_for(scope_key: str, variant: str) -> str:
        return f"{scope_key}{VARIANT_SEPARATOR}{variant}"

    def _expired(self, cached: _CachedStats, now: float) -> bool:
        return now - cached.stored_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[FinancialStats]:
        cached = self._entries.get(key)
        if cached is None:
            return None
        if self._expired(cached, self._clock()):
            self._entries.pop(key, None)
            return None
        return cached.stats

    def set(self, key: str, stats: FinancialStats) -> None:
        now = self._clock()
        for stale_key in [k for k, cached in self._entries.items() if self._expired(cached, now)]:
            del self._entries[stale_key]
        self._entries[key] = _CachedStats(stats=stats, stored_at=now)

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def invalidate(self, scope_key: str) -> bool:
        """Drop every entry for a scope; True when something was cached"""
        self._generations[scope_key] = self._generations.get(scope_key, 0) + 1
        dropped = [k for k in self._entries if _scope_of(k) == scope_key]
        for key in dropped:
            del self._entries[key]
        return bool(dropped)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[FinancialStats]],
        force_refresh: bool = False,
    ) -> FinancialStats:
        if not force_refresh:
            cached = self.get(key)
            if cached is not None:
                stats_cache_counter.labels(result="hit").inc()
                return cached

        scope_key = _scope_of(key)
        generation = self._generations.get(scope_key, 0)

        async def compute_and_store() -> FinancialStats:
            stats = await compute()
            # Invalidated while computing: the result may predate the change
            if self._generations.get(scope_key, 0) == generation:
                self.set(key, stats)
            return stats

        # Calls after an invalidation never join a computation started before it
        stats, shared = await self._flights.do(f"{key}#{generation}", compute_and_store)
        stats_cache_counter.labels(result="shared" if shared else "miss").inc()
        return stats
