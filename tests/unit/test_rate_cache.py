"""Unit tests for the daily exchange-rate cache"""

import asyncio
from decimal import Decimal

import httpx

from fire_gateway.domain.exceptions import UpstreamFetchError
from fire_gateway.domain.models import RateSnapshot
from fire_gateway.infrastructure.cache.rate_cache import RateCache


class ScriptedSource:
    """Returns the queued outcomes in order; exceptions are raised"""

    def __init__(self, *outcomes, delay=0.0):
        self.outcomes = list(outcomes)
        self.delay = delay
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class Clock:
    def __init__(self, day="2025-01-01"):
        self.day = day

    def __call__(self):
        return self.day


def _snapshot(**rates):
    return RateSnapshot(date="2025-01-01", rates={code: Decimal(value) for code, value in rates.items()})


async def test_cold_miss_fetches_once_for_fifty_callers():
    source = ScriptedSource(_snapshot(eur="0.9", gbp="0.8"), delay=0.01)
    cache = RateCache(source, clock=Clock())

    results = await asyncio.gather(*(cache.get_rates(["EUR", "usd"]) for _ in range(50)))

    assert source.calls == 1
    assert all(r == {"eur": Decimal("0.9"), "usd": Decimal("1")} for r in results)


async def test_same_day_is_a_hit():
    source = ScriptedSource(_snapshot(eur="0.9"))
    cache = RateCache(source, clock=Clock())

    await cache.get_rates(["eur"])
    await cache.get_rates(["eur"])

    assert source.calls == 1


async def test_new_day_refreshes():
    source = ScriptedSource(_snapshot(eur="0.9"), _snapshot(eur="0.95"))
    clock = Clock()
    cache = RateCache(source, clock=clock)

    await cache.get_rates(["eur"])
    clock.day = "2025-01-02"
    rates = await cache.get_rates(["eur"])

    assert source.calls == 2
    assert rates == {"eur": Decimal("0.95")}
    assert cache.entry.date == "2025-01-02"


async def test_only_requested_codes_are_returned():
    cache = RateCache(ScriptedSource(_snapshot(eur="0.9", gbp="0.8", jpy="150")), clock=Clock())

    assert await cache.get_rates(["GBP", "xyz"]) == {"gbp": Decimal("0.8")}


async def test_empty_request_does_not_fetch():
    source = ScriptedSource(_snapshot(eur="0.9"))
    cache = RateCache(source, clock=Clock())

    assert await cache.get_rates([]) == {}
    assert source.calls == 0


async def test_failure_without_entry_returns_empty_map():
    source = ScriptedSource(UpstreamFetchError("down"))
    cache = RateCache(source, clock=Clock())

    assert await cache.get_rates(["eur"]) == {}
    assert await cache.get_rates(["usd"]) == {"usd": Decimal("1")}
    # Failed refresh is not cached, every call retries
    assert source.calls == 2
    assert cache.entry is None


async def test_failure_serves_stale_rates_without_promoting_them():
    source = ScriptedSource(_snapshot(eur="0.9"), UpstreamFetchError("down"))
    clock = Clock()
    cache = RateCache(source, clock=clock)

    await cache.get_rates(["eur"])
    clock.day = "2025-01-02"

    assert await cache.get_rates(["eur"]) == {"eur": Decimal("0.9")}
    assert cache.entry.date == "2025-01-01"

    await cache.get_rates(["eur"])
    assert source.calls == 3


async def test_recovers_after_failure():
    source = ScriptedSource(UpstreamFetchError("down"), _snapshot(eur="0.9"))
    cache = RateCache(source, clock=Clock())

    assert await cache.get_rates(["eur"]) == {}
    assert await cache.get_rates(["eur"]) == {"eur": Decimal("0.9")}


async def test_clear_forces_refresh():
    source = ScriptedSource(_snapshot(eur="0.9"))
    cache = RateCache(source, clock=Clock())

    await cache.get_rates(["eur"])
    cache.clear()
    await cache.get_rates(["eur"])

    assert source.calls == 2


async def test_unexpected_source_error_is_absorbed():
    source = ScriptedSource(httpx.ConnectError("down"))
    cache = RateCache(source, clock=Clock())

    assert await cache.get_rates({"eur", "usd"}) == {"usd": Decimal("1")}
    assert cache.entry is None


async def test_unexpected_source_error_serves_stale_rates():
    source = ScriptedSource(_snapshot(eur="0.9"), RuntimeError("bad payload"))
    clock = Clock()
    cache = RateCache(source, clock=clock)

    await cache.get_rates(["eur"])
    clock.day = "2025-01-02"

    results = await asyncio.gather(*(cache.get_rates(["eur"]) for _ in range(5)))

    assert all(r == {"eur": Decimal("0.9")} for r in results)
    assert cache.entry.date == "2025-01-01"
