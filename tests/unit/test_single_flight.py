"""Unit tests for the in-flight call registry"""

import asyncio

import pytest

from fire_gateway.infrastructure.cache.single_flight import SingleFlight


async def test_concurrent_callers_share_one_call():
    flights = SingleFlight()
    calls = 0

    async def work():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return "value"

    results = await asyncio.gather(*(flights.do("k", work) for _ in range(10)))

    assert calls == 1
    assert [value for value, _ in results] == ["value"] * 10
    assert sum(1 for _, shared in results if not shared) == 1
    assert not flights.in_flight("k")


async def test_waiters_are_counted_while_in_flight():
    flights = SingleFlight()
    release = asyncio.Event()

    async def work():
        await release.wait()
        return 1

    tasks = [asyncio.create_task(flights.do("k", work)) for _ in range(3)]
    await asyncio.sleep(0)

    assert flights.in_flight("k")
    assert flights.waiters("k") == 3

    release.set()
    await asyncio.gather(*tasks)
    assert flights.waiters("k") == 0


async def test_failure_reaches_every_waiter_and_clears_entry():
    flights = SingleFlight()
    calls = 0

    async def failing():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        raise RuntimeError("upstream down")

    results = await asyncio.gather(*(flights.do("k", failing) for _ in range(5)), return_exceptions=True)

    assert calls == 1
    assert all(isinstance(r, RuntimeError) for r in results)
    assert not flights.in_flight("k")

    async def ok():
        return "recovered"

    assert await flights.do("k", ok) == ("recovered", False)


async def test_cancelled_waiter_does_not_cancel_shared_call():
    flights = SingleFlight()
    release = asyncio.Event()

    async def work():
        await release.wait()
        return "done"

    first = asyncio.create_task(flights.do("k", work))
    second = asyncio.create_task(flights.do("k", work))
    await asyncio.sleep(0)

    first.cancel()
    release.set()

    with pytest.raises(asyncio.CancelledError):
        await first
    assert await second == ("done", True)


async def test_different_keys_run_independently():
    flights = SingleFlight()

    async def work(value):
        return value

    results = await asyncio.gather(flights.do("a", lambda: work(1)), flights.do("b", lambda: work(2)))

    assert results == [(1, False), (2, False)]
