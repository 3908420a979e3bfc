"""In-flight request registry: concurrent callers for one key share one call"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict


@dataclass
class _Call:
    task: asyncio.Task
    waiters: int = 0


class SingleFlight:
    """
    Collapse concurrent calls for the same key into one.

    The first caller starts the call and registers it; later callers for the
    same key await the same task. The entry is removed once the call settles,
    whether it succeeded or failed, so the next caller starts a fresh one.
    """

    def __init__(self):
        self._calls: Dict[str, _Call] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._calls

    def waiters(self, key: str) -> int:
        call = self._calls.get(key)
        return call.waiters if call else 0

    async def do(self, key: str, fn: Callable[[], Awaitable[Any]]) -> tuple[Any, bool]:
        """
        Run fn for key unless a call is already in flight.

        Returns:
            (result, shared) where shared is True for callers that joined
            an existing call
        """
        call = self._calls.get(key)
        shared = call is not None
        if call is None:
            call = _Call(task=asyncio.ensure_future(fn()))
            self._calls[key] = call
            call.task.add_done_callback(lambda _task, key=key, call=call: self._forget(key, call))

        call.waiters += 1
        try:
            # Shield so one cancelled waiter does not cancel the shared call
            return await asyncio.shield(call.task), shared
        finally:
            call.waiters -= 1

    def _forget(self, key: str, call: _Call) -> None:
        if self._calls.get(key) is call:
            del self._calls[key]
