"""Coalesce concurrent calls to the same coroutine into one in-flight task."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Holds at most one running task; callers arriving while it runs share its result.

    The slot is emptied as soon as the task settles, whether it succeeded or
    raised, so the next call after completion starts a fresh operation.
    """

    def __init__(self) -> None:
        self._task: Optional["asyncio.Future[T]"] = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    async def _run_and_clear(self, factory: Callable[[], Awaitable[T]]) -> T:
        try:
            return await factory()
        finally:
            self._task = None

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._task
        if task is None:
            task = asyncio.ensure_future(self._run_and_clear(factory))
            self._task = task
        # One caller being cancelled must not cancel the shared operation.
        return await asyncio.shield(task)
