from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GenerationTracker:
    """Monotonic counter bumped on every input change that invalidates fetches."""

    def __init__(self) -> None:
        self._generation = 0

    @property
    def current(self) -> int:
        return self._generation

    def bump(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation


class LatestOnlyFetcher(Generic[T]):
    """Runs one fetch at a time and only applies the result of the newest one.

    Starting a fetch bumps the generation and cancels the previous task. A
    result whose generation went stale while it was in flight is dropped
    without error and without calling `apply`.
    """

    def __init__(self, apply: Callable[[T], None], tracker: GenerationTracker | None = None, *, name: str = "fetch"):
        self._apply = apply
        self._tracker = tracker or GenerationTracker()
        self._task: asyncio.Task | None = None
        self._name = name

    @property
    def tracker(self) -> GenerationTracker:
        return self._tracker

    def invalidate(self) -> int:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return self._tracker.bump()

    def start(self, factory: Callable[[], Awaitable[T]]) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        generation = self.invalidate()
        self._task = loop.create_task(self._run(generation, factory))
        return self._task

    async def _run(self, generation: int, factory: Callable[[], Awaitable[T]]) -> bool:
        try:
            result = await factory()
        except Exception:
            if not self._tracker.is_current(generation):
                logger.debug("Ignored failure of stale %s (generation %d)", self._name, generation, exc_info=True)
                return False
            raise
        if not self._tracker.is_current(generation):
            logger.debug(
                "Discarded stale %s result (generation %d, current %d)",
                self._name,
                generation,
                self._tracker.current,
            )
            return False
        self._apply(result)
        return True

    async def wait(self) -> bool:
        """Wait for the latest fetch; True if its result was applied."""
        task = self._task
        if task is None:
            return False
        await asyncio.wait({task})
        if task.cancelled():
            return False
        return task.result()
