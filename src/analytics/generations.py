"""Discard results of refreshes that were overtaken by a newer one."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger("salesops")

T = TypeVar("T")


class GenerationGuard:
    """Monotonic request counter.

    Every refresh takes a new generation. When it completes, its result is
    applied only if no newer generation has been issued in the meantime.
    """

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, generation: int) -> bool:
        return generation == self._latest

    async def run(self, work: Awaitable[T], apply: Callable[[T], None]) -> bool:
        """Await ``work`` and hand its result to ``apply`` unless stale.

        Returns whether the result was applied.
        """
        generation = self.issue()
        result = await work
        if not self.is_current(generation):
            logger.debug("Discarding stale result: generation=%d latest=%d", generation, self._latest)
            return False
        apply(result)
        return True
