"""Deferred send scheduling on a single-threaded event queue."""

from __future__ import annotations

import sched
import time
from typing import Any, Callable


class MessageScheduler:
    """Run callbacks after millisecond delays, in deadline order.

    Thin wrapper over `sched.scheduler`. Events with equal deadlines run in the
    order they were scheduled. Scheduled events are never cancelled.
    """

    def __init__(
        self,
        timefunc: Callable[[], float] = time.monotonic,
        delayfunc: Callable[[float], Any] = time.sleep,
    ) -> None:
        self._queue = sched.scheduler(timefunc, delayfunc)

    def call_later(self, delay_ms: int, action: Callable[..., Any], *args: Any) -> None:
        self._queue.enter(delay_ms / 1000.0, 0, action, args)

    def run(self) -> None:
        """Block until every scheduled callback has run."""
        self._queue.run()

    @property
    def pending(self) -> int:
        return len(self._queue.queue)
