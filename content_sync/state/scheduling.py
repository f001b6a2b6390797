"""
Timers as explicit, cancellable tasks.

`AsyncioScheduler` runs callbacks on the event loop; `ManualScheduler` keeps a
virtual clock that tests advance by hand.
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ScheduledTask(ABC):
    @abstractmethod
    def cancel(self) -> None:
        ...

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class Scheduler(ABC):
    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledTask:
        """Run `callback` once after `delay` seconds."""


# ============================================================================
# asyncio
# ============================================================================

class _HandleTask(ScheduledTask):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledTask:
        return _HandleTask(self._get_loop().call_later(delay, callback))


# ============================================================================
# Virtual clock
# ============================================================================

class _ManualTask(ScheduledTask):
    def __init__(self, due: float, callback: Callable[[], Any]):
        self.due = due
        self.callback = callback
        self._cancelled = False
        self.done = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """Deterministic scheduler: nothing runs until `advance()` is called."""

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, _ManualTask]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledTask:
        task = _ManualTask(self.now + delay, callback)
        heapq.heappush(self._queue, (task.due, next(self._counter), task))
        return task

    @property
    def pending(self) -> int:
        return sum(1 for _, _, task in self._queue if not task.cancelled and not task.done)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running due callbacks in order. Returns how many ran."""
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self.now = due
            if task.cancelled:
                continue
            task.done = True
            task.callback()
            ran += 1
        self.now = target
        return ran


# ============================================================================
# Debounce
# ============================================================================

class Debouncer:
    """Collapse bursts of calls: only the last call within `delay` seconds runs."""

    def __init__(self, scheduler: Scheduler, delay: float):
        self.scheduler = scheduler
        self.delay = delay
        self._task: Optional[ScheduledTask] = None

    def call(self, callback: Callable[..., Any], *args, **kwargs) -> None:
        self.cancel()

        def fire():
            self._task = None
            callback(*args, **kwargs)

        self._task = self.scheduler.call_later(self.delay, fire)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.cancelled
