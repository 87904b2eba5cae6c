# Single-threaded tick scheduling: a host timer abstraction plus a one-pending-timer game clock.
from __future__ import annotations

import heapq
import itertools
import logging
from typing import Any, Callable, Protocol


logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Host event loop hook: run ``callback`` once after ``delay_ms``."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class TkScheduler:
    """Scheduler backed by a Tk widget's ``after`` queue."""

    def __init__(self, widget: Any) -> None:
        self.widget = widget

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> str:
        return self.widget.after(delay_ms, callback)

    def cancel(self, handle: str) -> None:
        self.widget.after_cancel(handle)


class ManualScheduler:
    """Virtual-time scheduler for headless runs and tests.

    Nothing fires until ``run_next`` or ``advance`` is called. Timers due at
    the same instant fire in the order they were scheduled.
    """

    def __init__(self) -> None:
        self.now_ms = 0
        self._queue: list[tuple[int, int, Callable[[], None]]] = []
        self._ids = itertools.count()
        self._cancelled: set[int] = set()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        heapq.heappush(self._queue, (self.now_ms + max(0, int(delay_ms)), handle, callback))
        return handle

    def cancel(self, handle: int) -> None:
        self._cancelled.add(handle)

    def pending(self) -> int:
        """Number of live (uncancelled) timers."""
        return sum(1 for _, handle, _ in self._queue if handle not in self._cancelled)

    def _pop_live(self, until_ms: int | None = None) -> tuple[int, Callable[[], None]] | None:
        while self._queue:
            due, handle, callback = self._queue[0]
            if handle in self._cancelled:
                heapq.heappop(self._queue)
                self._cancelled.discard(handle)
                continue
            if until_ms is not None and due > until_ms:
                return None
            heapq.heappop(self._queue)
            return due, callback
        return None

    def run_next(self) -> bool:
        """Jump to the next live timer and fire it. Returns False if none is pending."""
        item = self._pop_live()
        if item is None:
            return False
        due, callback = item
        self.now_ms = due
        callback()
        return True

    def advance(self, delta_ms: int) -> int:
        """Move time forward, firing every timer that falls due. Returns the count fired."""
        target = self.now_ms + delta_ms
        fired = 0
        while True:
            item = self._pop_live(until_ms=target)
            if item is None:
                break
            due, callback = item
            self.now_ms = due
            callback()
            fired += 1
        self.now_ms = target
        return fired


class GameClock:
    """
    Repeating timer with at most one pending firing.

    Every ``schedule`` cancels the previous timer before arming a new one, so
    speed changes and pause/resume never leave two ticks queued. The callback
    may cancel or reschedule the clock while it runs; the clock only re-arms
    itself afterwards if the callback did neither.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self.scheduler = scheduler
        self.period_ms: int | None = None
        self._callback: Callable[[], None] | None = None
        self._handle: Any = None
        self._firing = False

    @property
    def is_scheduled(self) -> bool:
        return self._handle is not None

    @property
    def is_firing(self) -> bool:
        return self._firing

    def schedule(self, period_ms: int, callback: Callable[[], None]) -> None:
        if period_ms <= 0:
            raise ValueError("period_ms must be > 0")
        self.cancel()
        self.period_ms = int(period_ms)
        self._callback = callback
        self._handle = self.scheduler.call_later(self.period_ms, self._fire)

    def reschedule(self, period_ms: int) -> None:
        """Change the period; re-arms immediately if a callback is active."""
        if self._callback is None:
            self.period_ms = int(period_ms)
            return
        self.schedule(period_ms, self._callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None
        self._callback = None

    def _fire(self) -> None:
        self._handle = None
        callback = self._callback
        if callback is None:
            return
        if self._firing:
            raise RuntimeError("GameClock fired while a tick was still running")

        self._firing = True
        try:
            callback()
        finally:
            self._firing = False

        if self._callback == callback and self._handle is None and self.period_ms is not None:
            self._handle = self.scheduler.call_later(self.period_ms, self._fire)
