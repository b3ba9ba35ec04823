"""Timer substrate: scheduled callbacks and a clock."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Protocol for the minimal timer API the tracker relies on."""

    def now(self) -> datetime:
        ...

    def call_later(
        self, delay_seconds: float, callback: Callable[[], None], *, hold_lock: bool = True
    ) -> TimerHandle:
        ...


class _ThreadedHandle:
    def __init__(self) -> None:
        self.cancelled = False
        self.timer: threading.Timer | None = None

    def cancel(self) -> None:
        self.cancelled = True
        if self.timer is not None:
            self.timer.cancel()


class ThreadedScheduler:
    """Run callbacks on ``threading.Timer`` threads, serialized by a shared lock.

    A handle cancelled while its thread waits on the lock never fires.
    """

    def __init__(
        self,
        lock: threading.RLock | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._lock = lock or threading.RLock()
        self._clock = clock or datetime.now
        self._handles: set[_ThreadedHandle] = set()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def now(self) -> datetime:
        return self._clock()

    def call_later(
        self, delay_seconds: float, callback: Callable[[], None], *, hold_lock: bool = True
    ) -> _ThreadedHandle:
        """Schedule ``callback``.

        With ``hold_lock=False`` the callback runs without the shared lock and must
        take it itself around any store access.
        """

        handle = _ThreadedHandle()

        def _run() -> None:
            with self._lock:
                self._handles.discard(handle)
                if handle.cancelled:
                    return
                if hold_lock:
                    _invoke(callback)
                    return
            _invoke(callback)

        timer = threading.Timer(max(delay_seconds, 0), _run)
        timer.daemon = True
        handle.timer = timer
        with self._lock:
            self._handles.add(handle)
        timer.start()
        return handle

    def shutdown(self) -> None:
        """Cancel every outstanding timer."""

        with self._lock:
            for handle in list(self._handles):
                handle.cancel()
            self._handles.clear()


def _invoke(callback: Callable[[], None]) -> None:
    try:
        callback()
    except Exception:
        logger.exception("Scheduled callback failed")


class _ManualHandle:
    def __init__(self, due: datetime, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by :meth:`advance`, for tests and replays."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 1, 1, 9, 0, 0)
        self._queue: list[tuple[datetime, int, _ManualHandle]] = []
        self._sequence = itertools.count()

    def now(self) -> datetime:
        return self._now

    def call_later(
        self, delay_seconds: float, callback: Callable[[], None], *, hold_lock: bool = True
    ) -> _ManualHandle:
        due = self._now + timedelta(seconds=max(delay_seconds, 0))
        handle = _ManualHandle(due, callback)
        heapq.heappush(self._queue, (due, next(self._sequence), handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in order."""

        target = self._now + timedelta(seconds=seconds)
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, due)
            handle.callback()
        self._now = target


__all__ = ["ManualScheduler", "Scheduler", "ThreadedScheduler", "TimerHandle"]
