"""Collapse bursts of raw editor activity into single logical events."""

from __future__ import annotations

from enum import Enum
from typing import Callable

from .scheduler import Scheduler, TimerHandle


class ActivityPriority(str, Enum):
    """How strongly an activity signal indicates active work."""

    HIGH = "high"  # edits, saves
    NORMAL = "normal"  # editor, selection and terminal changes
    LOW = "low"  # theme and window state changes

    @property
    def debounce_seconds(self) -> float:
        return _DEBOUNCE_SECONDS[self]

    @property
    def rank(self) -> int:
        return _RANK[self]


_DEBOUNCE_SECONDS = {
    ActivityPriority.HIGH: 0.3,
    ActivityPriority.NORMAL: 0.5,
    ActivityPriority.LOW: 1.0,
}
_RANK = {ActivityPriority.HIGH: 2, ActivityPriority.NORMAL: 1, ActivityPriority.LOW: 0}


class ActivityDebouncer:
    """Emit one activity event per quiet window.

    The window is that of the strongest priority seen in the current burst, and
    that priority is what gets reported.
    """

    def __init__(self, scheduler: Scheduler, on_activity: Callable[[ActivityPriority], None]) -> None:
        self._scheduler = scheduler
        self._on_activity = on_activity
        self._handle: TimerHandle | None = None
        self._burst_priority: ActivityPriority | None = None

    def signal(self, priority: ActivityPriority = ActivityPriority.NORMAL) -> None:
        if self._burst_priority is None or priority.rank > self._burst_priority.rank:
            self._burst_priority = priority
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._scheduler.call_later(self._burst_priority.debounce_seconds, self._flush)

    def _flush(self) -> None:
        priority = self._burst_priority or ActivityPriority.NORMAL
        self._handle = None
        self._burst_priority = None
        self._on_activity(priority)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._burst_priority = None


__all__ = ["ActivityDebouncer", "ActivityPriority"]
