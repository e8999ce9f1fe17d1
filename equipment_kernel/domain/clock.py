"""
Clock -- injectable source of "now" for transitions and sweeps.

Every timestamp the kernel writes (last_status_change, checked_out_at,
returned_at, retired_at, audit occurred_at) and every sweep cutoff comes
from one Clock passed in at construction.  Tests swap in a
DeterministicClock and move it forward by days to make checkouts overdue
or maintenance due.

Architecture position:
    Kernel > Domain -- pure.  SystemClock is the only place that reads
    the wall clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Current time, as seen by the workflow engine and the batch layer."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time in UTC (timezone-aware)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``now()`` is stable across calls, so a transition and its audit entry
    share one timestamp and tests can compare against ``clock.now()``.
    """

    def __init__(self, start: datetime | None = None):
        self._start = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        self._offset = timedelta()

    def now(self) -> datetime:
        return self._start + self._offset

    def advance(self, seconds: int = 1) -> None:
        self._offset += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        """Move forward by whole days (checkout periods, maintenance intervals)."""
        self._offset += timedelta(days=days)
