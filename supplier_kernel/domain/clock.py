"""
Clock -- injectable time source.

Responsibility:
    The week model builder needs "today" as a calendar key (``is_today``)
    and the order ledger needs an instant for ``created_at``.  Both take a
    Clock so neither calls ``datetime.now()`` directly.

Architecture position:
    Kernel > Domain.  SystemClock is the only place that reads real time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from supplier_kernel.domain.calendar_keys import to_key


class Clock(ABC):
    """Source of the current instant (always timezone-aware)."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today_key(self, tz: tzinfo | None = None) -> int:
        """Calendar key of the current local day."""
        return to_key(self.now(), tz)


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock frozen at a given instant until moved explicitly.

    Defaults to Monday 2024-01-01 12:00 UTC.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._now = fixed_time or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    @classmethod
    def at_local_noon(cls, day: date, tz: tzinfo | None = None) -> DeterministicClock:
        """Clock at 12:00 of ``day`` in ``tz`` (process local time when None)."""
        if tz is None:
            local = datetime.combine(day, time(12)).astimezone()
        else:
            local = datetime.combine(day, time(12), tzinfo=tz)
        return cls(local.astimezone(timezone.utc))

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 1) -> datetime:
        self._now += timedelta(seconds=seconds)
        return self._now

    def advance_days(self, days: int) -> datetime:
        return self.advance(days * 86_400)
