"""
Injectable time source.

Ledger ``occurred_at`` stamps, transfer and purchase order milestones, and
the date part of document numbers all come from a ``Clock`` handed to the
service at construction.  Nothing in the kernel reads the wall clock
except ``SystemClock``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware "now" values."""

    @abstractmethod
    def now(self) -> datetime: ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen clock for tests.

    Starts at noon UTC on 2024-01-01 unless told otherwise and only moves
    when ``advance`` or ``set_time`` is called, so document numbers and
    milestone stamps are predictable.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or _EPOCH

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        if moment.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")
        self._current = moment

    def advance(self, **delta: float) -> datetime:
        """Move forward by ``timedelta(**delta)``, e.g. ``advance(days=1)``."""
        self._current += timedelta(**delta)
        return self._current
