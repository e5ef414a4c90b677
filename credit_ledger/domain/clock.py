"""Injectable clock so ledger and sweep logic never read wall-clock time directly"""

from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        ...


class SystemClock:
    """Production clock returning the current UTC time"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a single instant, for tests and replays"""

    def __init__(self, fixed: datetime):
        if fixed.tzinfo is None:
            fixed = fixed.replace(tzinfo=timezone.utc)
        self._now = fixed

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, **delta) -> None:
        """Move the clock forward, e.g. ``advance(days=1)``"""
        self._now = self._now + timedelta(**delta)
