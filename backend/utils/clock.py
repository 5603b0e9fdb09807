"""Injectable clock for "now" and the calendar day used to key snapshots."""

from datetime import date, datetime, timedelta, timezone


def ensure_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware (UTC).

    The database keeps naive UTC timestamps; this attaches UTC to those
    and returns aware datetimes unchanged.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class Clock:
    """Wall clock in UTC. Services take one so tests can pin "now"."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        """Current UTC calendar day (the snapshot day boundary)."""
        return self.now().date()


class FixedClock(Clock):
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, at: datetime):
        self._now = ensure_utc(at)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> None:
        """Move the clock forward by ``timedelta(**kwargs)``."""
        self._now = self._now + timedelta(**kwargs)
