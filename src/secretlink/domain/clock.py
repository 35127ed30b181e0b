"""Clock implementations."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """Clock that only moves when told to.

    Used by tests and simulations to step through token lifetimes without
    sleeping.
    """

    def __init__(self, start: datetime | None = None):
        if start is None:
            start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._now = _as_utc(start)

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = _as_utc(value)

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        """Move the clock forward by ``delta`` or by ``timedelta(**kwargs)``."""
        step = delta if delta is not None else timedelta(**kwargs)
        self._now = self._now + step
        return self._now


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


__all__ = ["SystemClock", "ManualClock"]
