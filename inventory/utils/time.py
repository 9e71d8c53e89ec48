"""Time helpers for activity timestamps and day-bounded queries."""

from __future__ import annotations

import threading
from datetime import date, datetime, time, timedelta, timezone

_clock_lock = threading.Lock()
_last_issued: datetime | None = None


def monotonic_utc_now() -> datetime:
    """Return the current UTC time, strictly later than any previous call.

    Two events recorded within the same microsecond still get distinct,
    increasing timestamps. A wall clock that steps backwards is held at the
    last issued value plus one microsecond.
    """
    global _last_issued
    with _clock_lock:
        now = datetime.now(timezone.utc)
        if _last_issued is not None and now <= _last_issued:
            now = _last_issued + timedelta(microseconds=1)
        _last_issued = now
        return now


def day_window_utc(start_day: date | None, end_day: date | None) -> tuple[datetime | None, datetime | None]:
    """Return a half-open UTC window covering ``start_day`` through ``end_day``.

    Timestamps are stored in UTC, so the start bound is midnight UTC of
    ``start_day`` and the exclusive end bound is midnight UTC of the day after
    ``end_day``.
    """
    start = datetime.combine(start_day, time.min, tzinfo=timezone.utc) if start_day is not None else None
    end = None
    if end_day is not None:
        end = datetime.combine(end_day + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end
