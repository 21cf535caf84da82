"""Helpers for working with timezone-aware UTC datetimes."""

from __future__ import annotations

from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize ``value`` so it is expressed in UTC.

    Naive values are assumed to already be UTC, which is how the database
    layer stores them.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def ensure_naive_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` converted to UTC but without ``tzinfo``.

    SQLite ``DATETIME`` columns drop timezone information, so every instant is
    persisted as naive UTC and comparisons in queries stay consistent.
    """

    normalized = ensure_utc(value)
    if normalized is None:
        return None
    return normalized.replace(tzinfo=None)


def now_naive_utc() -> datetime:
    """Return the current UTC time without attaching ``tzinfo``."""

    return utc_now().replace(tzinfo=None)


def parse_schedule_instant(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp or a ``YYYY-MM-DD`` date into aware UTC.

    Plain dates are interpreted as midnight UTC.
    """

    text = (raw or "").strip()
    if not text:
        raise ValueError("scheduled_at required")

    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    if "T" in candidate or "t" in candidate:
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            parsed = None
        if parsed is not None and parsed.tzinfo is not None:
            return parsed.astimezone(timezone.utc)
    else:
        try:
            day = date.fromisoformat(candidate)
        except ValueError:
            day = None
        if day is not None:
            return datetime.combine(day, time.min, tzinfo=timezone.utc)

    raise ValueError("scheduled_at must be RFC3339 or YYYY-MM-DD")
