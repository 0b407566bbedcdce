from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Union

DateLike = Union[date, datetime, str, int, float]


def today() -> date:
    return datetime.now(timezone.utc).date()


def to_utc_midnight(value: date) -> datetime:
    """Midnight UTC of the given calendar day."""
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def to_epoch_ms(value: date) -> int:
    return int(to_utc_midnight(value).timestamp() * 1000)


def from_epoch_ms(ms: Union[int, float]) -> date:
    try:
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"Invalid date value: {ms!r}") from e


def to_calendar_date(value: DateLike) -> date:
    """
    Normalize a due date to a calendar day.

    Accepts a ``date``, a ``datetime`` (converted to UTC first when aware),
    an ISO date or datetime string, or a millisecond timestamp.
    Time-of-day is always dropped.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid date value: {value!r}")
    if isinstance(value, (int, float)):
        return from_epoch_ms(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty date string")
        if len(text) == 10:
            return date.fromisoformat(text)
        return to_calendar_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    raise ValueError(f"Invalid date value: {value!r}")
