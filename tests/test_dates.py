from datetime import date, datetime, timedelta, timezone

import pytest

from todolist.dates import from_epoch_ms, to_calendar_date, to_epoch_ms, to_utc_midnight


def test_epoch_ms_is_utc_midnight() -> None:
    assert to_epoch_ms(date(1970, 1, 2)) == 86_400_000
    assert from_epoch_ms(86_400_000) == date(1970, 1, 2)
    assert to_utc_midnight(date(2026, 5, 1)) == datetime(2026, 5, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value",
    [
        date(2026, 5, 1),
        "2026-05-01",
        "2026-05-01T18:45:00Z",
        datetime(2026, 5, 1, 23, 59),
        # 01:30 in UTC+3 is still the previous evening in UTC
        datetime(2026, 5, 2, 1, 30, tzinfo=timezone(timedelta(hours=3))),
        to_epoch_ms(date(2026, 5, 1)) + 3_600_000,
    ],
)
def test_to_calendar_date_drops_time_of_day(value) -> None:
    assert to_calendar_date(value) == date(2026, 5, 1)


@pytest.mark.parametrize("value", ["", "yesterday", True, None])
def test_to_calendar_date_rejects_garbage(value) -> None:
    with pytest.raises((ValueError, TypeError)):
        to_calendar_date(value)


@pytest.mark.parametrize("value", [10**20, -(10**20), 1e300])
def test_out_of_range_timestamp_is_a_value_error(value) -> None:
    with pytest.raises(ValueError, match="Invalid date value"):
        from_epoch_ms(value)
    with pytest.raises(ValueError):
        to_calendar_date(value)
