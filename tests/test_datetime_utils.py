from datetime import datetime, timedelta, timezone

import pytest

from apinotice.utils import ensure_naive_utc, ensure_utc, parse_schedule_instant


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-06-01", datetime(2024, 6, 1, tzinfo=timezone.utc)),
        ("2024-06-01T08:30:00Z", datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)),
        ("2024-06-01T10:30:00+02:00", datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)),
    ],
)
def test_parse_schedule_instant_accepts_rfc3339_and_dates(raw, expected):
    parsed = parse_schedule_instant(raw)

    assert parsed == expected
    assert parsed.utcoffset() == timedelta(0)


@pytest.mark.parametrize("raw", ["", "   ", "tomorrow", "2024-06-01T08:30:00", "01/06/2024"])
def test_parse_schedule_instant_rejects_other_formats(raw):
    with pytest.raises(ValueError):
        parse_schedule_instant(raw)


def test_naive_values_are_treated_as_utc():
    naive = datetime(2024, 1, 1, 9, 0)
    aware = ensure_utc(naive)

    assert aware.tzinfo is timezone.utc
    assert ensure_naive_utc(aware) == naive
    assert ensure_naive_utc(datetime(2024, 1, 1, 11, 0, tzinfo=timezone(timedelta(hours=2)))) == naive
