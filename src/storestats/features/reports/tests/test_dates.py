import datetime
import types

import pytest

from storestats.features.reports import dates
from storestats.features.reports.dates import (
    ALL_TIME_START, DateRange, InvalidDateRangeError, resolve_date_range, utc_today,
)

TODAY = datetime.date(2024, 3, 15)


def test_all_time_spans_epoch_to_end_of_today():
    date_range = resolve_date_range(all_time=True, today=TODAY)
    assert date_range.start == ALL_TIME_START == datetime.date(1970, 1, 1)
    assert date_range.end == TODAY
    assert date_range.is_all_time is True
    assert date_range.end_of_day == datetime.datetime(2024, 3, 15, 23, 59, 59)


def test_all_time_ignores_explicit_dates():
    date_range = resolve_date_range(
        datetime.date(2024, 1, 1), datetime.date(2024, 1, 2), all_time=True, today=TODAY
    )
    assert date_range.start == ALL_TIME_START
    assert date_range.end == TODAY


def test_no_dates_defaults_to_thirty_day_window():
    date_range = resolve_date_range(today=TODAY)
    assert date_range.start == datetime.date(2024, 2, 14)
    assert date_range.end == TODAY
    assert (date_range.end - date_range.start).days == 30
    assert date_range.is_all_time is False


def test_missing_from_defaults_to_thirty_days_ago():
    date_range = resolve_date_range(end_date=datetime.date(2024, 3, 10), today=TODAY)
    assert date_range.start == datetime.date(2024, 2, 14)
    assert date_range.end == datetime.date(2024, 3, 10)


def test_missing_to_defaults_to_today():
    date_range = resolve_date_range(start_date=datetime.date(2024, 1, 1), today=TODAY)
    assert date_range.start == datetime.date(2024, 1, 1)
    assert date_range.end == TODAY


def test_to_covers_the_whole_day():
    date_range = resolve_date_range(datetime.date(2024, 1, 1), datetime.date(2024, 1, 2), today=TODAY)
    assert date_range.end_of_day == datetime.datetime(2024, 1, 2, 23, 59, 59)
    assert date_range.end_exclusive == datetime.datetime(2024, 1, 3, tzinfo=datetime.timezone.utc)
    assert date_range.start_of_day == datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)


def test_single_day_range_is_allowed():
    day = datetime.date(2024, 1, 1)
    assert resolve_date_range(day, day, today=TODAY) == DateRange(start=day, end=day)


def test_start_after_end_is_rejected():
    with pytest.raises(InvalidDateRangeError):
        resolve_date_range(datetime.date(2024, 2, 1), datetime.date(2024, 1, 1), today=TODAY)


def test_to_before_default_window_is_rejected():
    # from defaults to today - 30 days, which is after the requested end
    with pytest.raises(InvalidDateRangeError):
        resolve_date_range(end_date=datetime.date(2023, 1, 1), today=TODAY)


def test_as_params_shape():
    date_range = resolve_date_range(datetime.date(2024, 1, 1), datetime.date(2024, 1, 2), today=TODAY)
    assert date_range.as_params() == {
        "from": "2024-01-01",
        "to": "2024-01-02T23:59:59",
        "is_all_time": False,
    }


# 00:15 UTC on 2024-01-02, while a host at UTC-12 still reads 2024-01-01
JUST_AFTER_UTC_MIDNIGHT = datetime.datetime(2024, 1, 2, 0, 15, tzinfo=datetime.timezone.utc)


class HostBehindUTC(datetime.datetime):
    @classmethod
    def now(cls, tz=None):
        if tz is None:
            return (JUST_AFTER_UTC_MIDNIGHT - datetime.timedelta(hours=12)).replace(tzinfo=None)
        return JUST_AFTER_UTC_MIDNIGHT.astimezone(tz)


@pytest.fixture
def clock_behind_utc(monkeypatch):
    frozen = types.SimpleNamespace(
        date=datetime.date, datetime=HostBehindUTC, time=datetime.time,
        timedelta=datetime.timedelta, timezone=datetime.timezone,
    )
    monkeypatch.setattr(dates, "datetime", frozen)


def test_today_defaults_to_the_utc_date(clock_behind_utc):
    assert utc_today() == datetime.date(2024, 1, 2)

    date_range = resolve_date_range()
    assert date_range.end == datetime.date(2024, 1, 2)
    assert date_range.start == datetime.date(2023, 12, 3)
    assert date_range.end_exclusive > JUST_AFTER_UTC_MIDNIGHT
