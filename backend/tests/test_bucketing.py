from calendar import monthrange
from datetime import date, datetime, timedelta, timezone

import pytest

from goldpulse.services.bucketing import (
    Granularity,
    as_utc,
    bucket_range,
    end_of_day,
    iter_buckets,
    start_of_day,
)


IST = timezone(timedelta(hours=5, minutes=30))


@pytest.mark.parametrize(
    "value",
    [
        datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc),
        datetime(2026, 2, 28, 23, 59, 59, tzinfo=timezone.utc),
        datetime(2024, 2, 29, 12, 0, tzinfo=timezone.utc),
        datetime(2026, 12, 31, 18, 30, tzinfo=timezone.utc),
        date(2026, 4, 15),
    ],
)
def test_month_bucket_contains_value_and_spans_calendar_month(value: date | datetime) -> None:
    bucket = bucket_range(value, Granularity.month)
    instant = as_utc(value)
    assert bucket.start <= instant < bucket.end
    assert (bucket.end - bucket.start).days == monthrange(instant.year, instant.month)[1]
    assert bucket.start.day == 1
    assert bucket.label == f"{instant.year:04d}-{instant.month:02d}"


@pytest.mark.parametrize("offset", range(7))
def test_week_bucket_starts_monday_and_spans_seven_days(offset: int) -> None:
    # 2026-10-19 is a Monday
    value = datetime(2026, 10, 19, 15, 45, tzinfo=timezone.utc) + timedelta(days=offset)
    bucket = bucket_range(value, "week")
    assert bucket.start.weekday() == 0
    assert bucket.start == datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert bucket.end - bucket.start == timedelta(days=7)
    assert bucket.contains(value)


def test_day_and_year_buckets() -> None:
    value = datetime(2026, 10, 19, 15, 45, tzinfo=timezone.utc)
    day = bucket_range(value, Granularity.day)
    assert day.start == datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert day.end == datetime(2026, 10, 20, tzinfo=timezone.utc)
    assert day.label == "2026-10-19"
    year = bucket_range(value, Granularity.year)
    assert year.start == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert year.end == datetime(2027, 1, 1, tzinfo=timezone.utc)
    assert year.label == "2026"


def test_offset_instants_are_bucketed_by_utc_day() -> None:
    local = datetime(2026, 10, 20, 2, 0, tzinfo=IST)
    assert as_utc(local) == datetime(2026, 10, 19, 20, 30, tzinfo=timezone.utc)
    assert start_of_day(local) == datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert end_of_day(local) == datetime(2026, 10, 20, tzinfo=timezone.utc)


def test_naive_values_are_taken_as_utc() -> None:
    assert as_utc(datetime(2026, 10, 19, 8, 0)) == datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
    assert as_utc(date(2026, 10, 19)) == datetime(2026, 10, 19, tzinfo=timezone.utc)


def test_iter_buckets_covers_range_without_gaps() -> None:
    start = datetime(2026, 1, 15, tzinfo=timezone.utc)
    end = datetime(2026, 4, 1, tzinfo=timezone.utc)
    buckets = list(iter_buckets(start, end, Granularity.month))
    assert [bucket.label for bucket in buckets] == ["2026-01", "2026-02", "2026-03"]
    for previous, current in zip(buckets, buckets[1:]):
        assert previous.end == current.start


def test_iter_buckets_empty_for_reversed_range() -> None:
    start = datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert list(iter_buckets(start, start, Granularity.day)) == []
    assert list(iter_buckets(start, start - timedelta(days=3), Granularity.day)) == []


def test_unknown_granularity_rejected() -> None:
    with pytest.raises(ValueError):
        bucket_range(date(2026, 1, 1), "quarter")
