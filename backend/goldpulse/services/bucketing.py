"""UTC calendar buckets.

Every bucket is a half-open ``[start, end)`` interval of aware UTC datetimes, so
the same range can label a chart point and filter records.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
import enum


class Granularity(str, enum.Enum):
    day = "day"
    week = "week"
    month = "month"
    year = "year"


@dataclass(frozen=True)
class BucketRange:
    start: datetime
    end: datetime
    granularity: Granularity = Granularity.day

    @property
    def label(self) -> str:
        if self.granularity == Granularity.year:
            return f"{self.start.year:04d}"
        if self.granularity == Granularity.month:
            return f"{self.start.year:04d}-{self.start.month:02d}"
        return self.start.date().isoformat()

    def contains(self, value: date | datetime) -> bool:
        instant = as_utc(value)
        return self.start <= instant < self.end


def as_utc(value: date | datetime) -> datetime:
    """Aware UTC datetime for ``value``; naive datetimes and dates are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def start_of_day(value: date | datetime) -> datetime:
    instant = as_utc(value)
    return datetime(instant.year, instant.month, instant.day, tzinfo=timezone.utc)


def end_of_day(value: date | datetime) -> datetime:
    return start_of_day(value) + timedelta(days=1)


def week_bounds(value: date | datetime) -> BucketRange:
    day_start = start_of_day(value)
    # weekday(): Monday=0 .. Sunday=6
    start = day_start - timedelta(days=day_start.weekday())
    return BucketRange(start=start, end=start + timedelta(days=7), granularity=Granularity.week)


def month_bounds(value: date | datetime) -> BucketRange:
    instant = as_utc(value)
    start = datetime(instant.year, instant.month, 1, tzinfo=timezone.utc)
    if instant.month == 12:
        end = datetime(instant.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(instant.year, instant.month + 1, 1, tzinfo=timezone.utc)
    return BucketRange(start=start, end=end, granularity=Granularity.month)


def year_bounds(value: date | datetime) -> BucketRange:
    instant = as_utc(value)
    return BucketRange(
        start=datetime(instant.year, 1, 1, tzinfo=timezone.utc),
        end=datetime(instant.year + 1, 1, 1, tzinfo=timezone.utc),
        granularity=Granularity.year,
    )


def bucket_range(value: date | datetime, granularity: Granularity | str) -> BucketRange:
    granularity = Granularity(granularity)
    if granularity == Granularity.day:
        return BucketRange(start=start_of_day(value), end=end_of_day(value), granularity=Granularity.day)
    if granularity == Granularity.week:
        return week_bounds(value)
    if granularity == Granularity.month:
        return month_bounds(value)
    return year_bounds(value)


def iter_buckets(
    start: date | datetime,
    end: date | datetime,
    granularity: Granularity | str,
) -> Iterator[BucketRange]:
    """Consecutive buckets covering ``[start, end)``; empty when ``end <= start``."""
    lower = as_utc(start)
    upper = as_utc(end)
    if upper <= lower:
        return
    bucket = bucket_range(lower, granularity)
    while bucket.start < upper:
        yield bucket
        bucket = bucket_range(bucket.end, granularity)
