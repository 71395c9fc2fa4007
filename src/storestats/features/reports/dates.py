"""Date range resolution for report requests.

Every report covers whole days: a range ending on 2024-01-02 includes orders
placed at 23:59:59 that day. Queries filter with ``< end + 1 day``.
"""
import datetime
from dataclasses import dataclass
from typing import Any, Optional

from ...core.config import DEFAULT_REPORT_WINDOW_DAYS

# Earlier than any order the store can hold
ALL_TIME_START = datetime.date(1970, 1, 1)


def utc_today() -> datetime.date:
    """Current date in UTC, the zone order dates are stored and filtered in."""
    return datetime.datetime.now(datetime.timezone.utc).date()


class InvalidDateRangeError(ValueError):
    """Raised when a resolved range starts after it ends."""


@dataclass(frozen=True)
class DateRange:
    start: datetime.date
    end: datetime.date
    is_all_time: bool = False

    @property
    def start_of_day(self) -> datetime.datetime:
        return datetime.datetime.combine(self.start, datetime.time.min, tzinfo=datetime.timezone.utc)

    @property
    def end_of_day(self) -> datetime.datetime:
        """Last second of the final day, as reported back to clients."""
        return datetime.datetime.combine(self.end, datetime.time(23, 59, 59))

    @property
    def end_exclusive(self) -> datetime.datetime:
        return datetime.datetime.combine(
            self.end + datetime.timedelta(days=1), datetime.time.min, tzinfo=datetime.timezone.utc
        )

    def as_params(self) -> dict[str, Any]:
        """Canonical parameters for cache keys and payloads."""
        return {
            "from": self.start.isoformat(),
            "to": self.end_of_day.isoformat(),
            "is_all_time": self.is_all_time,
        }


def resolve_date_range(
    start_date: Optional[datetime.date] = None,
    end_date: Optional[datetime.date] = None,
    all_time: bool = False,
    today: Optional[datetime.date] = None,
) -> DateRange:
    """Normalize request date parameters into a DateRange.

    Args:
        start_date: Optional first day of the report.
        end_date: Optional last day of the report (inclusive).
        all_time: When true, ignores both dates and spans from the epoch to today.
        today: Reference date, defaults to the current UTC date.

    Returns:
        DateRange: The resolved range.

    Raises:
        InvalidDateRangeError: If the range would start after it ends.
    """
    today = today or utc_today()
    window_start = today - datetime.timedelta(days=DEFAULT_REPORT_WINDOW_DAYS)

    if all_time:
        return DateRange(start=ALL_TIME_START, end=today, is_all_time=True)

    date_range = DateRange(start=start_date or window_start, end=end_date or today)
    if date_range.start > date_range.end:
        raise InvalidDateRangeError(
            f"Start date {date_range.start.isoformat()} is after end date {date_range.end.isoformat()}"
        )
    return date_range
