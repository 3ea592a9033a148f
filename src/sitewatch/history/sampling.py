"""How much to down-sample a historical query, decided by the length of the date range."""

from datetime import date, datetime
from enum import Enum
from typing import Tuple, Union

DATE_FORMAT = "%Y-%m-%d"
DAY_START = "00:00:00"
DAY_END = "23:59:59"

# Ranges longer than these many days get aggregated
DAILY_AFTER_DAYS = 30
HOURLY_AFTER_DAYS = 7


class Sampling(str, Enum):
    RAW = "raw"
    HOURLY = "hourly"
    DAILY = "daily"


def parse_date(value: Union[str, date]) -> date:
    """Parse ``YYYY-MM-DD``. Raises ValueError on anything else."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def range_days(start: date, end: date) -> int:
    return (end - start).days


def choose_sampling(start: date, end: date) -> Sampling:
    """Daily means above 30 days, hourly means above 7 days, raw rows otherwise."""
    days = range_days(start, end)
    if days > DAILY_AFTER_DAYS:
        return Sampling.DAILY
    if days > HOURLY_AFTER_DAYS:
        return Sampling.HOURLY
    return Sampling.RAW


def time_bounds(start: date, end: date) -> Tuple[str, str]:
    """Inclusive ``BETWEEN`` bounds covering whole days."""
    return (
        f"{start.strftime(DATE_FORMAT)} {DAY_START}",
        f"{end.strftime(DATE_FORMAT)} {DAY_END}",
    )
