"""Period keys: week index since a fixed origin, or calendar month."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator, Union

from .config import ORIGIN_OF_TIME, PERIOD_DAYS
from .exceptions import ConfigurationError, DecodeError


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime."""
    if not isinstance(value, str) or not value:
        raise DecodeError(f"Invalid timestamp: {value!r}")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise DecodeError(f"Invalid timestamp {value!r}: {e}") from e
    return as_utc(parsed)


def as_utc(timestamp: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


@dataclass(frozen=True, order=True)
class WeekPeriod:
    """Zero-based index of fixed-length intervals since the origin."""
    index: int

    @property
    def label(self) -> str:
        return str(self.index)

    def successor(self) -> "WeekPeriod":
        return WeekPeriod(self.index + 1)


@dataclass(frozen=True, order=True)
class MonthPeriod:
    """Calendar month in UTC."""
    year: int
    month: int

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def successor(self) -> "MonthPeriod":
        if self.month == 12:
            return MonthPeriod(self.year + 1, 1)
        return MonthPeriod(self.year, self.month + 1)


PeriodKey = Union[WeekPeriod, MonthPeriod]


def period_range(first: PeriodKey, last: PeriodKey) -> Iterator[PeriodKey]:
    """Every period from first to last inclusive, in order."""
    period = first
    while period <= last:
        yield period
        period = period.successor()


class PeriodStrategy(Enum):
    WEEK = "week"
    MONTH = "month"


class PeriodKeyDeriver:
    """Derives period keys from timestamps with one strategy for a whole run.

    Week indices count whole days since the origin and divide by the period
    length, so with the default seven days an issue created at the origin and
    one created six days later share index 0. Timestamps before the origin map
    to negative indices, which still order correctly.
    """

    def __init__(self, strategy: PeriodStrategy = PeriodStrategy.WEEK,
                 origin: Union[str, datetime] = ORIGIN_OF_TIME,
                 period_days: int = PERIOD_DAYS):
        if period_days <= 0:
            raise ConfigurationError(f"Period length must be positive, got {period_days}")
        if isinstance(origin, str):
            try:
                origin = parse_timestamp(origin)
            except DecodeError as e:
                raise ConfigurationError(f"Invalid origin of time: {e}") from e
        self.strategy = strategy
        self.origin = as_utc(origin)
        self.period_days = period_days

    def derive(self, timestamp: datetime) -> PeriodKey:
        timestamp = as_utc(timestamp)
        if self.strategy is PeriodStrategy.MONTH:
            return MonthPeriod(timestamp.year, timestamp.month)
        days = (timestamp - self.origin).days
        return WeekPeriod(days // self.period_days)
