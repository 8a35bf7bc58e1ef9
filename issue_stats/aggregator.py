"""Per-period opened/closed counters and running open totals."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from dataclasses_json import dataclass_json

from .classifier import IssueCategory
from .exceptions import UnknownPeriodError
from .periods import PeriodKey, period_range


class Counter(Enum):
    OPENED = "opened"
    CLOSED = "closed"


@dataclass_json
@dataclass
class PeriodRow:
    """Opened and closed counts of one period, keyed by category value."""
    period: str
    opened: Dict[str, int] = field(default_factory=dict)
    closed: Dict[str, int] = field(default_factory=dict)


@dataclass_json
@dataclass
class AccumulatedRow:
    """Point-in-time open totals after one period."""
    period: str
    totals: Dict[str, int] = field(default_factory=dict)
    open_total: int = 0
    opened_so_far: int = 0


class PeriodAggregator:
    """Accumulates counters per (period, category).

    Counters only ever increase. A period exists once something was recorded
    in it; every category of a recorded period then reads as zero until
    touched. All keys of one aggregator must be of the same period type.
    """

    def __init__(self, categories: Optional[Iterable[Enum]] = None):
        self.categories: Sequence[Enum] = tuple(categories) if categories is not None else tuple(IssueCategory)
        self._periods: Dict[PeriodKey, Dict[Enum, Dict[Counter, int]]] = {}
        self._key_type: Optional[type] = None

    def _entry(self, period: PeriodKey, category: Enum) -> Dict[Counter, int]:
        if self._key_type is None:
            self._key_type = type(period)
        elif type(period) is not self._key_type:
            raise TypeError(
                f"Cannot mix period types: got {type(period).__name__}, "
                f"aggregator holds {self._key_type.__name__}"
            )
        if category not in self.categories:
            raise ValueError(f"Unknown category {category!r}; expected one of {list(self.categories)}")

        if period not in self._periods:
            self._periods[period] = {
                c: {Counter.OPENED: 0, Counter.CLOSED: 0} for c in self.categories
            }
        return self._periods[period][category]

    def record_opened(self, period: PeriodKey, category: Enum) -> None:
        self._entry(period, category)[Counter.OPENED] += 1

    def record_closed(self, period: PeriodKey, category: Enum) -> None:
        self._entry(period, category)[Counter.CLOSED] += 1

    def get(self, period: PeriodKey, category: Enum, counter: Counter) -> int:
        """Count for one period and category.

        Raises:
            UnknownPeriodError: nothing was ever recorded in period
        """
        if period not in self._periods:
            raise UnknownPeriodError(f"No data recorded for period {period}")
        if category not in self._periods[period]:
            raise ValueError(f"Unknown category {category!r}")
        return self._periods[period][category][counter]

    def opened(self, period: PeriodKey, category: Enum) -> int:
        return self.get(period, category, Counter.OPENED)

    def closed(self, period: PeriodKey, category: Enum) -> int:
        return self.get(period, category, Counter.CLOSED)

    def sorted_periods(self, fill_gaps: bool = False) -> List[PeriodKey]:
        """Recorded periods in chronological order.

        With fill_gaps, every period between the first and the last recorded
        one is included, so a report has one row per week or month.
        """
        periods = sorted(self._periods)
        if fill_gaps and periods:
            return list(period_range(periods[0], periods[-1]))
        return periods

    def _count(self, period: PeriodKey, category: Enum, counter: Counter) -> int:
        if period not in self._periods:
            return 0
        return self.get(period, category, counter)

    def __contains__(self, period: PeriodKey) -> bool:
        return period in self._periods

    def __len__(self) -> int:
        return len(self._periods)

    def period_rows(self, fill_gaps: bool = False) -> List[PeriodRow]:
        rows = []
        for period in self.sorted_periods(fill_gaps):
            rows.append(PeriodRow(
                period=period.label,
                opened={c.value: self._count(period, c, Counter.OPENED) for c in self.categories},
                closed={c.value: self._count(period, c, Counter.CLOSED) for c in self.categories},
            ))
        return rows

    def accumulate(self, fill_gaps: bool = False) -> List[AccumulatedRow]:
        """Running open totals per category, in chronological order.

        For every period, total[category] += opened - closed. Totals may go
        negative when closes are seen for issues opened outside the fetched
        pages; they are never clamped. A gap period repeats the previous totals.
        """
        total = {category: 0 for category in self.categories}
        opened_so_far = 0
        rows = []
        for period in self.sorted_periods(fill_gaps):
            for category in self.categories:
                opened = self._count(period, category, Counter.OPENED)
                total[category] += opened - self._count(period, category, Counter.CLOSED)
                opened_so_far += opened
            rows.append(AccumulatedRow(
                period=period.label,
                totals={c.value: total[c] for c in self.categories},
                open_total=sum(total.values()),
                opened_so_far=opened_so_far,
            ))
        return rows
