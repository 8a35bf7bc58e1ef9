"""TSV report output."""

from pathlib import Path
from typing import List, Union

from loguru import logger

from .aggregator import PeriodAggregator
from .classifier import CoarseCategory, IssueCategory
from .models import Issue

# Plural column names for the period and accumulated headers
_COLUMN_NAMES = {
    IssueCategory.BUG: "Bugs",
    IssueCategory.IMPROVEMENT: "Enhancements",
    IssueCategory.UNCATEGORIZED: "Others",
    CoarseCategory.BUG: "Bugs",
    CoarseCategory.NOT_BUG: "Non-bugs",
}


def _column(category) -> str:
    return _COLUMN_NAMES.get(category, category.value)


def period_stats_lines(aggregator: PeriodAggregator) -> List[str]:
    """Header plus one line per period: opened counts, then closed counts."""
    header = ["Period"]
    header += [f"opened {_column(c)}" for c in aggregator.categories]
    header += [f"closed {_column(c)}" for c in aggregator.categories]
    lines = ["\t".join(header)]

    for row in aggregator.period_rows(fill_gaps=True):
        values = [row.period]
        values += [str(row.opened[c.value]) for c in aggregator.categories]
        values += [str(row.closed[c.value]) for c in aggregator.categories]
        lines.append("\t".join(values))
    return lines


def accumulated_stats_lines(aggregator: PeriodAggregator) -> List[str]:
    """Header plus one line per period with running open totals."""
    header = ["Period"]
    header += [f"Open {_column(c).lower()}" for c in aggregator.categories]
    header += ["Open total", "All"]
    lines = ["\t".join(header)]

    for row in aggregator.accumulate(fill_gaps=True):
        values = [row.period]
        values += [str(row.totals[c.value]) for c in aggregator.categories]
        values += [str(row.open_total), str(row.opened_so_far)]
        lines.append("\t".join(values))
    return lines


def _write_lines(lines: List[str], output_path: Union[str, Path]) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        for line in lines:
            f.write(line + '\n')
    logger.info(f"Wrote {len(lines) - 1} periods to {path}")
    return path


def write_period_stats(aggregator: PeriodAggregator, output_path: Union[str, Path]) -> Path:
    return _write_lines(period_stats_lines(aggregator), output_path)


def write_accumulated_stats(aggregator: PeriodAggregator, output_path: Union[str, Path]) -> Path:
    return _write_lines(accumulated_stats_lines(aggregator), output_path)


def format_issue_events(issue: Issue) -> str:
    """Two lines: the issue, then its timeline items."""
    items = ", ".join(str(item) for item in issue.timeline_items)
    return f"{issue.url} {issue.title}\n    [{items}]"
