"""Folds fetched issues into per-period counters."""

from typing import Any, Dict, Iterable, Optional

from loguru import logger

from .aggregator import PeriodAggregator
from .classifier import CategoryScheme, closed_at
from .exceptions import ClassificationError
from .fetcher import PagedFetcher
from .models import Issue, RunStats
from .periods import PeriodKeyDeriver


class IssueAnalyzer:
    """Classifies issues and records their opened and closed periods."""

    def __init__(self, deriver: PeriodKeyDeriver, aggregator: PeriodAggregator,
                 scheme: CategoryScheme = CategoryScheme.DETAILED,
                 skip_unclassifiable: bool = False,
                 stats: Optional[RunStats] = None):
        self.deriver = deriver
        self.aggregator = aggregator
        self.scheme = scheme
        self.skip_unclassifiable = skip_unclassifiable
        self.stats = stats or RunStats()

    def analyze_issue(self, issue: Issue) -> None:
        try:
            category = self.scheme.classify(issue.labels)
        except ClassificationError as e:
            if not self.skip_unclassifiable:
                logger.error(f"Cannot classify issue {issue.url or issue.number}: {e}")
                raise
            logger.warning(f"Skipping issue {issue.url or issue.number}: {e}")
            self.stats.issues_skipped += 1
            self.stats.skipped_urls.append(issue.url)
            return

        self.aggregator.record_opened(self.deriver.derive(issue.created_at), category)
        closed = closed_at(issue)
        if closed is not None:
            self.aggregator.record_closed(self.deriver.derive(closed), category)
        self.stats.issues_processed += 1

    def analyze_issues(self, issues: Iterable[Issue]) -> None:
        for issue in issues:
            self.analyze_issue(issue)

    def run(self, fetcher: PagedFetcher, query: str, variables: Dict[str, Any], max_pages: int) -> PeriodAggregator:
        """Fetch up to max_pages pages and fold every issue into the aggregator.

        Periods recorded before an error stay in the aggregator.
        """
        for page in fetcher.fetch(query, variables, max_pages):
            source = "cache" if page.from_cache else "network"
            logger.debug(f"Analyzing {len(page.issues)} issues from page {page.page_index} ({source})")
            self.analyze_issues(page.issues)

        logger.info(
            f"Analyzed {self.stats.issues_processed} issues "
            f"({self.stats.issues_skipped} skipped) into {len(self.aggregator)} periods"
        )
        return self.aggregator
