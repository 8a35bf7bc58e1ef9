"""Command line interface for issue statistics."""

import sys
from pathlib import Path

import click
from loguru import logger

from .aggregator import PeriodAggregator
from .analyzer import IssueAnalyzer
from .classifier import CategoryScheme
from .config import (
    ACCUMULATED_STATS_FILE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PAGES,
    LOG_FILE,
    LOG_FORMAT,
    LOG_LEVEL,
    ORIGIN_OF_TIME,
    PERIOD_DAYS,
    PERIOD_STATS_FILE,
    PERSISTED_DATA_DIR,
    REPOSITORY_NAME,
    REPOSITORY_OWNER,
)
from .exceptions import IssueStatsError
from .fetcher import PagedFetcher, PaginationDirection
from .graphql_client import GraphQLClient
from .page_cache import PageCache, collection_id
from .periods import PeriodKeyDeriver, PeriodStrategy
from .queries import ISSUES_QUERY, ISSUES_WITH_TIMELINE_QUERY, TIMELINE_ITEM_TYPES, TIMELINE_QUERY
from .report import format_issue_events, write_accumulated_stats, write_period_stats


def setup_logging(log_level: str = LOG_LEVEL, log_file: str = LOG_FILE):
    """Setup logging configuration."""
    # Remove default logger
    logger.remove()

    # Reports may go to stdout, so the console sink is stderr
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=log_level,
        colorize=True
    )

    if log_file:
        logger.add(
            log_file,
            format=LOG_FORMAT,
            level=log_level,
            rotation="10 MB",
            retention="7 days"
        )


def _log_options(f):
    f = click.option(
        '--log-file',
        default=LOG_FILE,
        help=f'Log file path, empty to disable (default: {LOG_FILE})'
    )(f)
    f = click.option(
        '--log-level', '-l',
        type=click.Choice(['TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR']),
        default=LOG_LEVEL,
        help=f'Logging level (default: {LOG_LEVEL})'
    )(f)
    return f


def _repository_options(f):
    f = click.option('--name', default=REPOSITORY_NAME, help=f'Repository name (default: {REPOSITORY_NAME})')(f)
    f = click.option('--owner', default=REPOSITORY_OWNER, help=f'Repository owner (default: {REPOSITORY_OWNER})')(f)
    return f


def _paging_options(f):
    f = click.option(
        '--persisted-data-dir',
        default=PERSISTED_DATA_DIR,
        type=click.Path(file_okay=False, path_type=Path),
        help=f'Directory of cached response pages (default: {PERSISTED_DATA_DIR})'
    )(f)
    f = click.option('--pages', type=int, default=DEFAULT_PAGES,
                     help=f'Maximum number of pages to process (default: {DEFAULT_PAGES})')(f)
    f = click.option('--page-size', type=int, default=DEFAULT_PAGE_SIZE,
                     help=f'Issues per page (default: {DEFAULT_PAGE_SIZE})')(f)
    return f


@click.group()
def main():
    """
    GitHub issue statistics

    Fetches issues page by page through the GitHub GraphQL API, keeping every
    page on disk so later runs cost no API calls for pages already fetched.

    Example usage:

        issue-stats plot-opened-and-closed --pages 50 --page-size 100

        issue-stats issues-with-event --event REOPENED_EVENT
    """


@main.command('plot-opened-and-closed')
@_paging_options
@_repository_options
@click.option('--period', type=click.Choice([s.value for s in PeriodStrategy]), default=PeriodStrategy.WEEK.value,
              help='Bucket by week index since the origin or by calendar month (default: week)')
@click.option('--period-days', type=int, default=PERIOD_DAYS,
              help=f'Length of a week-indexed period in days (default: {PERIOD_DAYS})')
@click.option('--origin', default=ORIGIN_OF_TIME,
              help=f'Origin of week indices, RFC 3339 (default: {ORIGIN_OF_TIME})')
@click.option('--coarse', is_flag=True, help='Only distinguish bugs from everything else')
@click.option('--skip-unclassifiable', is_flag=True,
              help='Log and skip issues with unknown C- labels instead of aborting')
@click.option('--state', 'states', multiple=True, type=click.Choice(['OPEN', 'CLOSED']),
              help='Only issues in this state (repeatable)')
@click.option('--label', 'labels', multiple=True, help='Only issues with this label (repeatable)')
@click.option('--week-stats-file', default=PERIOD_STATS_FILE, type=click.Path(dir_okay=False, path_type=Path),
              help=f'Per-period counts output (default: {PERIOD_STATS_FILE})')
@click.option('--accumulated-stats-file', default=ACCUMULATED_STATS_FILE,
              type=click.Path(dir_okay=False, path_type=Path),
              help=f'Running totals output (default: {ACCUMULATED_STATS_FILE})')
@_log_options
def plot_opened_and_closed(page_size: int, pages: int, persisted_data_dir: Path, owner: str, name: str,
                           period: str, period_days: int, origin: str, coarse: bool, skip_unclassifiable: bool,
                           states: tuple, labels: tuple, week_stats_file: Path, accumulated_stats_file: Path,
                           log_level: str, log_file: str):
    """Count opened and closed issues per period and write TSV reports."""
    setup_logging(log_level, log_file)

    logger.info(f"Repository: {owner}/{name}")
    logger.info(f"Pages: {pages} x {page_size}")
    logger.info(f"Persisted data dir: {persisted_data_dir}")

    try:
        deriver = PeriodKeyDeriver(PeriodStrategy(period), origin=origin, period_days=period_days)
        scheme = CategoryScheme.COARSE if coarse else CategoryScheme.DETAILED
        aggregator = PeriodAggregator(scheme.categories)

        collection = collection_id(f"{owner}/{name} issues", owner=owner, name=name,
                                   states=sorted(states), labels=sorted(labels))
        cache = PageCache(persisted_data_dir, collection)

        variables = {"owner": owner, "name": name}
        if states:
            variables["states"] = list(states)
        if labels:
            variables["labels"] = list(labels)

        with GraphQLClient() as client:
            fetcher = PagedFetcher(client, cache, page_size)
            analyzer = IssueAnalyzer(deriver, aggregator, scheme, skip_unclassifiable, stats=fetcher.stats)
            analyzer.run(fetcher, ISSUES_QUERY, variables, pages)

        write_period_stats(aggregator, week_stats_file)
        write_accumulated_stats(aggregator, accumulated_stats_file)

        stats = fetcher.stats
        logger.info(f"Pages from cache: {stats.pages_from_cache}, from network: {stats.pages_from_network}")
        logger.info("Issue statistics completed successfully")

    except IssueStatsError as e:
        logger.error(f"Aborting: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(1)


@main.command('issues-with-event')
@_paging_options
@_repository_options
@click.option('--event', type=click.Choice(TIMELINE_ITEM_TYPES), default='REOPENED_EVENT',
              help='Timeline item type to look for (default: REOPENED_EVENT)')
@_log_options
def issues_with_event(page_size: int, pages: int, persisted_data_dir: Path, owner: str, name: str,
                      event: str, log_level: str, log_file: str):
    """Print open issues that have at least one timeline item of a given type, newest first."""
    setup_logging(log_level, log_file)

    try:
        collection = collection_id(f"{owner}/{name} open issues with {event}", owner=owner, name=name, event=event)
        cache = PageCache(persisted_data_dir, collection)
        variables = {"owner": owner, "name": name, "states": ["OPEN"], "timelineItemTypes": [event]}

        with GraphQLClient() as client:
            fetcher = PagedFetcher(client, cache, page_size, direction=PaginationDirection.BACKWARD)
            found = 0
            for page in fetcher.fetch(ISSUES_WITH_TIMELINE_QUERY, variables, pages):
                for issue in page.issues:
                    issue = fetcher.collect_timeline(
                        issue, TIMELINE_QUERY,
                        {"owner": owner, "name": name, "timelineItemTypes": [event]},
                    )
                    if issue.timeline_items:
                        found += 1
                        click.echo(format_issue_events(issue))

        logger.info(f"Found {found} issues with {event} in {fetcher.stats.pages_from_cache + fetcher.stats.pages_from_network} pages")

    except IssueStatsError as e:
        logger.error(f"Aborting: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(1)


if __name__ == '__main__':
    main()
