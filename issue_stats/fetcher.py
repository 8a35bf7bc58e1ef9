"""Cursor-based pagination with a durable page cache."""

from dataclasses import replace
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Protocol, Sequence

from loguru import logger

from .config import CURSOR_VARIABLE, PAGE_SIZE_VARIABLE
from .exceptions import ConfigurationError, DecodeError, ServerReportedError
from .models import CachedPage, Issue, IssuePage, PageInfo, RunStats, decode_timeline_item
from .page_cache import PageCache

ISSUES_PATH = ("repository", "issues")
ISSUE_PATH = ("repository", "issue")


class QueryClient(Protocol):
    def execute(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        ...


class PaginationDirection(Enum):
    """FORWARD follows endCursor/hasNextPage, BACKWARD follows startCursor/hasPreviousPage."""
    FORWARD = "forward"
    BACKWARD = "backward"

    def more_pages(self, page_info: PageInfo) -> bool:
        if self is PaginationDirection.FORWARD:
            return page_info.has_next_page
        return page_info.has_previous_page

    def next_cursor(self, page_info: PageInfo) -> Optional[str]:
        if self is PaginationDirection.FORWARD:
            return page_info.end_cursor
        return page_info.start_cursor


class PagedFetcher:
    """Fetches pages of issues, reading from the cache before touching the network."""

    def __init__(self, client: QueryClient, cache: PageCache, page_size: int,
                 connection_path: Sequence[str] = ISSUES_PATH,
                 direction: PaginationDirection = PaginationDirection.FORWARD):
        if page_size <= 0:
            raise ConfigurationError(f"Page size must be positive, got {page_size}")
        self.client = client
        self.cache = cache
        self.page_size = page_size
        self.connection_path = tuple(connection_path)
        self.direction = direction
        self.stats = RunStats()

    def fetch(self, query: str, variables: Dict[str, Any], max_pages: int) -> Iterator[IssuePage]:
        """Yield decoded pages until max_pages, the last page, or an error.

        Each call starts again from the first page. Pages already yielded stay
        valid when a later page raises.

        Args:
            query: Query document, sent verbatim; must declare $pageSize and $cursor
            variables: Extra variable bindings (owner, name, filters)
            max_pages: Upper bound on pages to produce

        Raises:
            ServerReportedError: the server answered with an error list
            TransportError: the request failed
            DecodeError: a cached or live page has an unexpected shape
        """
        cursor: Optional[str] = None

        for page_index in range(max_pages):
            if self.cache.exists(self.page_size, page_index):
                raw = self.cache.read(self.page_size, page_index)
                if raw.errors:
                    raise ServerReportedError(raw.errors, page_index)
                page = raw.decode(page_index, self.connection_path, from_cache=True)
                self.stats.pages_from_cache += 1
            else:
                request_variables = dict(variables)
                request_variables[PAGE_SIZE_VARIABLE] = self.page_size
                request_variables[CURSOR_VARIABLE] = cursor

                logger.info(f"Fetching page {page_index} (page size {self.page_size}, cursor {cursor})")
                raw = CachedPage.from_dict(self.client.execute(query, request_variables))
                if raw.errors:
                    logger.error(f"Server reported errors on page {page_index}: {raw.errors}")
                    raise ServerReportedError(raw.errors, page_index)

                # Malformed responses are never cached
                page = raw.decode(page_index, self.connection_path)
                self.cache.write(self.page_size, page_index, raw)
                self.stats.pages_from_network += 1

            yield page

            if not self.direction.more_pages(page.page_info):
                logger.debug(f"No more pages after page {page_index}")
                break
            cursor = self.direction.next_cursor(page.page_info)
            if cursor is None:
                raise DecodeError(f"Page {page_index} reports more pages but carries no cursor")

    def collect_timeline(self, issue: Issue, query: str, variables: Optional[Dict[str, Any]] = None) -> Issue:
        """Follow an issue's timeline pagination and return the issue with every item.

        Timeline continuation pages are not cached.
        """
        page_info = issue.timeline_page_info
        items = list(issue.timeline_items)

        while page_info is not None and page_info.has_next_page:
            request_variables = dict(variables or {})
            request_variables["number"] = issue.number
            request_variables[CURSOR_VARIABLE] = page_info.end_cursor

            raw = CachedPage.from_dict(self.client.execute(query, request_variables))
            if raw.errors:
                raise ServerReportedError(raw.errors)
            node = raw.connection(ISSUE_PATH)
            if node.get("number") != issue.number:
                raise DecodeError(f"Timeline page for issue #{issue.number} returned issue #{node.get('number')}")

            timeline = node.get("timelineItems")
            if not isinstance(timeline, dict) or timeline.get("pageInfo") is None:
                raise DecodeError(f"Missing timelineItems for issue #{issue.number}")
            try:
                items.extend(decode_timeline_item(item) for item in (timeline.get("nodes") or []) if item is not None)
            except DecodeError as e:
                raise DecodeError(f"{e} in timeline of issue #{issue.number}") from e
            page_info = PageInfo.from_node(timeline["pageInfo"])

        return replace(issue, timeline_items=tuple(items), timeline_page_info=page_info)
