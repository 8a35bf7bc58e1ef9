"""Custom exceptions for issue statistics."""

from typing import Any, Dict, Iterable, List, Optional


class IssueStatsError(Exception):
    """Base exception for issue statistics errors."""
    pass


class ConfigurationError(IssueStatsError):
    """Exception for configuration errors."""
    pass


class TransportError(IssueStatsError):
    """Exception for failed or non-successful remote calls."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(TransportError):
    """Exception for rate limiting errors."""
    pass


class ServerReportedError(IssueStatsError):
    """The response decoded but carried a GraphQL error list."""

    def __init__(self, errors: List[Dict[str, Any]], page_index: Optional[int] = None):
        self.errors = errors
        self.page_index = page_index
        messages = "; ".join(str(e.get("message", e)) for e in errors)
        where = f" on page {page_index}" if page_index is not None else ""
        super().__init__(f"Server reported {len(errors)} error(s){where}: {messages}")


class DecodeError(IssueStatsError):
    """Exception for responses that do not match the expected shape."""
    pass


class CacheIoError(IssueStatsError):
    """Exception for page cache filesystem errors."""
    pass


class PageNotCachedError(CacheIoError):
    """Raised when reading a page that was never written."""
    pass


class ClassificationError(IssueStatsError):
    """Raised when an issue carries category labels nobody knows about."""

    def __init__(self, unknown_labels: Iterable[str]):
        self.unknown_labels = sorted(unknown_labels)
        super().__init__(f"Unknown category labels: {self.unknown_labels}")


class UnknownPeriodError(IssueStatsError, KeyError):
    """Raised when reading counters of a period that was never recorded."""

    def __str__(self) -> str:
        return Exception.__str__(self)
