"""Data models for fetched issues and cached pages."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from dataclasses_json import dataclass_json

from .exceptions import DecodeError
from .periods import parse_timestamp


def _timestamp(value: Any, context: str) -> datetime:
    try:
        return parse_timestamp(value)
    except DecodeError as e:
        raise DecodeError(f"{e} in {context}") from e


def _require(node: Dict[str, Any], key: str, context: str) -> Any:
    """Return node[key] or raise DecodeError naming what was being decoded."""
    if not isinstance(node, dict):
        raise DecodeError(f"Expected an object for {context}, got {type(node).__name__}")
    if key not in node or node[key] is None:
        raise DecodeError(f"Missing field '{key}' in {context}")
    return node[key]


class IssueState(Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"

    @classmethod
    def decode(cls, value: Any, context: str = "issue") -> "IssueState":
        try:
            return cls(value)
        except ValueError:
            raise DecodeError(f"Unknown issue state {value!r} in {context}") from None


@dataclass(frozen=True)
class PageInfo:
    """Pagination block of a GraphQL connection."""
    end_cursor: Optional[str] = None
    has_next_page: bool = False
    start_cursor: Optional[str] = None
    has_previous_page: bool = False

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "PageInfo":
        if not isinstance(node, dict):
            raise DecodeError(f"Expected an object for pageInfo, got {type(node).__name__}")
        return cls(
            end_cursor=node.get("endCursor"),
            has_next_page=bool(node.get("hasNextPage", False)),
            start_cursor=node.get("startCursor"),
            has_previous_page=bool(node.get("hasPreviousPage", False)),
        )


# Timeline items, one class per `__typename`

@dataclass(frozen=True)
class LabeledEvent:
    created_at: datetime
    label: str

    def __str__(self) -> str:
        return f"+{self.label} {self.created_at:%Y-%m-%d}"


@dataclass(frozen=True)
class UnlabeledEvent:
    created_at: datetime
    label: str

    def __str__(self) -> str:
        return f"-{self.label} {self.created_at:%Y-%m-%d}"


@dataclass(frozen=True)
class ClosedEvent:
    created_at: datetime

    def __str__(self) -> str:
        return f"<CLOSED> {self.created_at:%Y-%m-%d}"


@dataclass(frozen=True)
class ReopenedEvent:
    created_at: datetime

    def __str__(self) -> str:
        return f"<REOPENED> {self.created_at:%Y-%m-%d}"


@dataclass(frozen=True)
class IssueComment:
    created_at: datetime

    def __str__(self) -> str:
        return f"<COMMENT> {self.created_at:%Y-%m-%d}"


TimelineItem = Union[LabeledEvent, UnlabeledEvent, ClosedEvent, ReopenedEvent, IssueComment]

_LABEL_EVENTS = {"LabeledEvent": LabeledEvent, "UnlabeledEvent": UnlabeledEvent}
_PLAIN_EVENTS = {"ClosedEvent": ClosedEvent, "ReopenedEvent": ReopenedEvent, "IssueComment": IssueComment}


def decode_timeline_item(node: Dict[str, Any]) -> TimelineItem:
    """Decode one timeline node using its `__typename` discriminator."""
    typename = _require(node, "__typename", "timeline item")
    created_at = parse_timestamp(_require(node, "createdAt", typename))
    if typename in _LABEL_EVENTS:
        label = _require(_require(node, "label", typename), "name", f"{typename} label")
        return _LABEL_EVENTS[typename](created_at=created_at, label=label)
    if typename in _PLAIN_EVENTS:
        return _PLAIN_EVENTS[typename](created_at=created_at)
    raise DecodeError(f"Unknown timeline item type: {typename!r}")


@dataclass(frozen=True)
class Issue:
    """One decoded issue node. Never mutated after decoding."""
    number: int
    title: str
    created_at: datetime
    state: IssueState
    url: str = ""
    closed_at: Optional[datetime] = None
    labels: Tuple[str, ...] = ()
    timeline_items: Tuple[TimelineItem, ...] = ()
    timeline_page_info: Optional[PageInfo] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "Issue":
        """Decode a GraphQL issue node.

        Args:
            node: Raw node with camelCase keys as returned by the API

        Returns:
            Issue with UTC timestamps and label names in server order
        """
        number = _require(node, "number", "issue")
        context = f"issue #{number}"
        closed_at = node.get("closedAt")

        labels: Tuple[str, ...] = ()
        if node.get("labels") is not None:
            labels = tuple(
                _require(label, "name", f"{context} label")
                for label in (_require(node["labels"], "nodes", f"{context} labels"))
                if label is not None
            )

        timeline_items: Tuple[TimelineItem, ...] = ()
        timeline_page_info = None
        timeline = node.get("timelineItems")
        if timeline is not None:
            if not isinstance(timeline, dict):
                raise DecodeError(f"Expected an object for timelineItems of {context}")
            try:
                timeline_items = tuple(
                    decode_timeline_item(item) for item in (timeline.get("nodes") or []) if item is not None
                )
            except DecodeError as e:
                raise DecodeError(f"{e} in timeline of {context}") from e
            if timeline.get("pageInfo") is not None:
                timeline_page_info = PageInfo.from_node(timeline["pageInfo"])

        return cls(
            number=number,
            title=_require(node, "title", context),
            created_at=_timestamp(_require(node, "createdAt", context), context),
            state=IssueState.decode(_require(node, "state", context), context),
            url=node.get("url") or "",
            closed_at=_timestamp(closed_at, context) if closed_at is not None else None,
            labels=labels,
            timeline_items=timeline_items,
            timeline_page_info=timeline_page_info,
        )

    def __str__(self) -> str:
        items = ", ".join(str(item) for item in self.timeline_items)
        return f'"#{self.number} {self.title}, created {self.created_at:%Y-%m-%d}, timeline items: {items}"'


@dataclass(frozen=True)
class IssuePage:
    """A decoded page of issues."""
    page_index: int
    issues: Tuple[Issue, ...]
    page_info: PageInfo
    from_cache: bool = False


@dataclass_json
@dataclass
class CachedPage:
    """Verbatim GraphQL response body as persisted on disk."""
    data: Optional[Dict[str, Any]] = None
    errors: Optional[List[Dict[str, Any]]] = None

    def connection(self, path: Sequence[str]) -> Dict[str, Any]:
        """Walk `data` along path, e.g. ("repository", "issues")."""
        value: Any = self.data
        walked = "data"
        if value is None:
            raise DecodeError("Response has no data")
        for segment in path:
            if not isinstance(value, dict) or value.get(segment) is None:
                raise DecodeError(f"Missing '{segment}' under {walked}")
            value = value[segment]
            walked = f"{walked}.{segment}"
        if not isinstance(value, dict):
            raise DecodeError(f"Expected an object at {walked}")
        return value

    def decode(self, page_index: int, path: Sequence[str], from_cache: bool = False) -> IssuePage:
        """Decode the issue connection found at path into an IssuePage."""
        try:
            connection = self.connection(path)
            nodes = _require(connection, "nodes", "connection")
            issues = tuple(Issue.from_node(node) for node in nodes if node is not None)
            page_info = PageInfo.from_node(_require(connection, "pageInfo", "connection"))
        except DecodeError as e:
            raise DecodeError(f"{e} on page {page_index}") from e
        return IssuePage(page_index=page_index, issues=issues, page_info=page_info, from_cache=from_cache)


@dataclass_json
@dataclass
class RunStats:
    """Counters for one analysis run."""
    pages_from_network: int = 0
    pages_from_cache: int = 0
    issues_processed: int = 0
    issues_skipped: int = 0
    skipped_urls: List[str] = field(default_factory=list)
