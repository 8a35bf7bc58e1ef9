"""Issue classification from `C-` labels and closed date derivation."""

from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Tuple

from loguru import logger

from .exceptions import ClassificationError
from .models import Issue, IssueState

CATEGORY_LABEL_PREFIX = "C-"
BUG_LABEL = "C-bug"
IMPROVEMENT_LABELS = frozenset({
    "C-enhancement",
    "C-feature-request",
    "C-optimization",
    "C-cleanup",
    "C-feature-accepted",
    "C-tracking-issue",
    "C-future-compatibility",
})
DISCUSSION_LABEL = "C-discussion"


class IssueCategory(Enum):
    # C-bug
    BUG = "Bug"
    # C-enhancement, C-feature-request, C-optimization, C-cleanup,
    # C-feature-accepted, C-tracking-issue, C-future-compatibility
    IMPROVEMENT = "Improvement"
    # C-discussion and issues without a C-* label
    UNCATEGORIZED = "Uncategorized"


class CoarseCategory(Enum):
    BUG = "Bug"
    NOT_BUG = "NotBug"


class CategoryScheme(Enum):
    DETAILED = "detailed"
    COARSE = "coarse"

    @property
    def categories(self) -> Tuple[Enum, ...]:
        if self is CategoryScheme.COARSE:
            return tuple(CoarseCategory)
        return tuple(IssueCategory)

    def classify(self, label_names: Iterable[str]) -> Enum:
        if self is CategoryScheme.COARSE:
            return classify_coarse(label_names)
        return classify(label_names)


def classify(label_names: Iterable[str]) -> IssueCategory:
    """Map the labels of an issue to exactly one category.

    Only labels starting with "C-" take part. First match wins: C-bug, then
    any improvement label, then C-discussion or no C- label at all.

    Raises:
        ClassificationError: the C- labels match none of the known values
    """
    category_labels = {name for name in label_names if name.startswith(CATEGORY_LABEL_PREFIX)}

    if BUG_LABEL in category_labels:
        return IssueCategory.BUG
    if category_labels & IMPROVEMENT_LABELS:
        return IssueCategory.IMPROVEMENT
    if not category_labels or DISCUSSION_LABEL in category_labels:
        return IssueCategory.UNCATEGORIZED

    raise ClassificationError(category_labels)


def classify_coarse(label_names: Iterable[str]) -> CoarseCategory:
    """Bug or not, with the same totality rules as classify."""
    if classify(label_names) is IssueCategory.BUG:
        return CoarseCategory.BUG
    return CoarseCategory.NOT_BUG


def closed_at(issue: Issue) -> Optional[datetime]:
    """When the issue was closed, or None while it is open.

    Closed issues without closedAt fall back to their creation time. Reopen
    events are not consulted; closedAt reflects the latest close.
    """
    if issue.closed_at is not None:
        return issue.closed_at
    if issue.state is IssueState.CLOSED:
        logger.warning(f"strange state {issue.state.value} without closedAt for issue: {issue.url or issue.number}")
        return issue.created_at
    return None
