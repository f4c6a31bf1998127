"""
Issue domain types (``procurement_kernel.domain.issue``).

Responsibility
--------------
Pure value objects for rule-based issue detection: detected issues and
their lifecycle, detection rules and results, the context handed to rules,
batch inputs/outputs, and the filter/sort/statistics shapes used when
querying produced issues.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Consumed by
``procurement_engines.detection`` and ``procurement_engines.issues``.

Invariants enforced
-------------------
* ``Issue`` is frozen; lifecycle functions return new instances.
* ``DetectionRule`` is frozen; enabling/disabling swaps in a copy.
* ``PRIORITY_ORDER`` is the single severity ordering: critical < high <
  medium < low (most urgent first under ascending sort).
* ``RelatedObject`` values are references, never ownership.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Mapping, TypeVar

from procurement_kernel.domain.ids import IdGenerator, generate_id
from procurement_kernel.domain.revision import SortDirection

TInput = TypeVar("TInput")


# =========================================================================
# Enumerations
# =========================================================================


class IssuePriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_ORDER: dict[IssuePriority, int] = {
    IssuePriority.CRITICAL: 0,
    IssuePriority.HIGH: 1,
    IssuePriority.MEDIUM: 2,
    IssuePriority.LOW: 3,
}

ACTION_REQUIRED_PRIORITIES: frozenset[IssuePriority] = frozenset({
    IssuePriority.CRITICAL,
    IssuePriority.HIGH,
})


class IssueStatus(str, Enum):
    OPEN = "open"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


STATUS_ORDER: dict[IssueStatus, int] = {
    IssueStatus.OPEN: 0,
    IssueStatus.ACKNOWLEDGED: 1,
    IssueStatus.IN_PROGRESS: 2,
    IssueStatus.RESOLVED: 3,
    IssueStatus.DISMISSED: 4,
}

ACTIVE_STATUSES: frozenset[IssueStatus] = frozenset({
    IssueStatus.OPEN,
    IssueStatus.ACKNOWLEDGED,
    IssueStatus.IN_PROGRESS,
})


class IssueSourceType(str, Enum):
    AUTOMATIC = "automatic"  # produced by a detection rule
    MANUAL = "manual"  # raised by a user
    EXTERNAL = "external"  # imported from another system


class ActionType(str, Enum):
    EMAIL = "email"
    CALL = "call"
    REVIEW = "review"
    APPROVE = "approve"
    CREATE_RMA = "create_rma"
    CREATE_NCR = "create_ncr"
    ESCALATE = "escalate"
    ACKNOWLEDGE = "acknowledge"
    RESOLVE = "resolve"
    DISMISS = "dismiss"
    LINK = "link"
    CUSTOM = "custom"


class ActionUrgency(str, Enum):
    IMMEDIATE = "immediate"
    SOON = "soon"
    WHEN_POSSIBLE = "when_possible"


# =========================================================================
# Issue
# =========================================================================


@dataclass(frozen=True)
class RelatedObject:
    """Typed reference to a business object, e.g. ``("purchase_order", "PO-0861")``."""

    type: str
    id: str
    label: str | None = None


@dataclass(frozen=True)
class SuggestedAction:
    type: ActionType
    label: str
    description: str | None = None
    target: str | None = None
    urgency: ActionUrgency | None = None
    context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IssueSource:
    type: IssueSourceType
    detector: str | None = None
    system: str | None = None


@dataclass(frozen=True)
class Issue:
    """A detected, prioritized, actionable condition.

    ``category`` is an open string set (e.g. ``quality_hold``, ``invoice``,
    ``backorder``); the engine does not constrain it.
    """

    id: str
    issue_number: str
    category: str
    priority: IssuePriority
    title: str
    description: str
    status: IssueStatus
    source: IssueSource
    detected_at: datetime
    suggested_action: SuggestedAction | None = None
    related_objects: tuple[RelatedObject, ...] = ()
    affected_quantity: Decimal | None = None
    affected_value: Decimal | None = None
    detected_by: str | None = None
    acknowledged_at: datetime | None = None
    acknowledged_by: str | None = None
    assigned_to: str | None = None
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    resolution: str | None = None
    resolution_notes: str | None = None
    source_data: Mapping[str, Any] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)


# =========================================================================
# Detection rules
# =========================================================================


@dataclass(frozen=True)
class DetectionContext:
    """Context handed to every rule invocation.

    ``config`` carries thresholds; ``meta`` carries anything else the
    caller wants rules to see.
    """

    current_date: datetime
    config: Mapping[str, Any] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DetectionResult:
    """Issue descriptor emitted by a rule, before numbering."""

    category: str
    priority: IssuePriority
    title: str
    description: str
    suggested_action: SuggestedAction | None = None
    related_objects: tuple[RelatedObject, ...] = ()
    affected_quantity: Decimal | None = None
    affected_value: Decimal | None = None
    source_data: Mapping[str, Any] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)


DetectFunction = Callable[[Any, DetectionContext], Iterable[DetectionResult]]


@dataclass(frozen=True)
class DetectionRule(Generic[TInput]):
    """A registered, pure detection function plus its registry metadata."""

    id: str
    name: str
    category: str
    base_priority: IssuePriority
    detect: DetectFunction
    enabled: bool = True
    description: str | None = None


IssueNumberGenerator = Callable[[str, int, datetime], str]


def default_issue_number(category: str, index: int, detected_at: datetime) -> str:
    """``QUA-2026-0001`` style: category prefix, detection year, padded index."""
    prefix = category.upper()[:3]
    return f"{prefix}-{detected_at.year}-{index:04d}"


@dataclass(frozen=True)
class DetectionEngineConfig:
    generate_id: IdGenerator = generate_id
    generate_issue_number: IssueNumberGenerator = default_issue_number
    default_config: Mapping[str, Any] = field(default_factory=dict)
    default_meta: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchDetectionInput(Generic[TInput]):
    """Items may be any iterable, including a one-shot generator."""

    items: Iterable[TInput]
    rule_ids: tuple[str, ...] | None = None
    context: DetectionContext | None = None


@dataclass(frozen=True)
class BatchDetectionOutput:
    issues: tuple[Issue, ...]
    by_category_summary: Mapping[str, int]
    by_priority_summary: Mapping[IssuePriority, int]
    action_required: tuple[Issue, ...]
    detected_at: datetime
    rules_executed: tuple[str, ...]


# =========================================================================
# Queries
# =========================================================================


class IssueSortField(str, Enum):
    PRIORITY = "priority"
    STATUS = "status"
    DETECTED_AT = "detected_at"
    CATEGORY = "category"


@dataclass(frozen=True)
class IssueFilter:
    """Conjunctive issue filter; unset criteria match everything."""

    categories: tuple[str, ...] = ()
    priorities: tuple[IssuePriority, ...] = ()
    statuses: tuple[IssueStatus, ...] = ()
    assigned_to: str | None = None
    related_object_type: str | None = None
    related_object_id: str | None = None
    detected_after: datetime | None = None
    detected_before: datetime | None = None


@dataclass(frozen=True)
class IssueSort:
    field: IssueSortField
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class IssueStats:
    total: int
    open: int
    resolved: int
    critical: int
    action_required: int
    by_category: Mapping[str, int]
    by_priority: Mapping[IssuePriority, int]
    by_status: Mapping[IssueStatus, int]
