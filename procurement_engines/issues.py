"""
procurement_engines.issues -- Issue lifecycle transitions and query utilities.

Responsibility:
    Pure functions over produced issues: lifecycle transitions
    (acknowledge / start / resolve / dismiss / reopen), conjunctive filtering,
    single-key sorting, grouping, and aggregate statistics.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Operates on ``procurement_kernel.domain.issue`` value types.

Invariants enforced:
    - No function mutates its arguments; collections come back as new lists
      or dicts and transitions as new Issue values.
    - Severity ordering is ``PRIORITY_ORDER`` (critical first under
      ascending sort); sorting is stable.
    - ``calculate_issue_stats(...).action_required`` counts open
      critical/high issues, matching ``detect_batch`` over the same issues.

Failure modes:
    - Lifecycle transitions are total: any status may move to any target
      status.  ``at`` defaults to the system clock when not supplied.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from procurement_kernel.domain.clock import SYSTEM_CLOCK
from procurement_kernel.domain.issue import (
    ACTION_REQUIRED_PRIORITIES,
    ACTIVE_STATUSES,
    PRIORITY_ORDER,
    STATUS_ORDER,
    ActionType,
    ActionUrgency,
    Issue,
    IssueFilter,
    IssuePriority,
    IssueSort,
    IssueSortField,
    IssueStats,
    IssueStatus,
    RelatedObject,
    SuggestedAction,
)
from procurement_kernel.domain.revision import SortDirection
from procurement_kernel.logging_config import get_logger

logger = get_logger("engines.issues")


def _now(at: datetime | None) -> datetime:
    return at if at is not None else SYSTEM_CLOCK.now()


def _log_transition(issue: Issue, to_status: IssueStatus) -> None:
    logger.info("issue_transitioned", extra={
        "issue_id": issue.id,
        "issue_number": issue.issue_number,
        "from_status": issue.status.value,
        "to_status": to_status.value,
    })


# =========================================================================
# Lifecycle
# =========================================================================


def acknowledge_issue(
    issue: Issue,
    acknowledged_by: str | None = None,
    *,
    at: datetime | None = None,
) -> Issue:
    _log_transition(issue, IssueStatus.ACKNOWLEDGED)
    return replace(
        issue,
        status=IssueStatus.ACKNOWLEDGED,
        acknowledged_at=_now(at),
        acknowledged_by=acknowledged_by,
    )


def start_issue(issue: Issue, assigned_to: str) -> Issue:
    _log_transition(issue, IssueStatus.IN_PROGRESS)
    return replace(issue, status=IssueStatus.IN_PROGRESS, assigned_to=assigned_to)


def resolve_issue(
    issue: Issue,
    resolution: str,
    resolved_by: str,
    notes: str | None = None,
    *,
    at: datetime | None = None,
) -> Issue:
    _log_transition(issue, IssueStatus.RESOLVED)
    return replace(
        issue,
        status=IssueStatus.RESOLVED,
        resolution=resolution,
        resolved_by=resolved_by,
        resolution_notes=notes,
        resolved_at=_now(at),
    )


def dismiss_issue(
    issue: Issue,
    reason: str,
    dismissed_by: str,
    *,
    at: datetime | None = None,
) -> Issue:
    """Dismiss; the reason and actor land in the resolution fields."""
    _log_transition(issue, IssueStatus.DISMISSED)
    return replace(
        issue,
        status=IssueStatus.DISMISSED,
        resolution=reason,
        resolved_by=dismissed_by,
        resolved_at=_now(at),
    )


def reopen_issue(issue: Issue) -> Issue:
    """Back to open with every resolution field cleared."""
    _log_transition(issue, IssueStatus.OPEN)
    return replace(
        issue,
        status=IssueStatus.OPEN,
        resolution=None,
        resolved_by=None,
        resolved_at=None,
        resolution_notes=None,
    )


# =========================================================================
# Queries
# =========================================================================


def _matches(issue: Issue, issue_filter: IssueFilter) -> bool:
    if issue_filter.categories and issue.category not in issue_filter.categories:
        return False
    if issue_filter.priorities and issue.priority not in issue_filter.priorities:
        return False
    if issue_filter.statuses and issue.status not in issue_filter.statuses:
        return False
    if issue_filter.assigned_to and issue.assigned_to != issue_filter.assigned_to:
        return False
    if issue_filter.related_object_type or issue_filter.related_object_id:
        if not any(
            (not issue_filter.related_object_type or ro.type == issue_filter.related_object_type)
            and (not issue_filter.related_object_id or ro.id == issue_filter.related_object_id)
            for ro in issue.related_objects
        ):
            return False
    if issue_filter.detected_after and issue.detected_at < issue_filter.detected_after:
        return False
    if issue_filter.detected_before and issue.detected_at > issue_filter.detected_before:
        return False
    return True


def filter_issues(issues: Iterable[Issue], issue_filter: IssueFilter) -> list[Issue]:
    """Issues matching every set criterion.

    A related-object criterion matches when a single related object
    satisfies both the type and the id given.
    """
    return [i for i in issues if _matches(i, issue_filter)]


_ISSUE_SORT_KEYS = {
    IssueSortField.PRIORITY: lambda i: PRIORITY_ORDER[i.priority],
    IssueSortField.STATUS: lambda i: STATUS_ORDER[i.status],
    IssueSortField.DETECTED_AT: lambda i: i.detected_at,
    IssueSortField.CATEGORY: lambda i: i.category,
}


def sort_issues(issues: Iterable[Issue], sort: IssueSort) -> list[Issue]:
    return sorted(
        issues,
        key=_ISSUE_SORT_KEYS[IssueSortField(sort.field)],
        reverse=SortDirection(sort.direction) is SortDirection.DESC,
    )


def get_action_required_issues(issues: Iterable[Issue]) -> list[Issue]:
    """Open issues of critical or high priority."""
    return filter_issues(issues, IssueFilter(
        statuses=(IssueStatus.OPEN,),
        priorities=tuple(ACTION_REQUIRED_PRIORITIES),
    ))


def group_issues_by_category(issues: Iterable[Issue]) -> dict[str, list[Issue]]:
    groups: dict[str, list[Issue]] = {}
    for issue in issues:
        groups.setdefault(issue.category, []).append(issue)
    return groups


def group_issues_by_priority(issues: Iterable[Issue]) -> dict[IssuePriority, list[Issue]]:
    groups: dict[IssuePriority, list[Issue]] = {}
    for issue in issues:
        groups.setdefault(issue.priority, []).append(issue)
    return groups


def is_actionable(issue: Issue) -> bool:
    """Open or acknowledged: nobody is working on it yet."""
    return issue.status in (IssueStatus.OPEN, IssueStatus.ACKNOWLEDGED)


_PRIORITY_VARIANTS = {
    IssuePriority.CRITICAL: "error",
    IssuePriority.HIGH: "warning",
    IssuePriority.MEDIUM: "info",
    IssuePriority.LOW: "muted",
}


def get_priority_variant(priority: IssuePriority | str) -> str:
    """Presentation variant for a priority: error, warning, info or muted."""
    return _PRIORITY_VARIANTS[IssuePriority(priority)]


def calculate_issue_stats(issues: Iterable[Issue]) -> IssueStats:
    """Counts by category, priority and status, plus headline totals.

    ``open`` covers every active status (open, acknowledged, in progress).
    ``action_required`` counts only issues still ``open`` at critical or
    high priority, so an acknowledged high issue is not included.  It agrees
    with ``get_action_required_issues`` and ``detect_batch``.
    """
    by_category: dict[str, int] = {}
    by_priority: dict[IssuePriority, int] = {p: 0 for p in IssuePriority}
    by_status: dict[IssueStatus, int] = {s: 0 for s in IssueStatus}
    total = open_count = resolved = critical = action_required = 0

    for issue in issues:
        total += 1
        by_category[issue.category] = by_category.get(issue.category, 0) + 1
        by_priority[issue.priority] += 1
        by_status[issue.status] += 1

        if issue.status in ACTIVE_STATUSES:
            open_count += 1
        elif issue.status is IssueStatus.RESOLVED:
            resolved += 1

        if issue.priority is IssuePriority.CRITICAL:
            critical += 1

        if issue.status is IssueStatus.OPEN and issue.priority in ACTION_REQUIRED_PRIORITIES:
            action_required += 1

    return IssueStats(
        total=total,
        open=open_count,
        resolved=resolved,
        critical=critical,
        action_required=action_required,
        by_category=by_category,
        by_priority=by_priority,
        by_status=by_status,
    )


# =========================================================================
# Builders
# =========================================================================


def create_suggested_action(
    action_type: ActionType | str,
    label: str,
    *,
    description: str | None = None,
    target: str | None = None,
    urgency: ActionUrgency | str | None = None,
    context: Mapping[str, Any] | None = None,
) -> SuggestedAction:
    return SuggestedAction(
        type=ActionType(action_type),
        label=label,
        description=description,
        target=target,
        urgency=ActionUrgency(urgency) if urgency is not None else None,
        context=dict(context or {}),
    )


def create_related_object(type: str, id: str, label: str | None = None) -> RelatedObject:
    return RelatedObject(type=type, id=id, label=label)
