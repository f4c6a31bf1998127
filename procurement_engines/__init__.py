"""
Module: procurement_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (procurement_config bridges, procurement_modules).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import procurement_kernel (and sibling engine modules).
    MUST NOT import procurement_config or procurement_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` directly.  Time comes
      from an injected ``Clock`` or an explicit ``at=`` argument.
    - Immutability: every operation returns new values; arguments are
      never mutated.
    - Determinism: identical inputs (and clock/id generator) always
      produce identical outputs.

Failure modes:
    - Engines are total over well-formed input; see each module for the
      few programming errors that raise.

Audit relevance:
    Comparator and detection entry points are traced via the
    ``@traced_engine`` decorator (see ``procurement_engines.tracer``),
    emitting PROCUREMENT_ENGINE_TRACE log records that include engine name,
    version, input fingerprint, and duration.

Usage:
    from procurement_engines.revision import RevisionEngine
    from procurement_engines.detection import DetectionEngine
    from procurement_engines.issues import sort_issues, resolve_issue
    from procurement_engines.versioning import parse_version
"""

from procurement_kernel.logging_config import get_logger

logger = get_logger("engines")

from procurement_engines.comparator import (
    calculate_changes,
    deep_equal,
    get_changes_for_path,
    get_field_change,
)
from procurement_engines.detection import DetectionEngine
from procurement_engines.issues import (
    acknowledge_issue,
    calculate_issue_stats,
    create_related_object,
    create_suggested_action,
    dismiss_issue,
    filter_issues,
    get_action_required_issues,
    get_priority_variant,
    group_issues_by_category,
    group_issues_by_priority,
    is_actionable,
    reopen_issue,
    resolve_issue,
    sort_issues,
    start_issue,
)
from procurement_engines.revision import (
    RevisionEngine,
    RevisionEngineConfig,
    filter_revisions,
    get_latest_published,
    get_revision_history,
    sort_revisions,
)
from procurement_engines.tracer import traced_engine
from procurement_engines.versioning import (
    compare_versions,
    create_initial_version,
    format_version,
    increment_version,
    is_newer_version,
    parse_version,
)

__all__ = [
    # Comparator
    "calculate_changes",
    "deep_equal",
    "get_changes_for_path",
    "get_field_change",
    # Detection
    "DetectionEngine",
    # Issues
    "acknowledge_issue",
    "calculate_issue_stats",
    "create_related_object",
    "create_suggested_action",
    "dismiss_issue",
    "filter_issues",
    "get_action_required_issues",
    "get_priority_variant",
    "group_issues_by_category",
    "group_issues_by_priority",
    "is_actionable",
    "reopen_issue",
    "resolve_issue",
    "sort_issues",
    "start_issue",
    # Revision
    "RevisionEngine",
    "RevisionEngineConfig",
    "filter_revisions",
    "get_latest_published",
    "get_revision_history",
    "sort_revisions",
    # Tracer
    "traced_engine",
    # Versioning
    "compare_versions",
    "create_initial_version",
    "format_version",
    "increment_version",
    "is_newer_version",
    "parse_version",
]
