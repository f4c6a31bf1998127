"""
Pure domain layer.

This module contains pure value objects with NO dependencies on:
- Persistence
- Time/clock (time is injected through ``Clock``)
- I/O

All domain objects are immutable and deterministic.
"""

from procurement_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
)
from procurement_kernel.domain.ids import (
    IdGenerator,
    SequentialIdGenerator,
    generate_id,
)
from procurement_kernel.domain.issue import (
    BatchDetectionInput,
    BatchDetectionOutput,
    DetectionContext,
    DetectionEngineConfig,
    DetectionResult,
    DetectionRule,
    Issue,
    IssueFilter,
    IssuePriority,
    IssueSort,
    IssueSortField,
    IssueSource,
    IssueSourceType,
    IssueStats,
    IssueStatus,
    RelatedObject,
    SuggestedAction,
)
from procurement_kernel.domain.revision import (
    ChangeSet,
    ChangeSignificance,
    ChangeStats,
    CollectionChange,
    CollectionChangeType,
    ComparisonOptions,
    CreateRevisionInput,
    FieldChange,
    FieldChangeType,
    MergeConflict,
    MergeResult,
    Revision,
    RevisionComparison,
    RevisionConflict,
    RevisionFilter,
    RevisionOutcome,
    RevisionSort,
    RevisionSortField,
    RevisionStatus,
    SemanticVersion,
    SortDirection,
    VersionedDocument,
)

__all__ = [
    # Clock / ids
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "IdGenerator",
    "SequentialIdGenerator",
    "generate_id",
    # Revisions
    "ChangeSet",
    "ChangeSignificance",
    "ChangeStats",
    "CollectionChange",
    "CollectionChangeType",
    "ComparisonOptions",
    "CreateRevisionInput",
    "FieldChange",
    "FieldChangeType",
    "MergeConflict",
    "MergeResult",
    "Revision",
    "RevisionComparison",
    "RevisionConflict",
    "RevisionFilter",
    "RevisionOutcome",
    "RevisionSort",
    "RevisionSortField",
    "RevisionStatus",
    "SemanticVersion",
    "SortDirection",
    "VersionedDocument",
    # Issues
    "BatchDetectionInput",
    "BatchDetectionOutput",
    "DetectionContext",
    "DetectionEngineConfig",
    "DetectionResult",
    "DetectionRule",
    "Issue",
    "IssueFilter",
    "IssuePriority",
    "IssueSort",
    "IssueSortField",
    "IssueSource",
    "IssueSourceType",
    "IssueStats",
    "IssueStatus",
    "RelatedObject",
    "SuggestedAction",
]
