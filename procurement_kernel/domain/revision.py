"""
Revision domain types (``procurement_kernel.domain.revision``).

Responsibility
--------------
Pure value objects for document versioning: semantic versions, revisions,
versioned documents, change sets produced by the deep comparator, and the
query/filter shapes used over revision histories.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Consumed by
``procurement_engines.versioning``, ``procurement_engines.comparator`` and
``procurement_engines.revision``.

Invariants enforced
-------------------
* Every type is a frozen dataclass; lifecycle transitions produce new
  instances via ``dataclasses.replace``.
* ``ChangeStats`` is only ever derived from the two change arrays
  (``ChangeStats.from_changes``), so recomputing it always reproduces the
  stored value.
* ``VersionedDocument.revision_count == len(revision_ids)``.
* ``REVISION_TRANSITIONS`` documents the standard lifecycle edges.  It is
  advisory: engine transitions stay total and only log a warning on a
  non-standard edge.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Hashable, Mapping, TypeVar

TData = TypeVar("TData")


# =========================================================================
# Versions
# =========================================================================


class ChangeSignificance(str, Enum):
    """How significant a change is; drives automatic version bumps."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


@dataclass(frozen=True)
class SemanticVersion:
    """``major.minor.patch`` plus an optional free-form pre-release label."""

    major: int
    minor: int
    patch: int
    pre_release: str | None = None

    @property
    def sort_key(self) -> tuple[int, int, int, int]:
        """Ordering key consistent with ``compare_versions``.

        Pre-release sorts before release; labels themselves are not ordered.
        """
        return (self.major, self.minor, self.patch, 0 if self.pre_release else 1)


# =========================================================================
# Revision lifecycle
# =========================================================================


class RevisionStatus(str, Enum):
    """Revision lifecycle states."""

    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"
    ARCHIVED = "archived"


REVISION_TRANSITIONS: dict[RevisionStatus, frozenset[RevisionStatus]] = {
    RevisionStatus.DRAFT: frozenset({
        RevisionStatus.PENDING_REVIEW,
        RevisionStatus.APPROVED,
        RevisionStatus.PUBLISHED,
        RevisionStatus.ARCHIVED,
    }),
    RevisionStatus.PENDING_REVIEW: frozenset({
        RevisionStatus.DRAFT,
        RevisionStatus.APPROVED,
        RevisionStatus.ARCHIVED,
    }),
    RevisionStatus.APPROVED: frozenset({
        RevisionStatus.PUBLISHED,
        RevisionStatus.ARCHIVED,
    }),
    RevisionStatus.PUBLISHED: frozenset({
        RevisionStatus.SUPERSEDED,
        RevisionStatus.ARCHIVED,
    }),
    RevisionStatus.SUPERSEDED: frozenset({
        RevisionStatus.ARCHIVED,
    }),
    RevisionStatus.ARCHIVED: frozenset(),
}


def is_standard_revision_transition(
    from_status: RevisionStatus,
    to_status: RevisionStatus,
) -> bool:
    """True if ``from_status -> to_status`` is a standard lifecycle edge."""
    return to_status in REVISION_TRANSITIONS[RevisionStatus(from_status)]


# =========================================================================
# Change tracking
# =========================================================================


class FieldChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class CollectionChangeType(str, Enum):
    ITEM_ADDED = "item_added"
    ITEM_REMOVED = "item_removed"
    ITEM_MODIFIED = "item_modified"
    REORDERED = "reordered"  # reserved; the comparator does not emit it


@dataclass(frozen=True)
class FieldChange:
    """A change to a single field, addressed by dotted path."""

    path: str
    type: FieldChangeType
    significance: ChangeSignificance
    old_value: Any = None
    new_value: Any = None
    label: str | None = None


@dataclass(frozen=True)
class CollectionChange:
    """A change to one identified element of a list-valued field."""

    path: str
    type: CollectionChangeType
    item_id: Hashable | None = None
    index: int | None = None
    old_item: Any = None
    new_item: Any = None
    item_changes: tuple[FieldChange, ...] = ()


@dataclass(frozen=True)
class ChangeStats:
    """Counters derived from a change set's two arrays."""

    total_changes: int = 0
    fields_added: int = 0
    fields_removed: int = 0
    fields_modified: int = 0
    items_added: int = 0
    items_removed: int = 0
    items_modified: int = 0
    major_changes: int = 0
    minor_changes: int = 0
    patch_changes: int = 0

    @classmethod
    def from_changes(
        cls,
        field_changes: tuple[FieldChange, ...],
        collection_changes: tuple[CollectionChange, ...],
    ) -> ChangeStats:
        counts = {f.name: 0 for f in fields(cls)}

        for change in field_changes:
            counts["total_changes"] += 1
            counts[_FIELD_TYPE_COUNTERS[change.type]] += 1
            counts[_SIGNIFICANCE_COUNTERS[change.significance]] += 1

        for change in collection_changes:
            counts["total_changes"] += 1
            counter = _COLLECTION_TYPE_COUNTERS.get(change.type)
            if counter is not None:
                counts[counter] += 1

        return cls(**counts)


_FIELD_TYPE_COUNTERS = {
    FieldChangeType.ADDED: "fields_added",
    FieldChangeType.REMOVED: "fields_removed",
    FieldChangeType.MODIFIED: "fields_modified",
}

_SIGNIFICANCE_COUNTERS = {
    ChangeSignificance.MAJOR: "major_changes",
    ChangeSignificance.MINOR: "minor_changes",
    ChangeSignificance.PATCH: "patch_changes",
}

_COLLECTION_TYPE_COUNTERS = {
    CollectionChangeType.ITEM_ADDED: "items_added",
    CollectionChangeType.ITEM_REMOVED: "items_removed",
    CollectionChangeType.ITEM_MODIFIED: "items_modified",
}


@dataclass(frozen=True)
class ChangeSet:
    """Complete set of differences between two snapshots.

    Build through ``ChangeSet.build`` so that ``stats`` always matches the
    arrays.  ``unchanged_paths`` is only populated when the comparison was
    run with ``include_unchanged`` and never counts toward stats.
    """

    field_changes: tuple[FieldChange, ...]
    collection_changes: tuple[CollectionChange, ...]
    stats: ChangeStats
    unchanged_paths: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        field_changes: tuple[FieldChange, ...] | list[FieldChange],
        collection_changes: tuple[CollectionChange, ...] | list[CollectionChange],
        unchanged_paths: tuple[str, ...] | list[str] = (),
    ) -> ChangeSet:
        field_changes = tuple(field_changes)
        collection_changes = tuple(collection_changes)
        return cls(
            field_changes=field_changes,
            collection_changes=collection_changes,
            stats=ChangeStats.from_changes(field_changes, collection_changes),
            unchanged_paths=tuple(unchanged_paths),
        )

    @property
    def is_empty(self) -> bool:
        return self.stats.total_changes == 0


@dataclass(frozen=True)
class ComparisonOptions:
    """Per-call comparison options.

    ``None`` means "not set": ``merged_with`` overlays only the fields an
    override actually sets, so engine defaults survive partial overrides.
    A ``max_depth`` of ``None`` or ``0`` means unlimited.
    """

    ignore_paths: tuple[str, ...] | None = None
    major_change_paths: tuple[str, ...] | None = None
    minor_change_paths: tuple[str, ...] | None = None
    include_unchanged: bool | None = None
    max_depth: int | None = None

    def merged_with(self, override: ComparisonOptions | None) -> ComparisonOptions:
        if override is None:
            return self
        updates = {
            f.name: getattr(override, f.name)
            for f in fields(override)
            if getattr(override, f.name) is not None
        }
        return replace(self, **updates)


# =========================================================================
# Revisions and documents
# =========================================================================


@dataclass(frozen=True)
class Revision(Generic[TData]):
    """One immutable, versioned snapshot of a document.

    ``previous_revision_id`` is a back-reference only; the owning document
    holds the ordered list of revision ids.
    """

    id: str
    document_id: str
    version: SemanticVersion
    version_string: str
    revision_number: int
    status: RevisionStatus
    data: TData
    created_by: str
    created_at: datetime
    changes: ChangeSet | None = None
    change_summary: str | None = None
    created_by_name: str | None = None
    previous_revision_id: str | None = None
    published_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    tags: tuple[str, ...] = ()
    meta: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class VersionedDocument:
    """Container owning the ordered (oldest -> newest) revision id list.

    ``latest_*`` always points at the most recently appended revision;
    ``current_*`` points at the last published one and may lag behind.
    """

    id: str
    document_type: str
    latest_revision_id: str
    latest_version: SemanticVersion
    revision_ids: tuple[str, ...]
    revision_count: int
    created_at: datetime
    updated_at: datetime
    document_number: str | None = None
    current_version: SemanticVersion | None = None
    current_version_string: str | None = None
    current_revision_id: str | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_published_revision(self) -> bool:
        return self.current_revision_id is not None


@dataclass(frozen=True)
class RevisionRef:
    id: str
    version: SemanticVersion
    version_string: str


@dataclass(frozen=True)
class RevisionComparison:
    """Result of comparing the data of two revisions."""

    from_revision: RevisionRef
    to_revision: RevisionRef
    change_set: ChangeSet
    identical: bool
    suggested_bump: ChangeSignificance


@dataclass(frozen=True)
class CreateRevisionInput(Generic[TData]):
    """Caller input for ``RevisionEngine.create_revision``."""

    data: TData
    created_by: str
    created_by_name: str | None = None
    status: RevisionStatus | None = None
    change_summary: str | None = None
    force_bump: ChangeSignificance | None = None
    tags: tuple[str, ...] = ()
    meta: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RevisionConflict:
    """The document head moved since the caller last read it."""

    document_id: str
    expected_revision_count: int | None
    actual_revision_count: int
    expected_latest_revision_id: str | None
    actual_latest_revision_id: str
    reason: str


@dataclass(frozen=True)
class RevisionOutcome(Generic[TData]):
    """Either a newly appended revision or the conflict that prevented it."""

    document: VersionedDocument | None = None
    revision: Revision[TData] | None = None
    conflict: RevisionConflict | None = None

    @property
    def succeeded(self) -> bool:
        return self.conflict is None


# =========================================================================
# Merge shapes (no merge algorithm exists)
# =========================================================================


class ConflictResolution(str, Enum):
    OURS = "ours"
    THEIRS = "theirs"
    BASE = "base"
    MANUAL = "manual"


@dataclass(frozen=True)
class MergeConflict:
    path: str
    base_value: Any
    ours_value: Any
    theirs_value: Any
    suggestion: ConflictResolution | None = None


@dataclass(frozen=True)
class MergeResult(Generic[TData]):
    success: bool
    conflicts: tuple[MergeConflict, ...] = ()
    auto_resolved: tuple[FieldChange, ...] = ()
    merged_data: TData | None = None


# =========================================================================
# Queries
# =========================================================================


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RevisionSortField(str, Enum):
    VERSION = "version"
    CREATED_AT = "created_at"
    REVISION_NUMBER = "revision_number"


@dataclass(frozen=True)
class RevisionFilter:
    """Conjunctive revision filter; unset criteria match everything."""

    document_id: str | None = None
    statuses: tuple[RevisionStatus, ...] = ()
    created_by: str | None = None
    created_after: datetime | None = None
    created_before: datetime | None = None
    tags: tuple[str, ...] = ()
    min_version: SemanticVersion | None = None
    max_version: SemanticVersion | None = None


@dataclass(frozen=True)
class RevisionSort:
    field: RevisionSortField
    direction: SortDirection = SortDirection.ASC
