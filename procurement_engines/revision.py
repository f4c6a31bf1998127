"""
procurement_engines.revision -- Revision lifecycle engine for versioned documents.

Responsibility:
    Create versioned documents and append revisions to them, deriving the
    semantic version bump from the deep comparator's ChangeSet; apply the
    publish / approve / review / archive / supersede transitions; compare
    revisions; query revision histories.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on ``procurement_engines.comparator`` and
    ``procurement_engines.versioning``; time comes from an injected Clock.

Invariants enforced:
    - Inputs are never mutated; every operation returns new frozen values
      built with ``dataclasses.replace``.
    - Revision numbers are 1-based and gapless:
      ``revision_number == document.revision_count + 1`` on append, and
      ``revision_count == len(revision_ids)`` afterwards.
    - Version bump is a cascade: major if any major change, else minor if
      any minor change, else patch.  ``force_bump`` overrides it.
    - Only ``publish_revision`` moves the document's ``current_*`` pointer.

Failure modes:
    - Transitions are total.  A transition outside ``REVISION_TRANSITIONS``
      (e.g. approving an archived revision) is applied and logged as
      ``revision_nonstandard_transition`` at WARNING.
    - ``create_revision_if_current`` reports a stale document head as a
      ``RevisionConflict`` in its outcome instead of raising.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from procurement_engines import comparator
from procurement_engines.versioning import (
    compare_versions,
    create_initial_version,
    format_version,
    increment_version,
)
from procurement_kernel.domain.clock import SYSTEM_CLOCK, Clock
from procurement_kernel.domain.ids import IdGenerator, generate_id
from procurement_kernel.domain.revision import (
    ChangeSet,
    ChangeSignificance,
    ComparisonOptions,
    CreateRevisionInput,
    FieldChange,
    MergeConflict,
    MergeResult,
    Revision,
    RevisionComparison,
    RevisionConflict,
    RevisionFilter,
    RevisionOutcome,
    RevisionRef,
    RevisionSort,
    RevisionSortField,
    RevisionStatus,
    SortDirection,
    VersionedDocument,
    is_standard_revision_transition,
)
from procurement_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.revision")

INITIAL_CHANGE_SUMMARY = "Initial version"
NO_CHANGES_SUMMARY = "No changes"

_SUMMARY_PARTS: tuple[tuple[str, str], ...] = (
    ("fields_added", "field(s) added"),
    ("fields_removed", "field(s) removed"),
    ("fields_modified", "field(s) modified"),
    ("items_added", "item(s) added"),
    ("items_removed", "item(s) removed"),
    ("items_modified", "item(s) modified"),
)


@dataclass(frozen=True)
class RevisionEngineConfig:
    """
    Construction-time configuration for a RevisionEngine.

    Path lists are exact dotted paths (``header.supplier_id``,
    ``lines[L-1].unit_price``).
    """

    generate_id: IdGenerator = generate_id
    default_comparison_options: ComparisonOptions = field(default_factory=ComparisonOptions)
    field_labels: Mapping[str, str] = field(default_factory=dict)
    major_change_fields: tuple[str, ...] = ()
    minor_change_fields: tuple[str, ...] = ()
    ignore_fields: tuple[str, ...] = ()


class RevisionEngine:
    """
    Versioned-document lifecycle over immutable revision snapshots.

    Storage of documents and revisions is the caller's concern; the engine
    only computes the next values.
    """

    def __init__(
        self,
        config: RevisionEngineConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config or RevisionEngineConfig()
        self._clock = clock or SYSTEM_CLOCK

    @property
    def config(self) -> RevisionEngineConfig:
        return self._config

    # ------------------------------------------------------------------
    # Documents and revisions
    # ------------------------------------------------------------------

    def create_document(
        self,
        document_type: str,
        initial_data: Any,
        created_by: str,
        *,
        document_number: str | None = None,
        change_summary: str | None = None,
        tags: Sequence[str] = (),
        meta: Mapping[str, Any] | None = None,
    ) -> tuple[VersionedDocument, Revision]:
        """Create a document together with its first revision (``1.0.0``, draft)."""
        now = self._clock.now()
        document_id = self._config.generate_id("doc")
        revision_id = self._config.generate_id("rev")
        version = create_initial_version()

        with LogContext.bind(document_id=document_id, revision_id=revision_id):
            revision = Revision(
                id=revision_id,
                document_id=document_id,
                version=version,
                version_string=format_version(version),
                revision_number=1,
                status=RevisionStatus.DRAFT,
                data=initial_data,
                created_by=created_by,
                created_at=now,
                change_summary=change_summary or INITIAL_CHANGE_SUMMARY,
                tags=tuple(tags),
                meta=dict(meta or {}),
            )
            document = VersionedDocument(
                id=document_id,
                document_type=document_type,
                document_number=document_number,
                latest_revision_id=revision_id,
                latest_version=version,
                revision_ids=(revision_id,),
                revision_count=1,
                created_at=now,
                updated_at=now,
                meta=dict(meta or {}),
            )

            logger.info("document_created", extra={"document_type": document_type})
        return document, revision

    def create_revision(
        self,
        document: VersionedDocument,
        previous_revision: Revision,
        revision_input: CreateRevisionInput,
    ) -> tuple[VersionedDocument, Revision]:
        """Append a revision whose version is bumped from ``previous_revision``.

        The bump is ``revision_input.force_bump`` when given, otherwise
        ``suggest_version_bump`` over the changes from the previous data.
        """
        now = self._clock.now()
        revision_id = self._config.generate_id("rev")

        # comparator trace records inherit the binding
        with LogContext.bind(document_id=document.id, revision_id=revision_id):
            change_set = self.calculate_changes(previous_revision.data, revision_input.data)
            bump = (
                ChangeSignificance(revision_input.force_bump)
                if revision_input.force_bump is not None
                else self.suggest_version_bump(change_set)
            )
            version = increment_version(previous_revision.version, bump)

            revision = Revision(
                id=revision_id,
                document_id=document.id,
                version=version,
                version_string=format_version(version),
                revision_number=document.revision_count + 1,
                status=RevisionStatus(revision_input.status or RevisionStatus.DRAFT),
                data=revision_input.data,
                created_by=revision_input.created_by,
                created_by_name=revision_input.created_by_name,
                created_at=now,
                changes=change_set,
                change_summary=(
                    revision_input.change_summary or self.generate_change_summary(change_set)
                ),
                previous_revision_id=previous_revision.id,
                tags=tuple(revision_input.tags),
                meta=dict(revision_input.meta),
            )
            updated_document = replace(
                document,
                latest_revision_id=revision_id,
                latest_version=version,
                revision_ids=document.revision_ids + (revision_id,),
                revision_count=document.revision_count + 1,
                updated_at=now,
            )

            logger.info("revision_created", extra={
                "revision_number": revision.revision_number,
                "version": revision.version_string,
                "bump": bump.value,
                "forced": revision_input.force_bump is not None,
                "total_changes": change_set.stats.total_changes,
            })
        return updated_document, revision

    def create_revision_if_current(
        self,
        document: VersionedDocument,
        previous_revision: Revision,
        revision_input: CreateRevisionInput,
        *,
        expected_revision_count: int | None = None,
        expected_latest_revision_id: str | None = None,
    ) -> RevisionOutcome:
        """Append a revision only if the document head is what the caller last saw.

        Either expectation may be omitted; an omitted expectation is not
        checked.  A mismatch yields an outcome carrying a RevisionConflict
        and no new values.
        """
        reasons: list[str] = []
        if (
            expected_revision_count is not None
            and expected_revision_count != document.revision_count
        ):
            reasons.append(
                f"revision_count is {document.revision_count}, "
                f"expected {expected_revision_count}"
            )
        if (
            expected_latest_revision_id is not None
            and expected_latest_revision_id != document.latest_revision_id
        ):
            reasons.append(
                f"latest_revision_id is {document.latest_revision_id}, "
                f"expected {expected_latest_revision_id}"
            )

        if reasons:
            conflict = RevisionConflict(
                document_id=document.id,
                expected_revision_count=expected_revision_count,
                actual_revision_count=document.revision_count,
                expected_latest_revision_id=expected_latest_revision_id,
                actual_latest_revision_id=document.latest_revision_id,
                reason="; ".join(reasons),
            )
            with LogContext.bind(document_id=document.id):
                logger.warning("revision_conflict_detected", extra={"reason": conflict.reason})
            return RevisionOutcome(conflict=conflict)

        updated_document, revision = self.create_revision(
            document, previous_revision, revision_input,
        )
        return RevisionOutcome(document=updated_document, revision=revision)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _transition(
        self,
        revision: Revision,
        to_status: RevisionStatus,
        **updates: Any,
    ) -> Revision:
        statuses = {"from_status": revision.status.value, "to_status": to_status.value}
        with LogContext.bind(document_id=revision.document_id, revision_id=revision.id):
            if not is_standard_revision_transition(revision.status, to_status):
                logger.warning("revision_nonstandard_transition", extra=statuses)
            updated = replace(revision, status=to_status, **updates)
            logger.info("revision_transitioned", extra=statuses)
        return updated

    def publish_revision(
        self,
        document: VersionedDocument,
        revision: Revision,
        published_by: str | None = None,
    ) -> tuple[VersionedDocument, Revision]:
        """Publish ``revision`` and make it the document's current version."""
        now = self._clock.now()
        with LogContext.bind(document_id=document.id, revision_id=revision.id):
            published = self._transition(
                revision, RevisionStatus.PUBLISHED, published_at=now,
            )
            updated_document = replace(
                document,
                current_version=revision.version,
                current_version_string=revision.version_string,
                current_revision_id=revision.id,
                updated_at=now,
            )
            logger.info("revision_published", extra={
                "version": revision.version_string,
                "published_by": published_by,
            })
        return updated_document, published

    def approve_revision(self, revision: Revision, approved_by: str) -> Revision:
        return self._transition(
            revision,
            RevisionStatus.APPROVED,
            approved_by=approved_by,
            approved_at=self._clock.now(),
        )

    def submit_for_review(self, revision: Revision) -> Revision:
        return self._transition(revision, RevisionStatus.PENDING_REVIEW)

    def archive_revision(self, revision: Revision) -> Revision:
        return self._transition(revision, RevisionStatus.ARCHIVED)

    def supersede_revision(self, revision: Revision) -> Revision:
        return self._transition(revision, RevisionStatus.SUPERSEDED)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def calculate_changes(
        self,
        old_data: Any,
        new_data: Any,
        options: ComparisonOptions | None = None,
    ) -> ChangeSet:
        """Compare two snapshots with this engine's labels and path tables.

        ``options`` overlays the configured default comparison options.
        """
        return comparator.calculate_changes(
            old_data,
            new_data,
            self._config.default_comparison_options.merged_with(options),
            field_labels=self._config.field_labels,
            major_change_fields=self._config.major_change_fields,
            minor_change_fields=self._config.minor_change_fields,
            ignore_fields=self._config.ignore_fields,
        )

    def compare_revisions(
        self,
        from_revision: Revision,
        to_revision: Revision,
        options: ComparisonOptions | None = None,
    ) -> RevisionComparison:
        change_set = self.calculate_changes(from_revision.data, to_revision.data, options)
        return RevisionComparison(
            from_revision=_ref(from_revision),
            to_revision=_ref(to_revision),
            change_set=change_set,
            identical=change_set.stats.total_changes == 0,
            suggested_bump=self.suggest_version_bump(change_set),
        )

    @staticmethod
    def suggest_version_bump(change_set: ChangeSet) -> ChangeSignificance:
        if change_set.stats.major_changes > 0:
            return ChangeSignificance.MAJOR
        if change_set.stats.minor_changes > 0:
            return ChangeSignificance.MINOR
        return ChangeSignificance.PATCH

    @staticmethod
    def generate_change_summary(change_set: ChangeSet) -> str:
        """E.g. ``"2 field(s) added, 1 item(s) modified"``; ``"No changes"`` when empty."""
        parts = [
            f"{getattr(change_set.stats, counter)} {label}"
            for counter, label in _SUMMARY_PARTS
            if getattr(change_set.stats, counter) > 0
        ]
        return ", ".join(parts) if parts else NO_CHANGES_SUMMARY

    @staticmethod
    def get_field_change(change_set: ChangeSet, path: str) -> FieldChange | None:
        return comparator.get_field_change(change_set, path)

    @staticmethod
    def get_changes_for_path(change_set: ChangeSet, path_prefix: str) -> list[FieldChange]:
        return comparator.get_changes_for_path(change_set, path_prefix)

    # ------------------------------------------------------------------
    # Merge shapes
    # ------------------------------------------------------------------

    @staticmethod
    def build_merge_result(
        conflicts: Iterable[MergeConflict] = (),
        merged_data: Any = None,
        auto_resolved: Iterable[FieldChange] = (),
    ) -> MergeResult:
        """Shape a MergeResult; it succeeds exactly when there are no conflicts.

        No merge is performed here.  Callers that resolve conflicts
        themselves use this to report the outcome uniformly.
        """
        conflicts = tuple(conflicts)
        return MergeResult(
            success=not conflicts,
            conflicts=conflicts,
            auto_resolved=tuple(auto_resolved),
            merged_data=merged_data,
        )


def _ref(revision: Revision) -> RevisionRef:
    return RevisionRef(
        id=revision.id,
        version=revision.version,
        version_string=revision.version_string,
    )


# =========================================================================
# Revision queries
# =========================================================================


def _matches(revision: Revision, revision_filter: RevisionFilter) -> bool:
    if revision_filter.document_id and revision.document_id != revision_filter.document_id:
        return False
    if revision_filter.statuses and revision.status not in revision_filter.statuses:
        return False
    if revision_filter.created_by and revision.created_by != revision_filter.created_by:
        return False
    if revision_filter.created_after and revision.created_at < revision_filter.created_after:
        return False
    if revision_filter.created_before and revision.created_at > revision_filter.created_before:
        return False
    if revision_filter.tags and not set(revision_filter.tags).issubset(revision.tags):
        return False
    if (
        revision_filter.min_version is not None
        and compare_versions(revision.version, revision_filter.min_version) < 0
    ):
        return False
    if (
        revision_filter.max_version is not None
        and compare_versions(revision.version, revision_filter.max_version) > 0
    ):
        return False
    return True


def filter_revisions(
    revisions: Iterable[Revision],
    revision_filter: RevisionFilter,
) -> list[Revision]:
    """Revisions matching every set criterion; date bounds are inclusive."""
    return [r for r in revisions if _matches(r, revision_filter)]


_REVISION_SORT_KEYS = {
    RevisionSortField.VERSION: lambda r: r.version.sort_key,
    RevisionSortField.CREATED_AT: lambda r: r.created_at,
    RevisionSortField.REVISION_NUMBER: lambda r: r.revision_number,
}


def sort_revisions(revisions: Iterable[Revision], sort: RevisionSort) -> list[Revision]:
    """New list sorted on one key; ties keep their input order."""
    return sorted(
        revisions,
        key=_REVISION_SORT_KEYS[RevisionSortField(sort.field)],
        reverse=SortDirection(sort.direction) is SortDirection.DESC,
    )


def get_latest_published(revisions: Iterable[Revision]) -> Revision | None:
    """Published revision with the highest version, or None."""
    published = [r for r in revisions if r.status is RevisionStatus.PUBLISHED]
    if not published:
        return None
    return sort_revisions(
        published, RevisionSort(RevisionSortField.VERSION, SortDirection.DESC),
    )[0]


def get_revision_history(revisions: Iterable[Revision], document_id: str) -> list[Revision]:
    """One document's revisions, oldest first."""
    return sort_revisions(
        filter_revisions(revisions, RevisionFilter(document_id=document_id)),
        RevisionSort(RevisionSortField.REVISION_NUMBER),
    )
