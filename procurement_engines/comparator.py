"""
procurement_engines.comparator -- Deep structural comparison of document snapshots.

Responsibility:
    Compare two arbitrary nested snapshots (mappings, lists, scalars,
    dataclasses) and produce a ``ChangeSet`` of field-level and
    collection-level differences, each field change classified by
    significance (major / minor / patch).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by ``procurement_engines.revision``.

Invariants enforced:
    - ``calculate_changes(a, a)`` is empty for any snapshot ``a``.
    - ``ChangeSet.stats`` is derived from the change arrays only.
    - Lists are reconciled by element identity (``id``, else ``key``), never
      by position.  Elements without an identity are excluded from
      collection diffing.
    - Significance is an exact-path table lookup; unlisted paths are patch.

Failure modes:
    - Never raises for well-formed input.  Paths deeper than ``max_depth``
      are silently skipped, so a depth limit can under-report differences.

Path syntax:
    Mapping keys join with ``.`` (``header.supplier.name``); identified list
    elements append ``[<id>]`` (``lines[L-1].quantity``).  Depth is the
    number of ``.``-separated segments.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any

from procurement_engines.tracer import traced_engine
from procurement_kernel.domain.revision import (
    ChangeSet,
    ChangeSignificance,
    CollectionChange,
    CollectionChangeType,
    ComparisonOptions,
    FieldChange,
    FieldChangeType,
)
from procurement_kernel.logging_config import get_logger

logger = get_logger("engines.comparator")

_MISSING = object()


# ---------------------------------------------------------------------------
# Structural helpers
# ---------------------------------------------------------------------------


def _normalize(value: Any) -> Any:
    """Dataclass snapshots compare by their fields."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return value


def _is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality.

    Mappings compare by key set and values, lists and tuples element-wise,
    and a ``bool`` never equals a number even though Python says
    ``True == 1``.
    """
    a = _normalize(a)
    b = _normalize(b)
    if a is b:
        return True
    if a is None or b is None:
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_mapping(a) or _is_mapping(b):
        if not (_is_mapping(a) and _is_mapping(b)):
            return False
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)
    if _is_sequence(a) or _is_sequence(b):
        if not (_is_sequence(a) and _is_sequence(b)):
            return False
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    try:
        return bool(a == b)
    except TypeError:
        return False


def _item_identity(item: Any) -> Hashable | None:
    """Identity of a list element: its ``id``, else its ``key``.

    Any hashable value other than None, a bool or ``""`` qualifies
    (str, int, UUID, Decimal, ...).  Returns None when neither does.
    """
    item = _normalize(item)
    if not _is_mapping(item):
        return None
    for attr in ("id", "key"):
        identity = item.get(attr)
        if identity is None or isinstance(identity, bool) or identity == "":
            continue
        if not isinstance(identity, Hashable):
            continue
        try:
            hash(identity)
        except TypeError:  # e.g. a tuple holding a list
            continue
        return identity
    return None


def _join(base: str, key: Any) -> str:
    return f"{base}.{key}" if base else str(key)


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


@dataclass
class _Comparison:
    """Accumulator for one comparison run; discarded after ``ChangeSet.build``."""

    options: ComparisonOptions
    field_labels: Mapping[str, str]
    major_paths: frozenset[str]
    minor_paths: frozenset[str]
    ignore_paths: frozenset[str]
    collection_changes: list[CollectionChange] = field(default_factory=list)
    unchanged_paths: list[str] = field(default_factory=list)

    def significance(self, path: str) -> ChangeSignificance:
        if path in self.major_paths:
            return ChangeSignificance.MAJOR
        if path in self.minor_paths:
            return ChangeSignificance.MINOR
        return ChangeSignificance.PATCH

    def skipped(self, path: str) -> bool:
        if path in self.ignore_paths:
            return True
        max_depth = self.options.max_depth
        return bool(max_depth) and len(path.split(".")) > max_depth

    def field_change(
        self,
        path: str,
        change_type: FieldChangeType,
        old_value: Any = None,
        new_value: Any = None,
    ) -> FieldChange:
        return FieldChange(
            path=path,
            type=change_type,
            significance=self.significance(path),
            old_value=old_value,
            new_value=new_value,
            label=self.field_labels.get(path),
        )

    def compare_mappings(
        self,
        old: Mapping[str, Any],
        new: Mapping[str, Any],
        base_path: str,
    ) -> list[FieldChange]:
        """Compare two mappings; returns the field changes emitted at or below ``base_path``."""
        emitted: list[FieldChange] = []
        keys = list(old.keys()) + [k for k in new.keys() if k not in old]

        for key in keys:
            path = _join(base_path, key)
            if self.skipped(path):
                continue

            old_value = _normalize(old.get(key, _MISSING))
            new_value = _normalize(new.get(key, _MISSING))

            if _is_sequence(old_value) or _is_sequence(new_value):
                emitted.extend(self.compare_collections(old_value, new_value, path))
                continue

            if _is_mapping(old_value) and _is_mapping(new_value):
                emitted.extend(self.compare_mappings(old_value, new_value, path))
                continue

            if old_value is _MISSING:
                emitted.append(self.field_change(path, FieldChangeType.ADDED, new_value=new_value))
            elif new_value is _MISSING:
                emitted.append(self.field_change(path, FieldChangeType.REMOVED, old_value=old_value))
            elif not deep_equal(old_value, new_value):
                emitted.append(self.field_change(
                    path, FieldChangeType.MODIFIED, old_value=old_value, new_value=new_value,
                ))
            elif self.options.include_unchanged:
                self.unchanged_paths.append(path)

        return emitted

    def compare_collections(self, old: Any, new: Any, path: str) -> list[FieldChange]:
        """Reconcile two lists by element identity."""
        old_items = old if _is_sequence(old) else ()
        new_items = new if _is_sequence(new) else ()

        old_by_id: dict[Hashable, tuple[int, Any]] = {}
        new_by_id: dict[Hashable, tuple[int, Any]] = {}
        for index, item in enumerate(old_items):
            identity = _item_identity(item)
            if identity is not None:
                old_by_id[identity] = (index, item)
        for index, item in enumerate(new_items):
            identity = _item_identity(item)
            if identity is not None:
                new_by_id[identity] = (index, item)

        for identity, (index, item) in new_by_id.items():
            if identity not in old_by_id:
                self.collection_changes.append(CollectionChange(
                    path=path,
                    type=CollectionChangeType.ITEM_ADDED,
                    item_id=identity,
                    index=index,
                    new_item=item,
                ))

        for identity, (index, item) in old_by_id.items():
            if identity not in new_by_id:
                self.collection_changes.append(CollectionChange(
                    path=path,
                    type=CollectionChangeType.ITEM_REMOVED,
                    item_id=identity,
                    index=index,
                    old_item=item,
                ))

        emitted: list[FieldChange] = []
        for identity, (index, new_item) in new_by_id.items():
            if identity not in old_by_id:
                continue
            _, old_item = old_by_id[identity]
            if deep_equal(old_item, new_item):
                continue
            item_changes = self.compare_mappings(
                _normalize(old_item), _normalize(new_item), f"{path}[{identity}]",
            )
            self.collection_changes.append(CollectionChange(
                path=path,
                type=CollectionChangeType.ITEM_MODIFIED,
                item_id=identity,
                index=index,
                old_item=old_item,
                new_item=new_item,
                item_changes=tuple(item_changes),
            ))
            emitted.extend(item_changes)
        return emitted


@traced_engine("comparator", "1.0", fingerprint_fields=("old_data", "new_data", "options"))
def calculate_changes(
    old_data: Any,
    new_data: Any,
    options: ComparisonOptions | None = None,
    *,
    field_labels: Mapping[str, str] | None = None,
    major_change_fields: Sequence[str] = (),
    minor_change_fields: Sequence[str] = (),
    ignore_fields: Sequence[str] = (),
) -> ChangeSet:
    """Compute every difference between two snapshots.

    Args:
        old_data: Previous snapshot (mapping or dataclass; ``None`` = empty).
        new_data: Current snapshot.
        options: Per-call ignore paths, significance paths, depth limit and
            ``include_unchanged`` flag.
        field_labels: Human-readable labels keyed by exact path.
        major_change_fields: Paths whose changes are major.
        minor_change_fields: Paths whose changes are minor.
        ignore_fields: Paths skipped entirely (not recursed into).

    Returns:
        ChangeSet with stats derived from its change arrays.
    """
    options = options or ComparisonOptions()
    comparison = _Comparison(
        options=options,
        field_labels=field_labels or {},
        major_paths=frozenset(major_change_fields) | frozenset(options.major_change_paths or ()),
        minor_paths=frozenset(minor_change_fields) | frozenset(options.minor_change_paths or ()),
        ignore_paths=frozenset(ignore_fields) | frozenset(options.ignore_paths or ()),
    )

    old_root = _normalize(old_data)
    new_root = _normalize(new_data)
    field_changes = comparison.compare_mappings(
        old_root if _is_mapping(old_root) else {},
        new_root if _is_mapping(new_root) else {},
        "",
    )

    change_set = ChangeSet.build(
        field_changes,
        comparison.collection_changes,
        comparison.unchanged_paths,
    )
    logger.debug(
        "changes_calculated",
        extra={
            "total_changes": change_set.stats.total_changes,
            "field_changes": len(change_set.field_changes),
            "collection_changes": len(change_set.collection_changes),
        },
    )
    return change_set


def get_field_change(change_set: ChangeSet, path: str) -> FieldChange | None:
    """First field change at exactly ``path``."""
    return next((c for c in change_set.field_changes if c.path == path), None)


def get_changes_for_path(change_set: ChangeSet, path_prefix: str) -> list[FieldChange]:
    """Field changes at ``path_prefix`` or nested under it (``prefix.``)."""
    return [
        c for c in change_set.field_changes
        if c.path == path_prefix or c.path.startswith(f"{path_prefix}.")
    ]
