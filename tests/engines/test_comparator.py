"""
Tests for the deep structural comparator.

Tests cover:
- Field-level added / removed / modified detection over nested mappings
- Collection reconciliation by element identity (id, then key)
- Ignore paths, depth limit, include_unchanged
- Significance table lookup and labels
- Stats derived from the change arrays
- deep_equal semantics
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import pytest

from procurement_engines.comparator import (
    calculate_changes,
    deep_equal,
    get_changes_for_path,
    get_field_change,
)
from procurement_kernel.domain.revision import (
    ChangeSignificance,
    ChangeStats,
    CollectionChangeType,
    ComparisonOptions,
    FieldChangeType,
)


def _assert_stats_consistent(change_set):
    assert change_set.stats == ChangeStats.from_changes(
        change_set.field_changes, change_set.collection_changes,
    )


# =========================================================================
# Field changes
# =========================================================================


class TestFieldChanges:

    def test_identical_snapshots_produce_no_changes(self):
        snapshot = {"supplier_id": "SUP-1", "header": {"buyer": "alice"}, "lines": [{"id": 1}]}
        change_set = calculate_changes(snapshot, dict(snapshot))
        assert change_set.is_empty
        assert change_set.field_changes == ()
        assert change_set.collection_changes == ()

    def test_added_removed_modified(self):
        change_set = calculate_changes(
            {"a": 1, "b": 2},
            {"a": 5, "c": 3},
        )
        by_path = {c.path: c for c in change_set.field_changes}
        assert by_path["a"].type == FieldChangeType.MODIFIED
        assert (by_path["a"].old_value, by_path["a"].new_value) == (1, 5)
        assert by_path["b"].type == FieldChangeType.REMOVED
        assert by_path["b"].old_value == 2
        assert by_path["c"].type == FieldChangeType.ADDED
        assert by_path["c"].new_value == 3
        assert change_set.stats.fields_added == 1
        assert change_set.stats.fields_removed == 1
        assert change_set.stats.fields_modified == 1
        _assert_stats_consistent(change_set)

    def test_key_order_old_then_new(self):
        change_set = calculate_changes({"b": 1, "a": 1}, {"a": 2, "b": 2, "c": 1})
        assert [c.path for c in change_set.field_changes] == ["b", "a", "c"]

    def test_nested_paths_are_dotted(self):
        change_set = calculate_changes(
            {"header": {"ship_to": {"city": "Leeds"}}},
            {"header": {"ship_to": {"city": "York"}}},
        )
        assert [c.path for c in change_set.field_changes] == ["header.ship_to.city"]

    def test_none_value_is_present(self):
        change_set = calculate_changes({"notes": None}, {})
        (change,) = change_set.field_changes
        assert change.type == FieldChangeType.REMOVED
        assert change.old_value is None

    def test_mapping_replaced_by_scalar_is_modified(self):
        change_set = calculate_changes({"ship_to": {"city": "Leeds"}}, {"ship_to": "TBD"})
        (change,) = change_set.field_changes
        assert change.path == "ship_to"
        assert change.type == FieldChangeType.MODIFIED

    def test_bool_is_not_equal_to_int(self):
        change_set = calculate_changes({"urgent": 1}, {"urgent": True})
        assert change_set.stats.fields_modified == 1

    def test_equal_decimals_are_unchanged(self):
        assert calculate_changes({"price": Decimal("1.50")}, {"price": Decimal("1.5")}).is_empty

    def test_none_snapshots_compare_as_empty(self):
        change_set = calculate_changes(None, {"a": 1})
        assert change_set.stats.fields_added == 1

    def test_dataclass_snapshots(self):
        @dataclass(frozen=True)
        class Header:
            buyer: str
            quantity: int

        change_set = calculate_changes(Header("alice", 10), Header("alice", 15))
        (change,) = change_set.field_changes
        assert change.path == "quantity"


# =========================================================================
# Collections
# =========================================================================


class TestCollectionChanges:

    def test_reconciled_by_identity_not_position(self):
        old = {"lines": [{"id": 1, "name": "A"}]}
        new = {"lines": [{"id": 1, "name": "B"}, {"id": 2, "name": "C"}]}

        change_set = calculate_changes(old, new)

        types = [(c.type, c.item_id) for c in change_set.collection_changes]
        assert types == [
            (CollectionChangeType.ITEM_ADDED, 2),
            (CollectionChangeType.ITEM_MODIFIED, 1),
        ]
        modified = change_set.collection_changes[1]
        (item_change,) = modified.item_changes
        assert item_change.path == "lines[1].name"
        assert (item_change.old_value, item_change.new_value) == ("A", "B")
        assert change_set.field_changes == (item_change,)
        assert change_set.stats.items_added == 1
        assert change_set.stats.items_modified == 1
        assert change_set.stats.total_changes == 3
        _assert_stats_consistent(change_set)

    def test_reordering_alone_is_not_a_change(self):
        old = {"lines": [{"id": "L-1", "qty": 1}, {"id": "L-2", "qty": 2}]}
        new = {"lines": [{"id": "L-2", "qty": 2}, {"id": "L-1", "qty": 1}]}
        assert calculate_changes(old, new).is_empty

    def test_removed_item_carries_old_index(self):
        old = {"lines": [{"id": "L-1"}, {"id": "L-2"}]}
        new = {"lines": [{"id": "L-1"}]}
        (change,) = calculate_changes(old, new).collection_changes
        assert change.type == CollectionChangeType.ITEM_REMOVED
        assert change.item_id == "L-2"
        assert change.index == 1
        assert change.old_item == {"id": "L-2"}

    def test_emission_order_added_removed_modified(self):
        old = {"lines": [{"id": "a", "v": 1}, {"id": "b"}]}
        new = {"lines": [{"id": "a", "v": 2}, {"id": "c"}]}
        types = [c.type for c in calculate_changes(old, new).collection_changes]
        assert types == [
            CollectionChangeType.ITEM_ADDED,
            CollectionChangeType.ITEM_REMOVED,
            CollectionChangeType.ITEM_MODIFIED,
        ]

    def test_key_used_when_no_id(self):
        old = {"attrs": [{"key": "color", "value": "red"}]}
        new = {"attrs": [{"key": "color", "value": "blue"}]}
        change_set = calculate_changes(old, new)
        assert change_set.collection_changes[0].item_id == "color"
        assert change_set.field_changes[0].path == "attrs[color].value"

    def test_elements_without_identity_are_excluded(self):
        change_set = calculate_changes({"tags": ["rush"]}, {"tags": ["rush", "fragile"]})
        assert change_set.is_empty

    def test_uuid_identities_are_reconciled(self):
        old = {"lines": [{"id": UUID(int=1), "qty": 1}]}
        new = {"lines": [
            {"id": UUID(int=1), "qty": 2},
            {"id": UUID(int=2), "qty": 5},
        ]}

        change_set = calculate_changes(old, new)

        types = [(c.type, c.item_id) for c in change_set.collection_changes]
        assert types == [
            (CollectionChangeType.ITEM_ADDED, UUID(int=2)),
            (CollectionChangeType.ITEM_MODIFIED, UUID(int=1)),
        ]
        (item_change,) = change_set.field_changes
        assert item_change.path == f"lines[{UUID(int=1)}].qty"
        assert change_set.stats.items_added == 1
        assert change_set.stats.items_modified == 1
        _assert_stats_consistent(change_set)

    @pytest.mark.parametrize("identity", [1.5, Decimal("7.25"), ("PO-1", 10)])
    def test_any_hashable_identity(self, identity):
        change_set = calculate_changes(
            {"lines": [{"id": identity, "qty": 1}]},
            {"lines": [{"id": identity, "qty": 3}]},
        )
        assert change_set.stats.items_modified == 1
        assert change_set.collection_changes[0].item_id == identity

    @pytest.mark.parametrize("identity", [None, "", True, ["L-1"], ("L", ["x"])])
    def test_unusable_identity_is_excluded(self, identity):
        change_set = calculate_changes(
            {"lines": [{"id": identity, "qty": 1}]},
            {"lines": [{"id": identity, "qty": 3}]},
        )
        assert change_set.is_empty

    def test_list_added_from_nothing(self):
        change_set = calculate_changes({}, {"lines": [{"id": 1}, {"id": 2}]})
        assert change_set.stats.items_added == 2

    def test_duplicate_identity_last_wins(self):
        old = {"lines": [{"id": 1, "v": "first"}, {"id": 1, "v": "second"}]}
        new = {"lines": [{"id": 1, "v": "second"}]}
        assert calculate_changes(old, new).is_empty

    def test_nested_item_fields_use_significance_table(self):
        change_set = calculate_changes(
            {"lines": [{"id": "L-1", "unit_price": 10}]},
            {"lines": [{"id": "L-1", "unit_price": 12}]},
            major_change_fields=("lines[L-1].unit_price",),
        )
        assert change_set.field_changes[0].significance == ChangeSignificance.MAJOR
        assert change_set.stats.major_changes == 1


# =========================================================================
# Options
# =========================================================================


class TestOptions:

    def test_ignore_fields_skip_whole_subtree(self):
        change_set = calculate_changes(
            {"meta": {"touched": 1}, "a": 1},
            {"meta": {"touched": 2, "by": "x"}, "a": 1},
            ignore_fields=("meta",),
        )
        assert change_set.is_empty

    def test_ignore_paths_from_options(self):
        change_set = calculate_changes(
            {"updated_at": "t1"}, {"updated_at": "t2"},
            ComparisonOptions(ignore_paths=("updated_at",)),
        )
        assert change_set.is_empty

    def test_max_depth_skips_deeper_paths(self):
        old = {"a": 1, "h": {"b": 1}}
        new = {"a": 2, "h": {"b": 2}}
        change_set = calculate_changes(old, new, ComparisonOptions(max_depth=1))
        assert [c.path for c in change_set.field_changes] == ["a"]

    @pytest.mark.parametrize("max_depth", [None, 0])
    def test_max_depth_unset_is_unlimited(self, max_depth):
        old = {"h": {"i": {"j": 1}}}
        new = {"h": {"i": {"j": 2}}}
        change_set = calculate_changes(old, new, ComparisonOptions(max_depth=max_depth))
        assert change_set.stats.fields_modified == 1

    def test_include_unchanged_records_paths_without_counting(self):
        change_set = calculate_changes(
            {"a": 1, "b": 2}, {"a": 1, "b": 3},
            ComparisonOptions(include_unchanged=True),
        )
        assert change_set.unchanged_paths == ("a",)
        assert change_set.stats.total_changes == 1

    def test_unchanged_paths_empty_by_default(self):
        assert calculate_changes({"a": 1}, {"a": 1}).unchanged_paths == ()


# =========================================================================
# Significance and labels
# =========================================================================


class TestSignificance:

    def test_unlisted_paths_are_patch(self):
        (change,) = calculate_changes({"notes": "x"}, {"notes": "y"}).field_changes
        assert change.significance == ChangeSignificance.PATCH

    def test_major_wins_over_minor(self):
        (change,) = calculate_changes(
            {"qty": 1}, {"qty": 2},
            ComparisonOptions(minor_change_paths=("qty",)),
            major_change_fields=("qty",),
        ).field_changes
        assert change.significance == ChangeSignificance.MAJOR

    def test_minor_from_options(self):
        (change,) = calculate_changes(
            {"buyer": "a"}, {"buyer": "b"},
            ComparisonOptions(minor_change_paths=("buyer",)),
        ).field_changes
        assert change.significance == ChangeSignificance.MINOR

    def test_exact_path_only(self):
        (change,) = calculate_changes(
            {"header": {"qty": 1}}, {"header": {"qty": 2}},
            major_change_fields=("qty",),
        ).field_changes
        assert change.significance == ChangeSignificance.PATCH

    def test_labels(self):
        (change,) = calculate_changes(
            {"supplier_id": "S1"}, {"supplier_id": "S2"},
            field_labels={"supplier_id": "Supplier"},
        ).field_changes
        assert change.label == "Supplier"


# =========================================================================
# Queries and equality
# =========================================================================


class TestQueries:

    @pytest.fixture
    def change_set(self):
        return calculate_changes(
            {"header": {"buyer": "a", "ship_to": "x"}, "headerless": 1},
            {"header": {"buyer": "b", "ship_to": "y"}, "headerless": 2},
        )

    def test_get_field_change(self, change_set):
        change = get_field_change(change_set, "header.buyer")
        assert change.new_value == "b"
        assert get_field_change(change_set, "header") is None

    def test_get_changes_for_path_matches_children_not_siblings(self, change_set):
        paths = [c.path for c in get_changes_for_path(change_set, "header")]
        assert paths == ["header.buyer", "header.ship_to"]


class TestDeepEqual:

    def test_mappings_ignore_key_order(self):
        assert deep_equal({"a": 1, "b": [1, 2]}, {"b": [1, 2], "a": 1})

    def test_list_and_tuple_compare_elementwise(self):
        assert deep_equal([1, {"x": 2}], (1, {"x": 2}))

    def test_different_key_sets(self):
        assert not deep_equal({"a": 1}, {"a": 1, "b": None})

    def test_bool_vs_number(self):
        assert not deep_equal(True, 1)
        assert not deep_equal(0, False)
        assert deep_equal(False, False)

    def test_none(self):
        assert deep_equal(None, None)
        assert not deep_equal(None, 0)


def test_comparison_is_traced(captured_logs):
    calculate_changes({"a": 1}, {"a": 2})
    traces = [r for r in captured_logs() if r["message"] == "PROCUREMENT_ENGINE_TRACE"]
    assert traces
    assert traces[-1]["engine_name"] == "comparator"
    assert len(traces[-1]["input_fingerprint"]) == 16
