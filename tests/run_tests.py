#!/usr/bin/env python3
"""
Simple test runner without pytest dependency.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from collections import Counter

from tablegrammar.content.dimensions import DimensionIndex
from tablegrammar.content.cells import ALL, CellStore
from tablegrammar.arrange.spec import ArrangementSpec, MarginSpec
from tablegrammar.arrange.actions import TransposeAction
from tablegrammar.arrange.engine import ArrangementEngine
from tablegrammar.errors import ArrangementInfeasibleError, DuplicateCellError
from tablegrammar.metadata import Metadata
from tablegrammar.table import Table
from tablegrammar.theme.theme import Theme


def create_test_store():
    """The 2x2 example: (A,C)=1, (A,D)=2, (B,C)=3, (B,D)=4."""
    index = DimensionIndex().declare("V1", ["A", "B"]).declare("V2", ["C", "D"])
    store = CellStore(index)
    for v1, v2, value in [("A", "C", 1), ("A", "D", 2), ("B", "C", 3), ("B", "D", 4)]:
        store.add({"V1": v1, "V2": v2}, value)
    return store


def test_store_creation():
    """Test cell store construction."""
    store = create_test_store()
    assert len(store) == 4
    assert store.index.names == ["V1", "V2"]
    try:
        store.add({"V1": "A", "V2": "C"}, 9)
        raise AssertionError("duplicate cell accepted")
    except DuplicateCellError:
        pass
    print("✓ test_store_creation passed")


def test_two_by_two():
    """Test the basic 2x2 arrangement."""
    grid = ArrangementEngine().arrange(
        create_test_store(), ArrangementSpec(rows=("V1",), columns=("V2",)))
    facet = grid.facets[0]
    assert facet.row_labels == (("A",), ("B",))
    assert facet.values() == {(0, 0): 1, (0, 1): 2, (1, 0): 3, (1, 1): 4}
    print("✓ test_two_by_two passed")


def test_swap():
    """Test swapping rows and columns."""
    grid = ArrangementEngine().arrange(
        create_test_store(), ArrangementSpec(rows=("V2",), columns=("V1",)))
    assert grid.facets[0].values() == {(0, 0): 1, (0, 1): 3, (1, 0): 2, (1, 1): 4}
    print("✓ test_swap passed")


def test_margin():
    """Test row margin synthesis."""
    spec = ArrangementSpec(rows=("V1",), columns=("V2",), margins=(MarginSpec("V1", "sum"),))
    facet = ArrangementEngine().arrange(create_test_store(), spec).facets[0]
    assert facet.row_labels[2] == (ALL,)
    assert facet.cell_at(2, 0).value == 4
    assert facet.cell_at(2, 1).value == 6
    print("✓ test_margin passed")


def test_content_preservation():
    """Test that re-arranging keeps every value."""
    store = create_test_store()
    engine = ArrangementEngine()
    expected = Counter(c.value for c in store.data_cells())
    for spec in [ArrangementSpec(rows=("V1",), columns=("V2",)),
                 ArrangementSpec(rows=("V2",), columns=("V1",)),
                 ArrangementSpec(rows=("V1",), facets=("V2",))]:
        assert Counter(engine.arrange(store, spec).data_values()) == expected
    print("✓ test_content_preservation passed")


def test_infeasible():
    """Test that partial arrangements are rejected."""
    try:
        ArrangementEngine().arrange(create_test_store(), ArrangementSpec(rows=("V1",)))
        raise AssertionError("infeasible arrangement accepted")
    except ArrangementInfeasibleError:
        pass
    print("✓ test_infeasible passed")


def test_render_formats():
    """Test rendering one table to every built-in format."""
    table = Table(create_test_store(), metadata=Metadata(title="Counts"))
    table = table.with_theme(Theme().with_rule("header", bold=True))
    batch = table.render_many(["markdown", "html", "latex", "rtf"])
    assert batch.ok
    assert "| **A** | 1 | 2 |" in batch["markdown"].output
    assert batch["latex"].output == table.render("tex").output
    print("✓ test_render_formats passed")


def test_rearrange():
    """Test re-arranging a table."""
    table = Table(create_test_store())
    transposed = table.rearrange(TransposeAction())
    assert transposed.arrangement.rows == ("V2",)
    assert transposed.store is table.store
    print("✓ test_rearrange passed")


def run_all_tests():
    """Run all tests."""
    print("Running TableGrammar tests...\n")

    tests = [
        test_store_creation,
        test_two_by_two,
        test_swap,
        test_margin,
        test_content_preservation,
        test_infeasible,
        test_render_formats,
        test_rearrange,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except AssertionError as e:
            print(f"✗ {test.__name__} FAILED: {e}")
            failed += 1
        except Exception as e:
            print(f"✗ {test.__name__} ERROR: {e}")
            failed += 1

    print(f"\n{'='*40}")
    print(f"Results: {passed} passed, {failed} failed")
    print(f"{'='*40}")

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
