"""
Unit tests for the Table facade.
"""

import threading
import time
import pytest
import pandas as pd
import sys
import os
from concurrent.futures import ThreadPoolExecutor

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tablegrammar.content.dimensions import DimensionIndex
from tablegrammar.content.cells import CellStore
from tablegrammar.arrange.spec import ArrangementSpec, Axis, MarginSpec
from tablegrammar.arrange.actions import MoveDimensionAction, TransposeAction
from tablegrammar.arrange.engine import ArrangementEngine
from tablegrammar.metadata import Metadata
from tablegrammar.render.base import RenderConfig, RenderResult
from tablegrammar.render.markdown import MarkdownRenderer
from tablegrammar.render.registry import default_registry
from tablegrammar.table import GridCache, RenderBatch, Table
from tablegrammar.theme.theme import Theme
from tablegrammar.errors import (
    ArrangementInfeasibleError, RenderError, UnknownAggregationError, UnknownFormatError
)
from configs.tables import (
    create_titanic_frame, create_titanic_store, survival_by_class_arrangement,
    titanic_metadata, titanic_theme,
)


class CountingEngine(ArrangementEngine):
    """Counts grid computations; slow enough for callers to overlap."""

    def __init__(self, delay=0.0):
        super().__init__()
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def arrange(self, store, spec):
        with self._lock:
            self.calls += 1
        time.sleep(self.delay)
        return super().arrange(store, spec)


class BrokenRenderer(MarkdownRenderer):
    format_name = "broken"
    aliases = ()

    def emit_structure(self, document):
        raise RuntimeError("boom")


@pytest.fixture
def store():
    index = DimensionIndex().declare("V1", ["A", "B"]).declare("V2", ["C", "D"])
    store = CellStore(index)
    for v1, v2, value in [("A", "C", 1), ("A", "D", 2), ("B", "C", 3), ("B", "D", 4)]:
        store.add({"V1": v1, "V2": v2}, value)
    return store


@pytest.fixture
def table(store):
    return Table(store, metadata=Metadata(title="Counts"))


class TestTableConstruction:
    def test_seals_store(self, store):
        Table(store)
        assert store.sealed

    def test_default_arrangement(self, table):
        assert table.arrangement == ArrangementSpec(rows=("V1",), columns=("V2",))
        assert table.theme == Theme()

    def test_infeasible_arrangement_fails_fast(self, store):
        with pytest.raises(ArrangementInfeasibleError):
            Table(store, arrangement=ArrangementSpec(rows=("V1",)))

    def test_unknown_margin_rule_fails_fast(self, store):
        spec = ArrangementSpec(rows=("V1",), columns=("V2",), margins=(MarginSpec("V1"),))
        with pytest.raises(UnknownAggregationError):
            Table(store, arrangement=spec)

    def test_from_frame(self):
        frame = pd.DataFrame({"V1": ["A", "B"], "V2": ["C", "C"], "n": [1, 2]})
        table = Table.from_frame(frame, ["V1", "V2"])
        assert table.grid.facets[0].values() == {(0, 0): 1, (1, 0): 2}


class TestTableDerivation:
    def test_with_arrangement_shares_store(self, table):
        swapped = table.with_arrangement(ArrangementSpec(rows=("V2",), columns=("V1",)))
        assert swapped.store is table.store
        assert swapped.metadata == table.metadata
        assert swapped.grid.facets[0].values() == {(0, 0): 1, (0, 1): 3, (1, 0): 2, (1, 1): 4}
        assert table.arrangement.rows == ("V1",)

    def test_with_theme_reuses_grid(self, table):
        grid = table.grid
        themed = table.with_theme(Theme().with_rule("cell", bold=True))
        assert themed.grid is grid
        assert "**1**" in themed.render("markdown").output
        assert "**1**" not in table.render("markdown").output

    def test_with_metadata(self, table):
        titled = table.with_metadata(Metadata(title="Other"))
        assert titled.render("md").output.startswith("### Other")
        assert table.render("md").output.startswith("### Counts")

    def test_rearrange(self, table):
        moved = table.rearrange(TransposeAction(), MoveDimensionAction("V1", Axis.FACETS))
        assert moved.arrangement.rows == ("V2",)
        assert moved.arrangement.facets == ("V1",)
        assert len(moved.grid) == 2

    def test_rearrange_not_applicable(self, table):
        with pytest.raises(ValueError):
            table.rearrange(MoveDimensionAction("V9", Axis.ROWS))


class TestGridCache:
    def test_computed_once_per_arrangement(self, store):
        engine = CountingEngine()
        table = Table(store, engine=engine)
        swapped = table.rearrange(TransposeAction())
        table.grid
        table.grid
        swapped.grid
        back = swapped.rearrange(TransposeAction())
        assert back.grid is table.grid
        assert engine.calls == 2

    def test_derived_before_first_grid_shares_cache(self, store):
        engine = CountingEngine()
        table = Table(store, engine=engine)
        themed = table.with_theme(Theme())
        titled = table.with_metadata(Metadata(title="Other"))
        themed.grid
        assert titled.grid is table.grid
        assert engine.calls == 1

    def test_empty_theme_kept(self, store):
        theme = Theme()
        assert Table(store, theme=theme).theme is theme

    def test_concurrent_access(self, store):
        engine = CountingEngine(delay=0.05)
        table = Table(store, engine=engine)
        with ThreadPoolExecutor(max_workers=8) as pool:
            grids = list(pool.map(lambda _: table.grid, range(8)))
        assert engine.calls == 1
        assert all(g is grids[0] for g in grids)

    def test_failed_computation_not_cached(self):
        cache = GridCache()
        spec = ArrangementSpec(rows=("V1",))

        def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            cache.get_or_compute(spec, fail)
        assert spec not in cache
        assert len(cache) == 0


class TestTableRendering:
    def test_render(self, table):
        result = table.render("markdown")
        assert isinstance(result, RenderResult)
        assert "| A | 1 | 2 |" in result.output

    def test_render_config(self, store):
        spec = ArrangementSpec(rows=("V1",), columns=("V2",), margins=(MarginSpec("V1", "sum"),))
        table = Table(store, arrangement=spec, render_config=RenderConfig(margin_label="Total"))
        assert "| Total | 4 | 6 |" in table.render("markdown").output
        assert list(table.to_frame().index) == ["A", "B", "Total"]

    def test_unknown_format(self, table):
        with pytest.raises(UnknownFormatError):
            table.render("docx")

    def test_renderer_failure_wrapped(self, store):
        registry = default_registry()
        registry.register("broken", BrokenRenderer)
        table = Table(store, renderers=registry)
        with pytest.raises(RenderError):
            table.render("broken")

    @pytest.mark.parametrize("max_workers", [None, 4])
    def test_render_many_isolates_failures(self, store, max_workers):
        registry = default_registry()
        registry.register("broken", BrokenRenderer)
        table = Table(store, renderers=registry)
        batch = table.render_many(["markdown", "broken", "html", "docx", "latex"],
                                  max_workers=max_workers)
        assert isinstance(batch, RenderBatch)
        assert not batch.ok
        assert list(batch.results) == ["markdown", "html", "latex"]
        assert isinstance(batch.errors["broken"], RenderError)
        assert isinstance(batch.errors["docx"], UnknownFormatError)
        assert batch["html"].output == table.render("html").output

    def test_to_frame(self, table):
        frame = table.to_frame()
        assert frame.loc["A", "D"] == 2

    def test_describe(self, table):
        desc = table.describe()
        assert "'Counts'" in desc
        assert "4 cells over V1, V2" in desc
        assert "rows: V1" in desc


class TestTitanicTable:
    @pytest.fixture
    def titanic(self):
        return Table(
            create_titanic_store(),
            arrangement=survival_by_class_arrangement(),
            theme=titanic_theme(),
            metadata=titanic_metadata(),
        )

    def test_counts(self):
        frame = create_titanic_frame()
        assert frame["n"].sum() == 2201
        store = create_titanic_store()
        assert len(store) == 32
        assert store.get({"Class": "1st", "Sex": "Female", "Age": "Adult", "Survived": "Yes"},
                         "n").value == 140

    def test_grand_total(self, titanic):
        grid = titanic.grid
        assert [f.facet_labels for f in grid] == [("Child",), ("Adult",)]
        totals = [
            c.value for c in grid.margin_cells()
            if c.assignment.aggregated == frozenset({"Class", "Survived"})
        ]
        assert sum(totals) == 2201
        titanic.engine.verify(titanic.store, grid)

    def test_render_all_formats(self, titanic):
        batch = titanic.render_many(["markdown", "html", "latex", "rtf"], max_workers=4)
        assert batch.ok
        assert "\\label{tab:titanic}" in batch["latex"].output
        assert 'id="titanic"' in batch["html"].output
        assert "**Age: Child**" in batch["markdown"].output
        # markdown cannot draw borders or colors
        assert {w.attribute for w in batch["markdown"].warnings} == {"border_top", "color"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
