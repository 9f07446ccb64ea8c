"""
Arrangement Engine: computes a Grid from a Cell Store and an arrangement.

The computation is content-preserving. Every non-margin cell of the store is
placed at exactly one (facet, row, column) position; the only cells it creates
are margin cells, synthesized through registered aggregation rules.

Steps:
1. Validate that the axes partition the declared dimensions
2. Enumerate facet label tuples (Cartesian product, outermost slowest)
3. Enumerate row and column label tuples the same way, with margin labels
4. Place each non-margin cell of the facet at its (row, col) position
5. Synthesize margin cells at the positions reserved for them
"""

import itertools
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from tablegrammar.arrange.grid import FacetGrid, Grid, LabelTuple, Position
from tablegrammar.arrange.spec import SUMMARIZER, ArrangementSpec, Axis, MarginPosition
from tablegrammar.content.aggregation import AggregationRegistry
from tablegrammar.content.cells import ALL, Cell, CellStore, DimensionAssignment
from tablegrammar.content.dimensions import Label
from tablegrammar.errors import AmbiguousPlacementError, ArrangementInfeasibleError

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Configuration for the arrangement engine."""
    max_workers: int = 1
    summarizer_axis: Axis = Axis.COLUMNS


@dataclass(frozen=True)
class _MarginPlan:
    """Margin sets closed under union, with the rule chosen for each set."""
    rules: Dict[FrozenSet[str], Optional[str]]
    positions: Dict[str, MarginPosition]

    @property
    def sets(self) -> Set[FrozenSet[str]]:
        return set(self.rules)

    def allowed_on(self, dims: Sequence[str]) -> Set[FrozenSet[str]]:
        """Aggregate-label subsets that may occur on an axis holding `dims`."""
        axis = frozenset(dims)
        return {frozenset()} | {s & axis for s in self.rules}

    def fillable(self, aggregated: FrozenSet[str]) -> bool:
        """True if a position aggregating over `aggregated` can hold a cell."""
        return not aggregated or aggregated in self.rules

    def layout(self, fixed: FrozenSet[str], row_sets: List[FrozenSet[str]],
               col_sets: List[FrozenSet[str]]) -> Tuple[List[int], List[int]]:
        """
        Indices of the rows and columns that meet at least one fillable
        position once the facet already aggregates over `fixed`.
        """
        rows = [r for r, rs in enumerate(row_sets)
                if any(self.fillable(fixed | rs | cs) for cs in col_sets)]
        cols = [c for c, cs in enumerate(col_sets)
                if any(self.fillable(fixed | rs | cs) for rs in row_sets)]
        return rows, cols


class ArrangementEngine:
    """
    Computes Grids. Stateless apart from its aggregation registry and config,
    so one engine may serve any number of stores and arrangements concurrently.
    """

    def __init__(self, aggregations: AggregationRegistry = None,
                 config: EngineConfig = None):
        self.aggregations = aggregations or AggregationRegistry()
        self.config = config or EngineConfig()

    def resolve_spec(self, store: CellStore, spec: ArrangementSpec) -> ArrangementSpec:
        """
        Validate `spec` against the store and place the summarizer axis.

        When the store holds several summarizers and the arrangement does not
        place SUMMARIZER, it is appended innermost on the configured axis.
        """
        spec.validate(store.index)
        summarizers = store.summarizer_ids
        if SUMMARIZER not in spec.placed and len(summarizers) > 1:
            axis = self.config.summarizer_axis
            spec = spec.with_axes(**{axis.value: spec.axis(axis) + (SUMMARIZER,)})
        override = spec.override_for(SUMMARIZER)
        if override is not None and (
                len(override) != len(summarizers) or set(override) != set(summarizers)):
            raise ArrangementInfeasibleError(
                f"Summarizer order {list(override)} must be a permutation of {summarizers}"
            )
        for margin in spec.margins:
            if margin.rule is not None:
                self.aggregations.get(margin.rule)
            else:
                for sid in summarizers:
                    self.aggregations.get(sid)
        return spec

    def arrange(self, store: CellStore, spec: ArrangementSpec) -> Grid:
        """Compute the Grid for `spec` over `store`."""
        spec = self.resolve_spec(store, spec)
        plan = self._plan_margins(spec)

        facet_tuples = self._axis_tuples(store, spec, spec.facets, plan)
        row_tuples = self._axis_tuples(store, spec, spec.rows, plan)
        col_tuples = self._axis_tuples(store, spec, spec.columns, plan)

        # Margin rows and columns that no planned margin set fills in a facet
        # are dropped from it, as are facets left without any position.
        row_sets = [_aggregated(spec.rows, labels) for labels in row_tuples]
        col_sets = [_aggregated(spec.columns, labels) for labels in col_tuples]
        layouts = []
        for facet_labels in facet_tuples:
            rows, cols = plan.layout(_aggregated(spec.facets, facet_labels), row_sets, col_sets)
            if rows and cols:
                layouts.append((facet_labels,
                                [row_tuples[r] for r in rows],
                                [col_tuples[c] for c in cols]))

        def build(layout):
            facet_labels, rows, cols = layout
            return self._build_facet(store, spec, plan, facet_labels, rows, cols)

        if self.config.max_workers > 1 and len(layouts) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                facets = tuple(pool.map(build, layouts))
        else:
            facets = tuple(build(layout) for layout in layouts)

        grid = Grid(spec=spec, facets=facets)
        logger.info(
            f"Arranged {spec.spec_id} {spec.describe()}: {len(facets)} facets, "
            f"{grid.cell_count()} cells ({len(grid.margin_cells())} margin)"
        )
        return grid

    def verify(self, store: CellStore, grid: Grid):
        """
        Check that every non-margin cell of `store` is placed exactly once.

        Raises:
            AmbiguousPlacementError: if a cell is missing or placed twice
        """
        placed: Dict[Tuple[DimensionAssignment, str], int] = {}
        for facet in grid.facets:
            for cell in facet.data_cells():
                placed[cell.key] = placed.get(cell.key, 0) + 1
        for cell in store.data_cells():
            count = placed.pop(cell.key, 0)
            if count != 1:
                raise AmbiguousPlacementError(
                    f"Cell ({cell.assignment.describe()}; {cell.summarizer_id}) "
                    f"placed {count} times"
                )
        if placed:
            raise AmbiguousPlacementError(f"Grid holds {len(placed)} cells not in the store")

    def _plan_margins(self, spec: ArrangementSpec) -> _MarginPlan:
        # Union closure: row and column margins together imply their cross total.
        requested = [m.dimension_set for m in spec.margins]
        closure: Set[FrozenSet[str]] = set(requested)
        frontier = set(closure)
        while frontier:
            new = {a | b for a in frontier for b in closure} - closure
            closure |= new
            frontier = new

        rules: Dict[FrozenSet[str], Optional[str]] = {}
        for dims in closure:
            exact = [m for m in spec.margins if m.dimension_set == dims]
            if exact:
                rules[dims] = exact[0].rule
            else:
                rules[dims] = next(m.rule for m in spec.margins if m.dimension_set <= dims)

        positions: Dict[str, MarginPosition] = {}
        for margin in spec.margins:
            for name in margin.dimensions:
                positions.setdefault(name, margin.position)
        return _MarginPlan(rules=rules, positions=positions)

    def _levels(self, store: CellStore, spec: ArrangementSpec, name: str) -> Tuple[Label, ...]:
        override = spec.override_for(name)
        if override is not None:
            return override
        if name == SUMMARIZER:
            return tuple(store.summarizer_ids)
        return store.index[name].levels

    def _axis_tuples(self, store: CellStore, spec: ArrangementSpec,
                     dims: Sequence[str], plan: _MarginPlan) -> List[LabelTuple]:
        extended = []
        for name in dims:
            levels = list(self._levels(store, spec, name))
            position = plan.positions.get(name)
            if position is MarginPosition.TRAILING:
                levels = levels + [ALL]
            elif position is MarginPosition.LEADING:
                levels = [ALL] + levels
            extended.append(levels)

        allowed = plan.allowed_on(dims)
        tuples = []
        for labels in itertools.product(*extended):
            aggregated = frozenset(d for d, l in zip(dims, labels) if l is ALL)
            if aggregated in allowed:
                tuples.append(tuple(labels))
        return tuples

    def _build_facet(self, store: CellStore, spec: ArrangementSpec, plan: _MarginPlan,
                     facet_labels: LabelTuple, row_tuples: List[LabelTuple],
                     col_tuples: List[LabelTuple]) -> FacetGrid:
        row_index = {labels: i for i, labels in enumerate(row_tuples)}
        col_index = {labels: i for i, labels in enumerate(col_tuples)}
        cells: Dict[Position, Cell] = {}

        facet_fixed = dict(zip(spec.facets, facet_labels))
        facet_aggregated = frozenset(d for d, l in facet_fixed.items() if l is ALL)

        if not facet_aggregated:
            partial, sid = _split_summarizer(facet_fixed)
            for cell in store.cells_matching(partial, summarizer_id=sid, include_margins=False):
                row = row_index[_labels_of(cell, spec.rows)]
                col = col_index[_labels_of(cell, spec.columns)]
                if (row, col) in cells:
                    raise AmbiguousPlacementError(
                        f"Cells ({cells[(row, col)].assignment.describe()}) and "
                        f"({cell.assignment.describe()}) both resolve to row {row}, "
                        f"column {col} of facet {facet_labels!r}"
                    )
                cells[(row, col)] = cell

        summarizers = store.summarizer_ids
        if plan.rules and summarizers:
            for r, row_labels in enumerate(row_tuples):
                row_fixed = dict(zip(spec.rows, row_labels))
                for c, col_labels in enumerate(col_tuples):
                    fixed = dict(facet_fixed)
                    fixed.update(row_fixed)
                    fixed.update(zip(spec.columns, col_labels))
                    aggregated = frozenset(d for d, l in fixed.items() if l is ALL)
                    if not aggregated or aggregated not in plan.rules:
                        continue
                    cells[(r, c)] = self._margin_cell(
                        store, fixed, aggregated, plan.rules[aggregated], summarizers
                    )

        return FacetGrid(
            facet_dims=spec.facets,
            facet_labels=tuple(facet_labels),
            row_dims=spec.rows,
            col_dims=spec.columns,
            row_labels=tuple(row_tuples),
            col_labels=tuple(col_tuples),
            cells=cells,
        )

    def _margin_cell(self, store: CellStore, fixed: Dict[str, Label],
                     aggregated: FrozenSet[str], rule: Optional[str],
                     summarizers: List[str]) -> Cell:
        labels, sid = _split_summarizer(fixed)
        if sid is None:
            sid = summarizers[0]
        assignment = DimensionAssignment(labels)

        supplied = store.get(assignment, sid)
        if supplied is not None:
            return supplied

        partial = {d: l for d, l in labels.items() if l is not ALL}
        values = store.cells_matching(partial, summarizer_id=sid, include_margins=False).values()
        key = rule if rule is not None else sid
        value = self.aggregations.aggregate(key, values)
        logger.debug(
            f"Margin over {sorted(aggregated)} at ({assignment.describe()}; {sid}): "
            f"{key} of {len(values)} values = {value!r}"
        )
        return Cell(assignment, sid, value, is_margin=True)


def _labels_of(cell: Cell, dims: Sequence[str]) -> LabelTuple:
    return tuple(
        cell.summarizer_id if name == SUMMARIZER else cell.assignment[name]
        for name in dims
    )


def _aggregated(dims: Sequence[str], labels: LabelTuple) -> FrozenSet[str]:
    return frozenset(d for d, l in zip(dims, labels) if l is ALL)


def _split_summarizer(fixed: Dict[str, Label]) -> Tuple[Dict[str, Label], Optional[str]]:
    labels = {d: l for d, l in fixed.items() if d != SUMMARIZER}
    return labels, fixed.get(SUMMARIZER)
