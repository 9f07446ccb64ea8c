"""
Grid: the positioned layout computed from a Cell Store and an arrangement.

A Grid G = <facets> where each FacetGrid holds row and column label tuples and
a mapping (row_index, col_index) -> Cell. Grids hold references to the store's
cells, never copies. Margin labels use the ALL marker.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import pandas as pd

from tablegrammar.arrange.spec import ArrangementSpec
from tablegrammar.content.cells import ALL, Cell
from tablegrammar.content.dimensions import Label

LabelTuple = Tuple[Label, ...]
Position = Tuple[int, int]


def is_margin_labels(labels: LabelTuple) -> bool:
    return any(label is ALL for label in labels)


@dataclass(frozen=True)
class FacetGrid:
    """
    One independent sub-table.

    Attributes:
        facet_dims: Facet dimension names
        facet_labels: Labels fixing this facet (ALL for a facet margin)
        row_dims: Row dimension names, outermost first
        col_dims: Column dimension names, outermost first
        row_labels: Row label tuples in display order
        col_labels: Column label tuples in display order
        cells: Read-only (row_index, col_index) -> Cell
    """
    facet_dims: Tuple[str, ...]
    facet_labels: LabelTuple
    row_dims: Tuple[str, ...]
    col_dims: Tuple[str, ...]
    row_labels: Tuple[LabelTuple, ...]
    col_labels: Tuple[LabelTuple, ...]
    cells: Mapping[Position, Cell] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "cells", MappingProxyType(dict(self.cells)))

    @property
    def shape(self) -> Tuple[int, int]:
        return (len(self.row_labels), len(self.col_labels))

    @property
    def is_margin_facet(self) -> bool:
        return is_margin_labels(self.facet_labels)

    def cell_at(self, row: int, col: int) -> Optional[Cell]:
        return self.cells.get((row, col))

    def is_margin_row(self, row: int) -> bool:
        return is_margin_labels(self.row_labels[row])

    def is_margin_col(self, col: int) -> bool:
        return is_margin_labels(self.col_labels[col])

    def is_margin_position(self, row: int, col: int) -> bool:
        return self.is_margin_facet or self.is_margin_row(row) or self.is_margin_col(col)

    def rows(self) -> Iterator[List[Optional[Cell]]]:
        """Cells row by row, None where a position is empty."""
        n_cols = len(self.col_labels)
        for r in range(len(self.row_labels)):
            yield [self.cells.get((r, c)) for c in range(n_cols)]

    def data_cells(self) -> List[Cell]:
        return [cell for _, cell in sorted(self.cells.items()) if not cell.is_margin]

    def margin_cells(self) -> List[Cell]:
        return [cell for _, cell in sorted(self.cells.items()) if cell.is_margin]

    def values(self) -> Dict[Position, Any]:
        return {pos: cell.value for pos, cell in self.cells.items()}

    def position_of(self, cell: Cell) -> Optional[Position]:
        for pos, placed in self.cells.items():
            if placed is cell:
                return pos
        return None

    def to_frame(self, margin_label: str = "All") -> pd.DataFrame:
        """Values as a DataFrame with (Multi)Index rows and columns."""
        def display(labels):
            return tuple(margin_label if l is ALL else l for l in labels)

        row_index = _axis_index([display(l) for l in self.row_labels], self.row_dims)
        col_index = _axis_index([display(l) for l in self.col_labels], self.col_dims)
        data = [
            [cell.value if cell is not None else None for cell in row]
            for row in self.rows()
        ]
        return pd.DataFrame(data, index=row_index, columns=col_index, dtype=object)


def _axis_index(labels: List[LabelTuple], names: Tuple[str, ...]) -> pd.Index:
    if not names:
        return pd.Index([""] * len(labels))
    if len(names) == 1:
        return pd.Index([l[0] for l in labels], name=names[0], dtype=object)
    return pd.MultiIndex.from_tuples(labels, names=list(names))


@dataclass(frozen=True)
class Grid:
    """
    The complete positioned layout for one arrangement.

    Attributes:
        spec: The (resolved) arrangement this grid was computed from
        facets: Facet grids in facet order
    """
    spec: ArrangementSpec
    facets: Tuple[FacetGrid, ...]

    def __iter__(self) -> Iterator[FacetGrid]:
        return iter(self.facets)

    def __len__(self) -> int:
        return len(self.facets)

    @property
    def facet_dims(self) -> Tuple[str, ...]:
        return self.spec.facets

    def data_cells(self) -> List[Cell]:
        """Non-margin cells across all facets, in facet then position order."""
        return [cell for facet in self.facets for cell in facet.data_cells()]

    def data_values(self) -> List[Any]:
        return [cell.value for cell in self.data_cells()]

    def margin_cells(self) -> List[Cell]:
        return [cell for facet in self.facets for cell in facet.margin_cells()]

    def locate(self) -> Dict[Tuple[Any, str], Tuple[int, Position]]:
        """Map each placed cell key to its (facet_index, (row, col)) position."""
        located = {}
        for i, facet in enumerate(self.facets):
            for pos, cell in facet.cells.items():
                located[cell.key] = (i, pos)
        return located

    def cell_count(self) -> int:
        return sum(len(f.cells) for f in self.facets)
