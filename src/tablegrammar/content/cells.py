"""
Cell Store: the summarized content of a table.

A Cell c = <assignment, summarizer_id, value, is_margin> carries one label per
declared dimension. Within one store the pair (assignment, summarizer_id) is
unique. Margin cells use the ALL marker for the dimensions they aggregate over.
"""

from dataclasses import dataclass
from typing import (
    Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Sequence, Tuple
)

import pandas as pd

from tablegrammar.content.dimensions import DimensionIndex, Label
from tablegrammar.errors import (
    DimensionMismatchError, DuplicateCellError, SealedStoreError, UnknownDimensionError
)

DEFAULT_SUMMARIZER = "value"


class _AllLevels:
    """Marker label: the cell aggregates over every level of the dimension."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "ALL"

    def __reduce__(self):
        return (_AllLevels, ())


class _NoData:
    """Sentinel value of a margin cell whose aggregation input was empty."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "NO_DATA"

    def __bool__(self):
        return False

    def __reduce__(self):
        return (_NoData, ())


ALL = _AllLevels()
NO_DATA = _NoData()


@dataclass(frozen=True)
class DimensionAssignment:
    """
    Mapping from dimension name to label.

    Stored as name-sorted pairs so that equal assignments hash equally
    regardless of construction order.
    """
    entries: Tuple[Tuple[str, Label], ...]

    def __post_init__(self):
        entries = self.entries
        if isinstance(entries, Mapping):
            entries = entries.items()
        object.__setattr__(self, "entries", tuple(sorted(entries, key=lambda kv: kv[0])))

    @classmethod
    def of(cls, **labels: Label) -> "DimensionAssignment":
        return cls(labels)

    def __getitem__(self, name: str) -> Label:
        for key, label in self.entries:
            if key == name:
                return label
        raise KeyError(name)

    def get(self, name: str, default: Any = None) -> Any:
        for key, label in self.entries:
            if key == name:
                return label
        return default

    def __contains__(self, name: str) -> bool:
        return any(key == name for key, _ in self.entries)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def names(self) -> FrozenSet[str]:
        return frozenset(key for key, _ in self.entries)

    @property
    def aggregated(self) -> FrozenSet[str]:
        """Dimensions this assignment aggregates over."""
        return frozenset(key for key, label in self.entries if label is ALL)

    @property
    def is_concrete(self) -> bool:
        return not self.aggregated

    def as_dict(self) -> Dict[str, Label]:
        return dict(self.entries)

    def labels_for(self, names: Sequence[str]) -> Tuple[Label, ...]:
        """Labels of `names`, in the given order."""
        lookup = dict(self.entries)
        return tuple(lookup[name] for name in names)

    def agrees_with(self, partial: Mapping[str, Label]) -> bool:
        """True if every entry of `partial` is present here with the same label."""
        lookup = dict(self.entries)
        for name, label in partial.items():
            if name not in lookup:
                return False
            mine = lookup[name]
            if (mine is ALL) != (label is ALL) or (mine is not ALL and mine != label):
                return False
        return True

    def with_entries(self, **labels: Label) -> "DimensionAssignment":
        merged = dict(self.entries)
        merged.update(labels)
        return DimensionAssignment(merged)

    def describe(self) -> str:
        return ", ".join(f"{k}={v!r}" for k, v in self.entries)


@dataclass(frozen=True)
class Cell:
    """
    A summarized value tagged by its dimension labels and summarizer.

    Attributes:
        assignment: One label per declared dimension (ALL for aggregated ones)
        summarizer_id: Identifier of the summary that produced the value
        value: Scalar or text
        is_margin: True for cells that aggregate over one or more dimensions
    """
    assignment: DimensionAssignment
    summarizer_id: str
    value: Any
    is_margin: bool = False

    def __post_init__(self):
        if not isinstance(self.assignment, DimensionAssignment):
            object.__setattr__(self, "assignment", DimensionAssignment(self.assignment))

    @property
    def key(self) -> Tuple[DimensionAssignment, str]:
        return (self.assignment, self.summarizer_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assignment": {k: ("ALL" if v is ALL else v) for k, v in self.assignment.entries},
            "summarizer_id": self.summarizer_id,
            "value": None if self.value is NO_DATA else self.value,
            "is_margin": self.is_margin,
        }


class CellSelection:
    """
    Lazy, restartable view over the cells of a store matching a partial
    assignment. Each iteration re-scans the store.
    """

    def __init__(self, store: "CellStore", partial: Mapping[str, Label],
                 summarizer_id: Optional[str] = None, include_margins: bool = True):
        self._store = store
        self._partial = dict(partial)
        self._summarizer_id = summarizer_id
        self._include_margins = include_margins

    def __iter__(self) -> Iterator[Cell]:
        for cell in self._store._cells.values():
            if cell.is_margin and not self._include_margins:
                continue
            if self._summarizer_id is not None and cell.summarizer_id != self._summarizer_id:
                continue
            if cell.assignment.agrees_with(self._partial):
                yield cell

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def values(self) -> List[Any]:
        return [cell.value for cell in self]

    def __repr__(self):
        return f"CellSelection({self._partial!r}, summarizer_id={self._summarizer_id!r})"


class CellStore:
    """
    Collection of cells sharing one Dimension Index.

    Cells may be inserted until the store is sealed; a Table seals its store,
    after which the content is read-only.
    """

    def __init__(self, index: DimensionIndex, cells: Sequence[Cell] = ()):
        self.index = index
        self._cells: Dict[Tuple[DimensionAssignment, str], Cell] = {}
        self._summarizers: Dict[str, None] = {}
        self._sealed = False
        for cell in cells:
            self.insert(cell)

    def insert(self, cell: Cell) -> Cell:
        """Add a cell, enforcing coverage and uniqueness."""
        if self._sealed:
            raise SealedStoreError("Cell store is sealed; build a new store to change content")
        self._check_assignment(cell)
        if cell.key in self._cells:
            raise DuplicateCellError(
                f"Cell ({cell.assignment.describe()}; {cell.summarizer_id}) already present"
            )
        self._cells[cell.key] = cell
        self._summarizers.setdefault(cell.summarizer_id, None)
        return cell

    def add(self, labels: Mapping[str, Label], value: Any,
            summarizer_id: str = DEFAULT_SUMMARIZER) -> Cell:
        """Insert a cell built from a label mapping; margin status follows ALL labels."""
        assignment = DimensionAssignment(labels)
        return self.insert(Cell(assignment, summarizer_id, value,
                                is_margin=not assignment.is_concrete))

    def _check_assignment(self, cell: Cell):
        declared = set(self.index.names)
        given = set(cell.assignment.names)
        if given != declared:
            missing = sorted(declared - given)
            extra = sorted(given - declared)
            raise DimensionMismatchError(
                f"Cell assignment must cover exactly {sorted(declared)} "
                f"(missing {missing}, unexpected {extra})"
            )
        for name, label in cell.assignment.entries:
            if label is not ALL:
                self.index.order(name, label)
        aggregated = cell.assignment.aggregated
        if cell.is_margin and not aggregated:
            raise DimensionMismatchError(
                f"Margin cell ({cell.assignment.describe()}) aggregates over no dimension"
            )
        if not cell.is_margin and aggregated:
            raise DimensionMismatchError(
                f"Plain cell ({cell.assignment.describe()}) uses the aggregate marker "
                f"for {sorted(aggregated)}"
            )

    def seal(self) -> "CellStore":
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, assignment: Mapping[str, Label],
            summarizer_id: str = DEFAULT_SUMMARIZER) -> Optional[Cell]:
        if not isinstance(assignment, DimensionAssignment):
            assignment = DimensionAssignment(assignment)
        return self._cells.get((assignment, summarizer_id))

    def cells_matching(self, partial: Optional[Mapping[str, Label]] = None,
                       summarizer_id: Optional[str] = None,
                       include_margins: bool = True) -> CellSelection:
        """
        All cells whose assignment agrees with every entry of `partial`.

        Args:
            partial: Dimension name -> label; ALL matches only margin labels
            summarizer_id: Restrict to one summarizer
            include_margins: Whether margin cells may match
        """
        partial = dict(partial or {})
        for name in partial:
            if name not in self.index:
                raise UnknownDimensionError(f"Dimension '{name}' is not declared")
        return CellSelection(self, partial, summarizer_id, include_margins)

    def data_cells(self) -> CellSelection:
        return CellSelection(self, {}, include_margins=False)

    @property
    def summarizer_ids(self) -> List[str]:
        """Summarizer identifiers in first-insertion order."""
        return list(self._summarizers)

    def __iter__(self) -> Iterator[Cell]:
        return iter(list(self._cells.values()))

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, cell: Cell) -> bool:
        return self._cells.get(cell.key) == cell

    def __repr__(self):
        return (f"CellStore(dimensions={self.index.names}, cells={len(self)}, "
                f"summarizers={self.summarizer_ids}, sealed={self._sealed})")

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, dimensions: Sequence[str],
                   value_columns: Optional[Sequence[str]] = None,
                   index: Optional[DimensionIndex] = None) -> "CellStore":
        """
        Build a store from pre-summarized rows.

        Each row holds one label per dimension column and one value per value
        column; the value column name becomes the summarizer id.

        Args:
            frame: Wide DataFrame of summarized rows
            dimensions: Columns holding dimension labels
            value_columns: Columns holding values (default: all other columns)
            index: Dimension index (default: derived from the frame)
        """
        if value_columns is None:
            value_columns = [c for c in frame.columns if c not in set(dimensions)]
        if index is None:
            index = DimensionIndex.from_frame(frame, dimensions)
        store = cls(index)
        for record in frame.to_dict(orient="records"):
            labels = {name: record[name] for name in dimensions}
            for column in value_columns:
                store.add(labels, record[column], summarizer_id=column)
        return store

    def to_frame(self) -> pd.DataFrame:
        """Long-form content: one row per cell."""
        names = self.index.names
        rows = []
        for cell in self._cells.values():
            row = {name: cell.assignment[name] for name in names}
            row["summarizer"] = cell.summarizer_id
            row["value"] = cell.value
            row["is_margin"] = cell.is_margin
            rows.append(row)
        return pd.DataFrame(rows, columns=names + ["summarizer", "value", "is_margin"])
