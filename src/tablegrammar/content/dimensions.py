"""
Dimension Index: the grouping factors of a table and the canonical order of
their levels.

A Dimension is D = <name, (l_0, ..., l_k)> where the level sequence is the
canonical sort order. Indexes are persistent: declaring a dimension returns a
new index, so a Grid computed against an older index never sees it change.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from tablegrammar.errors import (
    DuplicateDimensionError, UnknownDimensionError, UnknownLabelError
)

Label = Hashable


@dataclass(frozen=True)
class Dimension:
    """
    A grouping factor with ordered levels.

    Attributes:
        name: Dimension name (e.g., 'Class', 'Sex')
        levels: Ordered levels; position is the canonical rank
    """
    name: str
    levels: Tuple[Label, ...]
    _ranks: Dict[Label, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        levels = tuple(self.levels)
        ranks = {}
        for i, label in enumerate(levels):
            if label in ranks:
                raise ValueError(f"Level {label!r} repeated in dimension '{self.name}'")
            ranks[label] = i
        object.__setattr__(self, "levels", levels)
        object.__setattr__(self, "_ranks", ranks)

    def __contains__(self, label: Label) -> bool:
        return label in self._ranks

    def __len__(self) -> int:
        return len(self.levels)

    def rank(self, label: Label) -> int:
        """Return the canonical rank of a level."""
        try:
            return self._ranks[label]
        except KeyError:
            raise UnknownLabelError(
                f"Label {label!r} is not a level of dimension '{self.name}'"
            ) from None

    def with_levels(self, levels: Sequence[Label]) -> "Dimension":
        return Dimension(self.name, tuple(levels))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "levels": list(self.levels)}


@dataclass(frozen=True)
class DimensionIndex:
    """
    The ordered set of dimensions declared for one table.

    Attributes:
        dimensions: Declared dimensions in declaration order
    """
    dimensions: Tuple[Dimension, ...] = ()

    def __post_init__(self):
        dims = tuple(self.dimensions)
        seen = set()
        for dim in dims:
            if dim.name in seen:
                raise DuplicateDimensionError(f"Dimension '{dim.name}' already declared")
            seen.add(dim.name)
        object.__setattr__(self, "dimensions", dims)

    def declare(self, name: str, levels: Iterable[Label]) -> "DimensionIndex":
        """Return a new index with one more dimension."""
        if name in self:
            raise DuplicateDimensionError(f"Dimension '{name}' already declared")
        return DimensionIndex(self.dimensions + (Dimension(name, tuple(levels)),))

    def with_levels(self, name: str, levels: Iterable[Label]) -> "DimensionIndex":
        """Return a new index where dimension `name` has different levels."""
        self[name]  # raises for undeclared names
        return DimensionIndex(tuple(
            d.with_levels(tuple(levels)) if d.name == name else d
            for d in self.dimensions
        ))

    def get_dimension(self, name: str) -> Optional[Dimension]:
        """Get dimension by name."""
        for dim in self.dimensions:
            if dim.name == name:
                return dim
        return None

    def __getitem__(self, name: str) -> Dimension:
        dim = self.get_dimension(name)
        if dim is None:
            raise UnknownDimensionError(f"Dimension '{name}' is not declared")
        return dim

    def __contains__(self, name: str) -> bool:
        return self.get_dimension(name) is not None

    def __iter__(self) -> Iterator[Dimension]:
        return iter(self.dimensions)

    def __len__(self) -> int:
        return len(self.dimensions)

    @property
    def names(self) -> List[str]:
        """Return dimension names in declaration order."""
        return [d.name for d in self.dimensions]

    def order(self, dimension: str, label: Label) -> int:
        """Return the canonical rank of `label` within `dimension`."""
        return self[dimension].rank(label)

    def to_dict(self) -> Dict[str, Any]:
        return {"dimensions": [d.to_dict() for d in self.dimensions]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DimensionIndex":
        return cls(tuple(
            Dimension(d["name"], tuple(d["levels"])) for d in data["dimensions"]
        ))

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, columns: Sequence[str]) -> "DimensionIndex":
        """
        Derive dimensions from DataFrame columns.

        Categorical columns keep their category order; other columns keep
        the order in which values first appear. Missing values are ignored.
        """
        index = cls()
        for col in columns:
            series = frame[col]
            if isinstance(series.dtype, pd.CategoricalDtype):
                levels = list(series.cat.categories)
            else:
                levels = series.dropna().drop_duplicates().tolist()
            index = index.declare(col, levels)
        return index
