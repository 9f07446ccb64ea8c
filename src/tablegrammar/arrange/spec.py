"""
Arrangement Spec: the mapping of dimensions onto rows, columns and facets.

An arrangement A = <rows, columns, facets, margins, level_order> where the
three axis sequences partition the declared dimensions (outermost first) and
margins request synthesized aggregate cells.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import hashlib
import json

from tablegrammar.content.dimensions import DimensionIndex, Label
from tablegrammar.errors import ArrangementInfeasibleError

# Pseudo-dimension whose levels are the store's summarizer ids
SUMMARIZER = "@summarizer"


class Axis(Enum):
    """Layout axes."""
    ROWS = "rows"
    COLUMNS = "columns"
    FACETS = "facets"


class MarginPosition(Enum):
    """Where margin labels go relative to the data labels of a dimension."""
    TRAILING = "trailing"
    LEADING = "leading"


@dataclass(frozen=True)
class MarginSpec:
    """
    A request for margin cells aggregating over a set of dimensions.

    Attributes:
        dimensions: Dimensions aggregated over (order-insensitive)
        rule: Aggregation rule id; None uses each cell's summarizer id
        position: Trailing or leading placement on the axis
    """
    dimensions: Tuple[str, ...]
    rule: Optional[str] = None
    position: MarginPosition = MarginPosition.TRAILING

    def __post_init__(self):
        dims = self.dimensions
        if isinstance(dims, str):
            dims = (dims,)
        object.__setattr__(self, "dimensions", tuple(sorted(set(dims))))
        if not isinstance(self.position, MarginPosition):
            object.__setattr__(self, "position", MarginPosition(self.position))

    @property
    def dimension_set(self) -> frozenset:
        return frozenset(self.dimensions)

    def describe(self) -> str:
        rule = self.rule or "per-summarizer rule"
        return f"{self.position.value} margin over {', '.join(self.dimensions)} ({rule})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimensions": list(self.dimensions),
            "rule": self.rule,
            "position": self.position.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarginSpec":
        return cls(
            dimensions=tuple(data["dimensions"]),
            rule=data.get("rule"),
            position=MarginPosition(data.get("position", "trailing")),
        )


@dataclass(frozen=True)
class ArrangementSpec:
    """
    How a table's dimensions are laid out.

    Attributes:
        rows: Row dimensions, outermost first
        columns: Column dimensions, outermost first
        facets: Facet dimensions, outermost first
        margins: Requested margins, in declaration order
        level_order: Per-arrangement level overrides (dimension -> levels)
    """
    rows: Tuple[str, ...] = ()
    columns: Tuple[str, ...] = ()
    facets: Tuple[str, ...] = ()
    margins: Tuple[MarginSpec, ...] = ()
    level_order: Tuple[Tuple[str, Tuple[Label, ...]], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "rows", _names(self.rows))
        object.__setattr__(self, "columns", _names(self.columns))
        object.__setattr__(self, "facets", _names(self.facets))
        object.__setattr__(self, "margins", tuple(
            m if isinstance(m, MarginSpec) else MarginSpec(m) for m in self.margins
        ))
        order = self.level_order
        if isinstance(order, Mapping):
            order = order.items()
        object.__setattr__(self, "level_order", tuple(
            (name, tuple(levels)) for name, levels in order
        ))

    @classmethod
    def default(cls, index: DimensionIndex) -> "ArrangementSpec":
        """All but the last dimension on rows, the last on columns."""
        names = index.names
        return cls(rows=tuple(names[:-1]), columns=tuple(names[-1:]))

    def axis(self, axis: Axis) -> Tuple[str, ...]:
        return {Axis.ROWS: self.rows, Axis.COLUMNS: self.columns, Axis.FACETS: self.facets}[axis]

    def axis_of(self, dimension: str) -> Optional[Axis]:
        for axis in Axis:
            if dimension in self.axis(axis):
                return axis
        return None

    @property
    def placed(self) -> Tuple[str, ...]:
        return self.rows + self.columns + self.facets

    def override_for(self, dimension: str) -> Optional[Tuple[Label, ...]]:
        for name, levels in self.level_order:
            if name == dimension:
                return levels
        return None

    def with_axes(self, **axes: Sequence[str]) -> "ArrangementSpec":
        return replace(self, **{k: tuple(v) for k, v in axes.items()})

    def with_level_order(self, dimension: str, levels: Sequence[Label]) -> "ArrangementSpec":
        order = [(n, l) for n, l in self.level_order if n != dimension]
        order.append((dimension, tuple(levels)))
        return replace(self, level_order=tuple(order))

    def validate(self, index: DimensionIndex):
        """
        Check that the axes partition the declared dimensions and that
        margins and level overrides refer to them consistently.

        Raises:
            ArrangementInfeasibleError: describing every violation found
        """
        problems: List[str] = []
        declared = index.names
        placed = self.placed

        seen = set()
        for name in placed:
            if name in seen:
                problems.append(f"'{name}' is placed more than once")
            seen.add(name)
        unknown = [n for n in placed if n not in index and n != SUMMARIZER]
        if unknown:
            problems.append(f"unknown dimensions {unknown}")
        missing = [n for n in declared if n not in seen]
        if missing:
            problems.append(f"dimensions {missing} are not placed on any axis")

        for margin in self.margins:
            if not margin.dimensions:
                problems.append("margin aggregates over no dimension")
            for name in margin.dimensions:
                if name == SUMMARIZER:
                    problems.append("margins cannot aggregate over summarizers")
                elif name not in index:
                    problems.append(f"margin over unknown dimension '{name}'")

        for name, levels in self.level_order:
            if name == SUMMARIZER:
                continue
            if name not in index:
                problems.append(f"level order given for unknown dimension '{name}'")
                continue
            canonical = index[name].levels
            if len(levels) != len(canonical) or set(levels) != set(canonical):
                problems.append(
                    f"level order for '{name}' must be a permutation of {list(canonical)}"
                )

        if problems:
            raise ArrangementInfeasibleError(
                f"Arrangement {self.describe()} is infeasible: " + "; ".join(problems)
            )

    @property
    def spec_id(self) -> str:
        """Short structural hash of this arrangement."""
        content = json.dumps(self.to_dict(), sort_keys=True, default=repr)
        return hashlib.md5(content.encode()).hexdigest()[:12]

    def describe(self) -> str:
        """Human-readable description."""
        parts = [
            f"rows: {', '.join(self.rows) or '-'}",
            f"columns: {', '.join(self.columns) or '-'}",
        ]
        if self.facets:
            parts.append(f"facets: {', '.join(self.facets)}")
        if self.margins:
            parts.append("margins: " + "; ".join(m.describe() for m in self.margins))
        return "[" + " | ".join(parts) + "]"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": list(self.rows),
            "columns": list(self.columns),
            "facets": list(self.facets),
            "margins": [m.to_dict() for m in self.margins],
            "level_order": {name: list(levels) for name, levels in self.level_order},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArrangementSpec":
        return cls(
            rows=tuple(data.get("rows", ())),
            columns=tuple(data.get("columns", ())),
            facets=tuple(data.get("facets", ())),
            margins=tuple(MarginSpec.from_dict(m) for m in data.get("margins", ())),
            level_order=data.get("level_order", {}),
        )


def _names(value: Union[str, Iterable[str]]) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(value)
