"""
Re-arrangement actions.

An action a: A -> A' is a partial function from arrangements to arrangements.
Actions never touch content; applying one to a Table only swaps its
arrangement. Actions return None when they do not apply.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence, Tuple
from abc import ABC, abstractmethod

from tablegrammar.arrange.spec import ArrangementSpec, Axis, MarginSpec
from tablegrammar.content.dimensions import DimensionIndex, Label


class ActionType(Enum):
    """Types of re-arrangement actions."""
    TRANSPOSE = "transpose"
    MOVE = "move"
    REORDER_LEVELS = "reorder_levels"
    REVERSE_LEVELS = "reverse_levels"
    ADD_MARGIN = "add_margin"
    REMOVE_MARGIN = "remove_margin"


@dataclass
class ArrangementAction(ABC):
    """Abstract base class for re-arrangement actions."""

    @property
    @abstractmethod
    def action_type(self) -> ActionType:
        """Return the action type."""
        pass

    @abstractmethod
    def apply(self, spec: ArrangementSpec) -> Optional[ArrangementSpec]:
        """
        Apply this action, returning the new arrangement.
        Returns None if the action is not applicable.
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Return human-readable description of the action."""
        pass

    @abstractmethod
    def is_applicable(self, spec: ArrangementSpec) -> bool:
        """Check if this action can be applied to the given arrangement."""
        pass


@dataclass
class TransposeAction(ArrangementAction):
    """Swap row and column dimensions."""

    @property
    def action_type(self) -> ActionType:
        return ActionType.TRANSPOSE

    def is_applicable(self, spec: ArrangementSpec) -> bool:
        return bool(spec.rows or spec.columns)

    def apply(self, spec: ArrangementSpec) -> Optional[ArrangementSpec]:
        if not self.is_applicable(spec):
            return None
        return spec.with_axes(rows=spec.columns, columns=spec.rows)

    def describe(self) -> str:
        return "Transpose rows and columns"


@dataclass
class MoveDimensionAction(ArrangementAction):
    """
    Move a dimension to an axis at a nesting position.
    Position 0 is outermost; None appends innermost.
    """
    dimension: str
    axis: Axis
    position: Optional[int] = None

    @property
    def action_type(self) -> ActionType:
        return ActionType.MOVE

    def is_applicable(self, spec: ArrangementSpec) -> bool:
        return spec.axis_of(self.dimension) is not None

    def apply(self, spec: ArrangementSpec) -> Optional[ArrangementSpec]:
        if not self.is_applicable(spec):
            return None
        axes = {
            axis.value: [d for d in spec.axis(axis) if d != self.dimension]
            for axis in Axis
        }
        target = axes[Axis(self.axis).value]
        position = len(target) if self.position is None else self.position
        target.insert(position, self.dimension)
        return spec.with_axes(**axes)

    def describe(self) -> str:
        where = "innermost" if self.position is None else f"at position {self.position}"
        return f"Move {self.dimension} to {Axis(self.axis).value} ({where})"


@dataclass
class ReorderLevelsAction(ArrangementAction):
    """Override the level order of a dimension for this arrangement only."""
    dimension: str
    levels: Tuple[Label, ...]

    @property
    def action_type(self) -> ActionType:
        return ActionType.REORDER_LEVELS

    def is_applicable(self, spec: ArrangementSpec) -> bool:
        return spec.axis_of(self.dimension) is not None

    def apply(self, spec: ArrangementSpec) -> Optional[ArrangementSpec]:
        if not self.is_applicable(spec):
            return None
        return spec.with_level_order(self.dimension, tuple(self.levels))

    def describe(self) -> str:
        return f"Order {self.dimension} as {list(self.levels)}"


@dataclass
class ReverseLevelsAction(ArrangementAction):
    """
    Reverse the level order of a dimension.
    Needs the index when no override is present yet.
    """
    dimension: str
    index: Optional[DimensionIndex] = None

    @property
    def action_type(self) -> ActionType:
        return ActionType.REVERSE_LEVELS

    def is_applicable(self, spec: ArrangementSpec) -> bool:
        if spec.axis_of(self.dimension) is None:
            return False
        return spec.override_for(self.dimension) is not None or (
            self.index is not None and self.dimension in self.index
        )

    def apply(self, spec: ArrangementSpec) -> Optional[ArrangementSpec]:
        if not self.is_applicable(spec):
            return None
        current = spec.override_for(self.dimension)
        if current is None:
            current = self.index[self.dimension].levels
        return spec.with_level_order(self.dimension, tuple(reversed(current)))

    def describe(self) -> str:
        return f"Reverse levels of {self.dimension}"


@dataclass
class AddMarginAction(ArrangementAction):
    """Request an additional margin."""
    margin: MarginSpec

    @property
    def action_type(self) -> ActionType:
        return ActionType.ADD_MARGIN

    def is_applicable(self, spec: ArrangementSpec) -> bool:
        return self.margin not in spec.margins

    def apply(self, spec: ArrangementSpec) -> Optional[ArrangementSpec]:
        if not self.is_applicable(spec):
            return None
        return replace(spec, margins=spec.margins + (self.margin,))

    def describe(self) -> str:
        return f"Add {self.margin.describe()}"


@dataclass
class RemoveMarginAction(ArrangementAction):
    """Remove every margin over exactly the given dimensions."""
    dimensions: Sequence[str]

    @property
    def action_type(self) -> ActionType:
        return ActionType.REMOVE_MARGIN

    def is_applicable(self, spec: ArrangementSpec) -> bool:
        target = frozenset([self.dimensions] if isinstance(self.dimensions, str)
                           else self.dimensions)
        return any(m.dimension_set == target for m in spec.margins)

    def apply(self, spec: ArrangementSpec) -> Optional[ArrangementSpec]:
        if not self.is_applicable(spec):
            return None
        target = frozenset([self.dimensions] if isinstance(self.dimensions, str)
                           else self.dimensions)
        return replace(spec, margins=tuple(
            m for m in spec.margins if m.dimension_set != target
        ))

    def describe(self) -> str:
        return f"Remove margin over {self.dimensions}"
