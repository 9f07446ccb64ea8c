"""
Arrange module: arrangement specs, re-arrangement actions, grids and the engine.
"""

from tablegrammar.arrange.spec import (
    SUMMARIZER, ArrangementSpec, Axis, MarginPosition, MarginSpec
)
from tablegrammar.arrange.grid import FacetGrid, Grid
from tablegrammar.arrange.actions import (
    ArrangementAction, ActionType,
    TransposeAction, MoveDimensionAction, ReorderLevelsAction, ReverseLevelsAction,
    AddMarginAction, RemoveMarginAction,
)
from tablegrammar.arrange.engine import ArrangementEngine, EngineConfig

__all__ = [
    "SUMMARIZER", "ArrangementSpec", "Axis", "MarginPosition", "MarginSpec",
    "FacetGrid", "Grid",
    "ArrangementAction", "ActionType",
    "TransposeAction", "MoveDimensionAction", "ReorderLevelsAction", "ReverseLevelsAction",
    "AddMarginAction", "RemoveMarginAction",
    "ArrangementEngine", "EngineConfig",
]
