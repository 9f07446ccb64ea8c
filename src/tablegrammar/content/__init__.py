"""
Content module: dimensions, cells and the summarized store behind a table.
"""

from tablegrammar.content.dimensions import Dimension, DimensionIndex, Label
from tablegrammar.content.cells import (
    ALL, NO_DATA, DEFAULT_SUMMARIZER, Cell, CellSelection, CellStore, DimensionAssignment
)
from tablegrammar.content.aggregation import (
    AggregateFunction, AggregationRegistry, AggregationRule
)
from tablegrammar.content.summarize import Summarizer, summarize_frame

__all__ = [
    "Dimension", "DimensionIndex", "Label",
    "ALL", "NO_DATA", "DEFAULT_SUMMARIZER",
    "Cell", "CellSelection", "CellStore", "DimensionAssignment",
    "AggregateFunction", "AggregationRegistry", "AggregationRule",
    "Summarizer", "summarize_frame",
]
