"""
TableGrammar: a grammar of tables

Summarized content (dimensions and cells) is kept apart from its arrangement
(rows, columns, facets and margins), its styling (themes) and its rendering
(markdown, HTML, LaTeX, RTF), so any of them can change without touching the
others.
"""

__version__ = "0.1.0"
__author__ = "TableGrammar Team"

from tablegrammar.content.dimensions import Dimension, DimensionIndex
from tablegrammar.content.cells import ALL, NO_DATA, Cell, CellStore, DimensionAssignment
from tablegrammar.content.summarize import Summarizer, summarize_frame
from tablegrammar.arrange.spec import SUMMARIZER, ArrangementSpec, Axis, MarginSpec
from tablegrammar.arrange.engine import ArrangementEngine
from tablegrammar.theme.theme import Theme
from tablegrammar.metadata import Metadata
from tablegrammar.table import Table

__all__ = [
    "Dimension",
    "DimensionIndex",
    "ALL",
    "NO_DATA",
    "Cell",
    "CellStore",
    "DimensionAssignment",
    "Summarizer",
    "summarize_frame",
    "SUMMARIZER",
    "ArrangementSpec",
    "Axis",
    "MarginSpec",
    "ArrangementEngine",
    "Theme",
    "Metadata",
    "Table",
]
