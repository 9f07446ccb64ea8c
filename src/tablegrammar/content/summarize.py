"""
Summarizer adapter: builds a Cell Store from raw records held in pandas.

The statistics themselves are supplied by the caller; this module only
groups the records by dimension columns and applies each summarizer per group.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from tablegrammar.content.aggregation import AggregateFunction
from tablegrammar.content.cells import ALL, Cell, CellStore, DimensionAssignment
from tablegrammar.content.dimensions import DimensionIndex

logger = logging.getLogger(__name__)

SummaryFunction = Union[str, AggregateFunction, Callable[[Any], Any]]


@dataclass(frozen=True)
class Summarizer:
    """
    An externally supplied summary.

    Attributes:
        column: Column the function is applied to; None passes the whole group
        func: Callable, pandas aggregation name, or AggregateFunction
    """
    column: Optional[str]
    func: SummaryFunction

    def apply(self, group: pd.DataFrame) -> Any:
        data = group if self.column is None else group[self.column]
        func = self.func
        if isinstance(func, AggregateFunction):
            func = func.value
        if isinstance(func, str):
            if self.column is None:
                if func not in ("count", "size"):
                    raise ValueError(f"Summarizer '{func}' needs a column")
                return len(group)
            result = data.agg(func)
        else:
            result = func(data)
        if hasattr(result, "item") and not isinstance(result, (pd.Series, pd.DataFrame)):
            result = result.item()
        return result


def _as_summarizer(spec: Union[Summarizer, Tuple[Optional[str], SummaryFunction]]) -> Summarizer:
    if isinstance(spec, Summarizer):
        return spec
    column, func = spec
    return Summarizer(column, func)


def summarize_frame(frame: pd.DataFrame,
                    dimensions: Sequence[str],
                    summarizers: Mapping[str, Union[Summarizer, Tuple]],
                    index: Optional[DimensionIndex] = None,
                    fill_value: Any = None,
                    margins: Iterable[Sequence[str]] = ()) -> CellStore:
    """
    Summarize raw records into a Cell Store.

    Args:
        frame: Raw records, one row per observation
        dimensions: Columns used as grouping dimensions
        summarizers: summarizer_id -> Summarizer (or (column, func) tuple)
        index: Dimension index (default: derived from the frame)
        fill_value: Value for label combinations without records; None leaves
            them out of the store
        margins: Dimension subsets for which margin cells are computed from
            the raw records themselves rather than from cell values

    Returns:
        An unsealed CellStore
    """
    dimensions = list(dimensions)
    if index is None:
        index = DimensionIndex.from_frame(frame, dimensions)
    specs = {sid: _as_summarizer(s) for sid, s in summarizers.items()}
    store = CellStore(index)

    for labels, group in _group(frame, dimensions):
        for sid, summarizer in specs.items():
            store.insert(Cell(DimensionAssignment(labels), sid, summarizer.apply(group)))

    if fill_value is not None:
        filled = 0
        level_lists = [index[name].levels for name in dimensions]
        for combo in itertools.product(*level_lists):
            labels = dict(zip(dimensions, combo))
            for sid in specs:
                if store.get(labels, sid) is None:
                    store.insert(Cell(DimensionAssignment(labels), sid, fill_value))
                    filled += 1
        logger.debug(f"Filled {filled} empty label combinations with {fill_value!r}")

    for subset in margins:
        subset = list(subset)
        kept = [d for d in dimensions if d not in subset]
        for labels, group in _group(frame, kept):
            labels.update({name: ALL for name in subset})
            for sid, summarizer in specs.items():
                store.insert(Cell(DimensionAssignment(labels), sid,
                                  summarizer.apply(group), is_margin=True))

    logger.info(f"Summarized {len(frame)} records into {len(store)} cells")
    return store


def _group(frame: pd.DataFrame, columns: Sequence[str]) -> List[Tuple[Dict[str, Any], pd.DataFrame]]:
    """Group records by `columns` into (labels, group) pairs, in order of appearance."""
    columns = list(columns)
    if not columns:
        return [({}, frame)]
    frame = frame.dropna(subset=columns)
    result = []
    for key, group in frame.groupby(columns, sort=False, observed=True):
        if not isinstance(key, tuple):
            key = (key,)
        result.append((dict(zip(columns, key)), group))
    return result
