"""
Aggregation rules used to synthesize margin cells.

Rules are plain functions over a sequence of cell values, registered under an
identifier. The identifier is either a rule name ('sum', 'mean', ...) or a
summarizer id, so a margin can aggregate each summary the way its summarizer
requires.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import numpy as np

from tablegrammar.content.cells import NO_DATA
from tablegrammar.errors import AggregationError, UnknownAggregationError

AggregationRule = Callable[[Sequence[Any]], Any]


class AggregateFunction(Enum):
    """Built-in aggregation rules."""
    SUM = "sum"
    AVG = "mean"
    COUNT = "count"
    MIN = "min"
    MAX = "max"
    MEDIAN = "median"


BUILTIN_RULES: Dict[str, AggregationRule] = {
    AggregateFunction.SUM.value: np.sum,
    AggregateFunction.AVG.value: np.mean,
    AggregateFunction.COUNT.value: len,
    AggregateFunction.MIN.value: np.min,
    AggregateFunction.MAX.value: np.max,
    AggregateFunction.MEDIAN.value: np.median,
}


def _is_missing(value: Any) -> bool:
    if value is None or value is NO_DATA:
        return True
    return isinstance(value, (float, np.floating)) and np.isnan(value)


class AggregationRegistry:
    """
    Maps identifiers to aggregation rules.

    Missing inputs (None, NaN, NO_DATA) are dropped before a rule runs; an
    empty input produces NO_DATA without invoking the rule.
    """

    def __init__(self, rules: Optional[Dict[str, AggregationRule]] = None):
        self._rules: Dict[str, AggregationRule] = dict(BUILTIN_RULES)
        if rules:
            for key, rule in rules.items():
                self.register(key, rule)

    def register(self, key: str,
                 rule: Union[AggregationRule, str, AggregateFunction]) -> "AggregationRegistry":
        """
        Register a rule under `key`.

        `rule` may be a callable, or the name of an already registered rule
        (e.g. ``registry.register("n", "sum")`` to sum counts).
        """
        if isinstance(rule, AggregateFunction):
            rule = rule.value
        if isinstance(rule, str):
            rule = self.get(rule)
        if not callable(rule):
            raise TypeError(f"Aggregation rule for '{key}' must be callable")
        self._rules[key] = rule
        return self

    def get(self, key: str) -> AggregationRule:
        try:
            return self._rules[key]
        except KeyError:
            raise UnknownAggregationError(
                f"No aggregation rule registered for '{key}'"
            ) from None

    def __contains__(self, key: str) -> bool:
        return key in self._rules

    @property
    def keys(self) -> List[str]:
        return list(self._rules)

    def aggregate(self, key: str, values: Sequence[Any]) -> Any:
        """Apply rule `key` to `values`."""
        rule = self.get(key)
        present = [v for v in values if not _is_missing(v)]
        if not present:
            return NO_DATA
        try:
            result = rule(present)
        except Exception as e:
            raise AggregationError(f"Aggregation rule '{key}' failed: {e}") from e
        if isinstance(result, np.generic):
            result = result.item()
        return result

    def copy(self) -> "AggregationRegistry":
        registry = AggregationRegistry()
        registry._rules = dict(self._rules)
        return registry
