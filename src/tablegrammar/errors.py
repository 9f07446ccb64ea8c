"""
Error kinds raised by the table grammar.

Construction-time errors (dimensions, labels, cells) are raised eagerly so that
no arrangement or render is ever attempted over inconsistent content.
"""


class TableGrammarError(Exception):
    """Base class for all table grammar errors."""


class DuplicateDimensionError(TableGrammarError, ValueError):
    """A dimension name was declared twice in one index."""


class UnknownDimensionError(TableGrammarError, KeyError):
    """A dimension name was never declared."""


class UnknownLabelError(TableGrammarError, KeyError):
    """A label was never declared for its dimension."""


class DimensionMismatchError(TableGrammarError, ValueError):
    """A cell assignment does not cover exactly the declared dimensions."""


class DuplicateCellError(TableGrammarError, ValueError):
    """Two cells claim the same (assignment, summarizer) pair."""


class SealedStoreError(TableGrammarError):
    """A cell store was modified after being sealed."""


class ArrangementInfeasibleError(TableGrammarError, ValueError):
    """An arrangement does not partition the declared dimensions."""


class AmbiguousPlacementError(TableGrammarError, RuntimeError):
    """Two cells resolved to the same grid position.

    Only reachable when the cell store's uniqueness invariant was violated
    upstream; not correctable by retrying.
    """


class UnknownAggregationError(TableGrammarError, KeyError):
    """No aggregation rule is registered under the requested identifier."""


class AggregationError(TableGrammarError):
    """An aggregation rule failed while synthesizing a margin cell."""


class UnknownFormatError(TableGrammarError, KeyError):
    """No renderer is registered for the requested output format."""


class RenderError(TableGrammarError):
    """A renderer could not produce its output."""


class UnsupportedStyleWarning(UserWarning):
    """A style attribute was dropped because the renderer cannot express it.

    Instances are collected on the render result, never raised.
    """

    def __init__(self, format_name: str, attribute: str, value=None):
        self.format_name = format_name
        self.attribute = attribute
        self.value = value
        super().__init__(
            f"{format_name} renderer does not support style attribute "
            f"'{attribute}' (value {value!r}); dropped"
        )

    def __eq__(self, other):
        if not isinstance(other, UnsupportedStyleWarning):
            return False
        return (self.format_name, self.attribute) == (other.format_name, other.attribute)

    def __hash__(self):
        return hash((self.format_name, self.attribute))
