"""
Unit tests for building cell stores from raw records.
"""

import logging
import pytest
import pandas as pd
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tablegrammar.content.aggregation import AggregateFunction
from tablegrammar.content.cells import ALL
from tablegrammar.content.summarize import Summarizer, summarize_frame
from tablegrammar.arrange.spec import ArrangementSpec, MarginSpec
from tablegrammar.arrange.engine import ArrangementEngine


@pytest.fixture
def passengers():
    """Five passengers; no surviving-free female group."""
    return pd.DataFrame({
        'Sex': ['M', 'M', 'M', 'F', 'F'],
        'Survived': ['No', 'No', 'Yes', 'Yes', 'Yes'],
        'age': [30, 40, 20, 10, 30],
        'fare': [7.0, 8.0, 50.0, 60.0, 70.0],
    })


@pytest.fixture
def summarizers():
    return {
        "n": (None, "count"),
        "mean_age": ("age", AggregateFunction.AVG),
        "max_fare": Summarizer("fare", np.max),
    }


class TestSummarizer:
    def test_count_whole_group(self, passengers):
        assert Summarizer(None, "count").apply(passengers) == 5
        assert Summarizer(None, AggregateFunction.COUNT).apply(passengers) == 5

    def test_named_function_needs_column(self, passengers):
        with pytest.raises(ValueError):
            Summarizer(None, "mean").apply(passengers)

    def test_python_scalars(self, passengers):
        mean = Summarizer("age", "mean").apply(passengers)
        assert mean == 26.0
        assert type(mean) is float
        assert type(Summarizer("fare", np.max).apply(passengers)) is float

    def test_callable_over_series(self, passengers):
        spread = Summarizer("age", lambda s: s.max() - s.min()).apply(passengers)
        assert spread == 30


class TestSummarizeFrame:
    def test_cells(self, passengers, summarizers):
        store = summarize_frame(passengers, ["Sex", "Survived"], summarizers)
        assert len(store) == 9
        assert store.summarizer_ids == ["n", "mean_age", "max_fare"]
        assert store.get({"Sex": "M", "Survived": "No"}, "n").value == 2
        assert store.get({"Sex": "M", "Survived": "No"}, "mean_age").value == 35.0
        assert store.get({"Sex": "F", "Survived": "Yes"}, "max_fare").value == 70.0
        assert store.get({"Sex": "F", "Survived": "No"}, "n") is None
        assert not store.sealed

    def test_index_from_frame(self, passengers, summarizers):
        store = summarize_frame(passengers, ["Sex", "Survived"], summarizers)
        assert store.index["Sex"].levels == ("M", "F")
        assert store.index["Survived"].levels == ("No", "Yes")

    def test_categorical_dimensions(self, passengers):
        passengers["Sex"] = pd.Categorical(passengers["Sex"], categories=["F", "M", "X"])
        store = summarize_frame(passengers, ["Sex"], {"n": (None, "count")})
        assert store.index["Sex"].levels == ("F", "M", "X")
        assert len(store) == 2

    def test_fill_value(self, passengers):
        store = summarize_frame(passengers, ["Sex", "Survived"], {"n": (None, "count")},
                                fill_value=0)
        assert len(store) == 4
        assert store.get({"Sex": "F", "Survived": "No"}, "n").value == 0

    def test_missing_dimension_values_dropped(self, passengers):
        passengers.loc[5] = [None, 'No', 50, 9.0]
        store = summarize_frame(passengers, ["Sex", "Survived"], {"n": (None, "count")})
        assert sum(store.cells_matching({}).values()) == 5

    def test_margins_from_raw_records(self, passengers, summarizers):
        store = summarize_frame(passengers, ["Sex", "Survived"], summarizers,
                                margins=[["Survived"], ["Sex", "Survived"]])
        margin = store.get({"Sex": "M", "Survived": ALL}, "mean_age")
        assert margin.is_margin
        assert margin.value == 30.0
        total = store.get({"Sex": ALL, "Survived": ALL}, "n")
        assert total.value == 5

    def test_exact_margins_preferred_by_engine(self, passengers, summarizers):
        store = summarize_frame(passengers, ["Sex", "Survived"], summarizers,
                                margins=[["Survived"]]).seal()
        spec = ArrangementSpec(rows=("Sex",), columns=("Survived",), facets=("@summarizer",),
                               margins=(MarginSpec("Survived", rule="mean"),))
        grid = ArrangementEngine().arrange(store, spec)
        mean_age = grid.facets[1]
        assert mean_age.facet_labels == ("mean_age",)
        # mean of raw ages (30, 40, 20), not of the group means (35, 20)
        assert mean_age.cell_at(0, 2).value == 30.0

    def test_logs_summary(self, passengers, summarizers, caplog):
        caplog.set_level(logging.INFO, logger="tablegrammar")
        summarize_frame(passengers, ["Sex", "Survived"], summarizers)
        assert "Summarized 5 records into 9 cells" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
