"""
Example table definitions over the Titanic survival counts.

- Dimensions: Class (1st, 2nd, 3rd, Crew), Sex, Age, Survived
- Summarizer: count of passengers (summarizer id "n")
"""

import pandas as pd

from tablegrammar.arrange.spec import ArrangementSpec, MarginSpec
from tablegrammar.content.cells import CellStore
from tablegrammar.content.dimensions import DimensionIndex
from tablegrammar.metadata import Metadata
from tablegrammar.theme.theme import Theme

# Survival counts by class, sex, age and outcome (the classic 2201 aboard)
TITANIC_COUNTS = [
    ("1st", "Male", "Child", "No", 0), ("1st", "Male", "Child", "Yes", 5),
    ("1st", "Male", "Adult", "No", 118), ("1st", "Male", "Adult", "Yes", 57),
    ("1st", "Female", "Child", "No", 0), ("1st", "Female", "Child", "Yes", 1),
    ("1st", "Female", "Adult", "No", 4), ("1st", "Female", "Adult", "Yes", 140),
    ("2nd", "Male", "Child", "No", 0), ("2nd", "Male", "Child", "Yes", 11),
    ("2nd", "Male", "Adult", "No", 154), ("2nd", "Male", "Adult", "Yes", 14),
    ("2nd", "Female", "Child", "No", 0), ("2nd", "Female", "Child", "Yes", 13),
    ("2nd", "Female", "Adult", "No", 13), ("2nd", "Female", "Adult", "Yes", 80),
    ("3rd", "Male", "Child", "No", 35), ("3rd", "Male", "Child", "Yes", 13),
    ("3rd", "Male", "Adult", "No", 387), ("3rd", "Male", "Adult", "Yes", 75),
    ("3rd", "Female", "Child", "No", 17), ("3rd", "Female", "Child", "Yes", 14),
    ("3rd", "Female", "Adult", "No", 89), ("3rd", "Female", "Adult", "Yes", 76),
    ("Crew", "Male", "Child", "No", 0), ("Crew", "Male", "Child", "Yes", 0),
    ("Crew", "Male", "Adult", "No", 670), ("Crew", "Male", "Adult", "Yes", 192),
    ("Crew", "Female", "Child", "No", 0), ("Crew", "Female", "Child", "Yes", 0),
    ("Crew", "Female", "Adult", "No", 3), ("Crew", "Female", "Adult", "Yes", 20),
]

TITANIC_DIMENSIONS = {
    "Class": ("1st", "2nd", "3rd", "Crew"),
    "Sex": ("Male", "Female"),
    "Age": ("Child", "Adult"),
    "Survived": ("No", "Yes"),
}


def create_titanic_index() -> DimensionIndex:
    index = DimensionIndex()
    for name, levels in TITANIC_DIMENSIONS.items():
        index = index.declare(name, levels)
    return index


def create_titanic_frame() -> pd.DataFrame:
    """Counts as a DataFrame with categorical dimension columns."""
    frame = pd.DataFrame(TITANIC_COUNTS, columns=list(TITANIC_DIMENSIONS) + ["n"])
    for name, levels in TITANIC_DIMENSIONS.items():
        frame[name] = pd.Categorical(frame[name], categories=list(levels))
    return frame


def create_titanic_store() -> CellStore:
    """Unsealed store of counts with summarizer id "n"."""
    return CellStore.from_frame(
        create_titanic_frame(), list(TITANIC_DIMENSIONS), value_columns=["n"],
        index=create_titanic_index(),
    )


def survival_by_class_arrangement() -> ArrangementSpec:
    """
    Class and Sex on rows, Survived on columns, Age as facets, with
    totals over Survived and over Class.
    """
    return ArrangementSpec(
        rows=("Class", "Sex"),
        columns=("Survived",),
        facets=("Age",),
        margins=(MarginSpec(("Survived",), rule="sum"), MarginSpec(("Class",), rule="sum")),
    )


def crosstab_arrangement() -> ArrangementSpec:
    """Class by Survived with Sex and Age as facets and no margins."""
    return ArrangementSpec(rows=("Class",), columns=("Survived",), facets=("Sex", "Age"))


def titanic_theme() -> Theme:
    return Theme.from_dict({
        "header": {"bold": True, "align": "center"},
        "cell": {"align": "right"},
        "margin": {"italic": True, "border_top": True},
        "column[Survived=Yes]": {"color": "#1b7837"},
        "title": {"bold": True},
    })


def titanic_metadata() -> Metadata:
    return Metadata(
        title="Survival of passengers on the Titanic",
        subtitle="Counts by economic status, sex and age",
        notes=("Source: British Board of Trade inquiry (1990 reprint).",),
        identifiers={"label": "tab:titanic", "id": "titanic"},
    )
