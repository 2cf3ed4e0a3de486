"""Registry of the analysis variables.

Analyses refer to variables by key (``rx``, ``differ``, ...). The registry
resolves a key to the column of the cleaned table it reads, a display label
and, for categorical and binary variables, the ordered levels. The first
level is the reference category of the regression models.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from dataclasses import dataclass
from typing import Dict, Tuple

import pandas as pd

from colonsurv.data import labels

CATEGORICAL = "categorical"
BINARY = "binary"
CONTINUOUS = "continuous"

BINARY_LABELS = {0: "No", 1: "Yes"}


@dataclass(frozen=True)
class Variable:
    key: str
    column: str
    label: str
    kind: str
    levels: Tuple[str, ...] = ()

    @property
    def is_continuous(self) -> bool:
        return self.kind == CONTINUOUS

    @property
    def reference(self):
        return self.levels[0] if self.levels else None

    def values(self, df: pd.DataFrame) -> pd.Series:
        """Return the variable as it is displayed and modelled.

        Categorical and binary variables come back as an ordered categorical
        over ``levels``; continuous variables as floats.
        """
        col = df[self.column]
        if self.kind == CONTINUOUS:
            return col.astype(float)
        if self.kind == BINARY:
            col = labels.map_codes(col, BINARY_LABELS)
        return pd.Series(
            pd.Categorical(col, categories=list(self.levels), ordered=True),
            index=df.index,
            name=self.key,
        )


VARIABLES: Dict[str, Variable] = {
    v.key: v
    for v in [
        Variable("rx", "rx", "Treatment", CATEGORICAL, labels.TREATMENT_LEVELS),
        Variable(
            "sex",
            "sex_label",
            "Sex",
            CATEGORICAL,
            tuple(labels.SEX_LABELS.values()),
        ),
        Variable("age", "age", "Age (years)", CONTINUOUS),
        Variable("age_group", "age_group", "Age group", CATEGORICAL, labels.AGE_BANDS),
        Variable("obstruct", "obstruct", "Colon obstruction", BINARY, ("No", "Yes")),
        Variable("perfor", "perfor", "Colon perforation", BINARY, ("No", "Yes")),
        Variable(
            "adhere", "adhere", "Adherence to nearby organs", BINARY, ("No", "Yes")
        ),
        Variable("nodes", "nodes", "Positive lymph nodes", CONTINUOUS),
        Variable(
            "differ",
            "differ_label",
            "Differentiation",
            CATEGORICAL,
            tuple(labels.DIFFER_LABELS.values()),
        ),
        Variable(
            "extent",
            "extent_label",
            "Extent of local spread",
            CATEGORICAL,
            tuple(labels.EXTENT_LABELS.values()),
        ),
        Variable(
            "surg",
            "surg_label",
            "Time from surgery to registration",
            CATEGORICAL,
            tuple(labels.SURG_LABELS.values()),
        ),
        Variable(
            "node4", "node4", "More than 4 positive lymph nodes", BINARY, ("No", "Yes")
        ),
    ]
}


def get_variable(key: str) -> Variable:
    """Look up a variable by key, raising ``KeyError`` for unknown keys."""
    try:
        return VARIABLES[key]
    except KeyError:
        raise KeyError(
            f"Unknown analysis variable '{key}'. Known: {sorted(VARIABLES)}"
        ) from None
