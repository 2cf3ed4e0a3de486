"""Derived categorical fields of the colon trial records.

Each derived field is a pure function of one raw column through a literal
lookup table. The scalar forms are total: codes outside a table map to
``None`` rather than raising.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from typing import Dict, Optional

import numpy as np
import pandas as pd

AGE_THRESHOLD = 70
AGE_BANDS = ("18-69", "70+")

SEX_LABELS = {0: "Female", 1: "Male"}
DIFFER_LABELS = {1: "Well", 2: "Moderate", 3: "Poor"}
EXTENT_LABELS = {
    1: "Submucosa",
    2: "Muscle",
    3: "Serosa",
    4: "Contiguous structures",
}
SURG_LABELS = {0: "Short", 1: "Long"}
TREATMENT_LEVELS = ("Obs", "Lev", "Lev+5FU")

# derived column -> (source column, lookup table)
LOOKUPS = {
    "sex_label": ("sex", SEX_LABELS),
    "differ_label": ("differ", DIFFER_LABELS),
    "extent_label": ("extent", EXTENT_LABELS),
    "surg_label": ("surg", SURG_LABELS),
}


def age_band(age) -> Optional[str]:
    """Map an age in years to its band: below 70 is "18-69", otherwise "70+"."""
    if age is None or pd.isna(age):
        return None
    return AGE_BANDS[0] if age < AGE_THRESHOLD else AGE_BANDS[1]


def _lookup(table: Dict[int, str], code) -> Optional[str]:
    if code is None or pd.isna(code):
        return None
    try:
        if float(code) != int(code):
            return None
        return table.get(int(code))
    except (TypeError, ValueError, OverflowError):
        return None


def label_sex(code) -> Optional[str]:
    return _lookup(SEX_LABELS, code)


def label_differ(code) -> Optional[str]:
    return _lookup(DIFFER_LABELS, code)


def label_extent(code) -> Optional[str]:
    return _lookup(EXTENT_LABELS, code)


def label_surg(code) -> Optional[str]:
    return _lookup(SURG_LABELS, code)


def age_bands(age: pd.Series) -> pd.Categorical:
    """Vectorised :func:`age_band` returning an ordered categorical."""
    values = np.where(
        age.isna(),
        None,
        np.where(age < AGE_THRESHOLD, AGE_BANDS[0], AGE_BANDS[1]),
    )
    return pd.Categorical(values, categories=list(AGE_BANDS), ordered=True)


def map_codes(codes: pd.Series, table: Dict[int, str]) -> pd.Categorical:
    """Translate numeric codes through ``table`` into an ordered categorical."""
    labels = codes.map(lambda c: _lookup(table, c))
    return pd.Categorical(labels, categories=list(table.values()), ordered=True)


def treatment(rx: pd.Series) -> pd.Categorical:
    """Order the treatment arms as Obs < Lev < Lev+5FU."""
    return pd.Categorical(rx, categories=list(TREATMENT_LEVELS), ordered=True)


def derive_labels(df: pd.DataFrame) -> pd.DataFrame:
    """
    Attach the five derived categorical fields to a copy of ``df``.

    Args:
        df: Raw or filtered colon records

    Returns:
        pd.DataFrame: A copy with ``age_group``, ``sex_label``,
        ``differ_label``, ``extent_label`` and ``surg_label`` columns
    """
    out = df.copy()
    out["age_group"] = age_bands(out["age"])
    for derived, (source, table) in LOOKUPS.items():
        out[derived] = map_codes(out[source], table)
    return out
