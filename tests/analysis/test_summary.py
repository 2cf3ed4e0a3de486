import numpy as np
import pandas as pd

from colonsurv.analysis.summary import (
    OVERALL,
    categorical_stats,
    continuous_stats,
    summary_table,
)
from colonsurv.utils.config import SUMMARY_VARIABLES


def test_continuous_stats_excludes_missing():
    stats = dict(continuous_stats(pd.Series([1.0, 2.0, 3.0, np.nan])))
    assert stats["Mean (SD)"] == "2.0 (1.0)"
    assert stats["Median [Q1, Q3]"] == "2.0 [1.5, 2.5]"
    assert stats["Range"] == "1.0 - 3.0"


def test_continuous_stats_of_empty_series():
    stats = dict(continuous_stats(pd.Series([np.nan])))
    assert set(stats.values()) == {""}


def test_categorical_stats_has_no_missing_row():
    values = pd.Series(pd.Categorical(["a", "a", "b", None], categories=["a", "b", "c"]))
    stats = categorical_stats(values)
    assert stats == [("a", "2 (66.7%)"), ("b", "1 (33.3%)"), ("c", "0 (0.0%)")]


def test_summary_table_columns(colon):
    table = summary_table(colon, SUMMARY_VARIABLES, group="rx")
    counts = colon["rx"].value_counts()
    assert list(table.columns) == [
        f"Obs (N={counts['Obs']})",
        f"Lev (N={counts['Lev']})",
        f"Lev+5FU (N={counts['Lev+5FU']})",
        f"{OVERALL} (N={len(colon)})",
    ]


def test_summary_table_rows_follow_variables(colon):
    table = summary_table(colon, ["age", "differ"], group="rx")
    assert list(table.index) == [
        ("Age (years)", "Mean (SD)"),
        ("Age (years)", "Median [Q1, Q3]"),
        ("Age (years)", "Range"),
        ("Differentiation", "Well"),
        ("Differentiation", "Moderate"),
        ("Differentiation", "Poor"),
    ]


def test_summary_counts_add_up(colon):
    table = summary_table(colon, ["sex"], group="rx")
    overall = table.columns[-1]
    per_arm = table[table.columns[:-1]]
    for level in ("Female", "Male"):
        arm_n = sum(int(cell.split(" ")[0]) for cell in per_arm.loc[("Sex", level)])
        assert arm_n == int(table.loc[("Sex", level), overall].split(" ")[0])
