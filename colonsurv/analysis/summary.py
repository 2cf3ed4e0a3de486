"""Descriptive summary table by treatment arm."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from typing import List, Sequence

import pandas as pd

from colonsurv.data.variables import get_variable
from colonsurv.utils import logging

logger = logging.get_default_logger()

OVERALL = "Overall"


def _fmt(x: float, digits: int = 1) -> str:
    return f"{x:.{digits}f}"


def continuous_stats(values: pd.Series) -> List[tuple]:
    """Mean (SD), median [Q1, Q3] and range of the non-missing values."""
    v = values.dropna()
    if v.empty:
        return [("Mean (SD)", ""), ("Median [Q1, Q3]", ""), ("Range", "")]
    sd = v.std() if len(v) > 1 else float("nan")
    return [
        ("Mean (SD)", f"{_fmt(v.mean())} ({_fmt(sd)})"),
        (
            "Median [Q1, Q3]",
            f"{_fmt(v.median())} [{_fmt(v.quantile(0.25))}, {_fmt(v.quantile(0.75))}]",
        ),
        ("Range", f"{_fmt(v.min())} - {_fmt(v.max())}"),
    ]


def categorical_stats(values: pd.Series) -> List[tuple]:
    """Count and percentage per level; missing values are not counted."""
    counts = values.value_counts(sort=False, dropna=True)
    total = int(counts.sum())
    rows = []
    for level in values.cat.categories:
        n = int(counts.get(level, 0))
        pct = 100.0 * n / total if total else 0.0
        rows.append((str(level), f"{n} ({_fmt(pct)}%)"))
    return rows


def summary_table(
    df: pd.DataFrame, variables: Sequence[str], group: str = "rx"
) -> pd.DataFrame:
    """
    Compute grouped descriptive statistics.

    Args:
        df: The analysis table
        variables: Variable keys to summarise, in display order
        group: Variable key whose levels form the columns

    Returns:
        pd.DataFrame: Indexed by (variable label, statistic or level), with
        one column per group level followed by ``Overall``. Column names carry
        the group size, e.g. ``"Obs (N=315)"``.
    """
    group_var = get_variable(group)
    groups = group_var.values(df)

    subsets = [(str(level), df[groups == level]) for level in group_var.levels]
    subsets.append((OVERALL, df))

    columns = {}
    order = []
    for name, sub in subsets:
        col = {}
        for key in variables:
            var = get_variable(key)
            values = var.values(sub)
            stats = (
                continuous_stats(values)
                if var.is_continuous
                else categorical_stats(values)
            )
            for stat, text in stats:
                col[(var.label, stat)] = text
                if (var.label, stat) not in order:
                    order.append((var.label, stat))
        columns[f"{name} (N={len(sub)})"] = col

    index = pd.MultiIndex.from_tuples(order, names=["Variable", ""])
    table = pd.DataFrame(
        {name: [col[row] for row in order] for name, col in columns.items()},
        index=index,
    )
    logger.debug(f"Summary table with {len(table)} rows and {len(subsets)} columns")
    return table
