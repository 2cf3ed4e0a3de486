"""Kaplan-Meier survival curves stratified by a covariate.

Each covariate gets its own set of Kaplan-Meier fits, one per level, a
multi-group log-rank test and the median survival of every level. The
panels of all covariates are combined into a single grid figure.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from lifelines import KaplanMeierFitter
from lifelines.plotting import add_at_risk_counts
from lifelines.statistics import multivariate_logrank_test

from colonsurv.data.variables import get_variable
from colonsurv.utils import logging
from colonsurv.utils.format import format_p

logger = logging.get_default_logger()


@dataclass
class KMResult:
    """Kaplan-Meier fits of one covariate."""

    key: str
    label: str
    fitters: List[KaplanMeierFitter] = field(default_factory=list)
    logrank_p: float = float("nan")
    medians: Dict[str, float] = field(default_factory=dict)


def fit_km(
    df: pd.DataFrame,
    key: str,
    duration_col: str = "time",
    event_col: str = "status",
) -> KMResult:
    """
    Fit one Kaplan-Meier curve per level of a covariate.

    Args:
        df: The analysis table
        key: Variable key of a categorical or binary covariate
        duration_col: Time-to-event column
        event_col: Event indicator column (1=event, 0=censored)

    Returns:
        KMResult: The fits in level order, the log-rank p-value and medians
    """
    var = get_variable(key)
    if var.is_continuous:
        raise ValueError(f"Cannot stratify Kaplan-Meier curves by continuous '{key}'")

    groups = var.values(df)
    mask = groups.notna()
    durations = df.loc[mask, duration_col]
    events = df.loc[mask, event_col]
    groups = groups[mask]

    result = KMResult(key=key, label=var.label)
    for level in var.levels:
        sel = groups == level
        if not sel.any():
            logger.warning(f"No subjects at level '{level}' of {key}")
            continue
        kmf = KaplanMeierFitter()
        kmf.fit(durations[sel], event_observed=events[sel], label=str(level))
        result.fitters.append(kmf)
        result.medians[str(level)] = float(kmf.median_survival_time_)

    if len(result.fitters) > 1:
        test = multivariate_logrank_test(durations, groups.astype(str), events)
        result.logrank_p = float(test.p_value)
    logger.debug(f"{key}: log-rank p={result.logrank_p:.4g}")
    return result


def plot_km(
    result: KMResult, ax: Optional[plt.Axes] = None, time_label: str = "Time (days)"
) -> plt.Axes:
    """Draw the curves of one covariate with bands, medians and an at-risk table."""
    if ax is None:
        _, ax = plt.subplots(figsize=(7, 5))

    for kmf in result.fitters:
        kmf.plot_survival_function(ax=ax, ci_show=True, show_censors=True)
        median = kmf.median_survival_time_
        if np.isfinite(median):
            ax.hlines(0.5, 0, median, colors="grey", linestyles=":", linewidth=1)
            ax.vlines(median, 0, 0.5, colors="grey", linestyles=":", linewidth=1)

    ax.set_title(result.label)
    ax.set_xlabel(time_label)
    ax.set_ylabel("Survival probability")
    ax.set_ylim(0, 1.05)
    ax.text(
        0.03,
        0.05,
        f"Log-rank p = {format_p(result.logrank_p)}",
        transform=ax.transAxes,
    )
    ax.legend(loc="upper right", fontsize=8)
    if result.fitters:
        add_at_risk_counts(*result.fitters, ax=ax, rows_to_show=["At risk"])
    return ax


def plot_km_grid(results: Sequence[KMResult], ncols: int = 2) -> plt.Figure:
    """Combine the panels of several covariates into one grid figure."""
    nrows = max(1, math.ceil(len(results) / ncols))
    fig, axes = plt.subplots(nrows, ncols, figsize=(7 * ncols, 5.5 * nrows), squeeze=False)
    for ax, result in zip(axes.flat, results):
        plot_km(result, ax=ax)
    for ax in list(axes.flat)[len(results) :]:
        ax.set_visible(False)
    fig.tight_layout(h_pad=6.0)
    return fig


def km_medians(results: Sequence[KMResult]) -> pd.DataFrame:
    """Median survival and log-rank p-value per covariate level."""
    rows = []
    for result in results:
        for level, median in result.medians.items():
            rows.append(
                {
                    "Variable": result.label,
                    "Level": level,
                    "Median survival": "NR" if np.isinf(median) else f"{median:.0f}",
                    "Log-rank p": format_p(result.logrank_p),
                }
            )
    return pd.DataFrame(rows)
