"""Forest plot of the multivariable hazard ratios."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from colonsurv.data.variables import get_variable
from colonsurv.utils import logging
from colonsurv.utils.format import format_estimate

logger = logging.get_default_logger()

TOTAL = "total"
HEADER = "header"
LEVEL = "level"

TICKS = [0.1, 0.25, 0.5, 1.0, 2.0, 4.0, 8.0, 16.0]


def forest_table(tidy: pd.DataFrame, n_total: int) -> pd.DataFrame:
    """
    Reshape a tidy hazard-ratio table into the rows of a forest plot.

    The first row carries the number of participants, each predictor opens
    with a header row and is followed by one row per category. Reference
    categories keep HR 1 and the interval [1, 1] and display ``Ref.``.

    Args:
        tidy: Output of :func:`colonsurv.analysis.cox.hazard_ratios`
        n_total: Number of participants in the model

    Returns:
        pd.DataFrame: Columns ``label``, ``n``, ``hr``, ``lower``, ``upper``,
        ``p``, ``estimate``, ``kind`` and ``reference``
    """
    rows = [
        {
            "label": f"N = {n_total}",
            "n": n_total,
            "hr": np.nan,
            "lower": np.nan,
            "upper": np.nan,
            "p": np.nan,
            "estimate": "",
            "kind": TOTAL,
            "reference": False,
        }
    ]
    for key, group in tidy.groupby("variable", sort=False):
        var = get_variable(key)
        rows.append(
            {
                "label": var.label,
                "n": np.nan,
                "hr": np.nan,
                "lower": np.nan,
                "upper": np.nan,
                "p": np.nan,
                "estimate": "",
                "kind": HEADER,
                "reference": False,
            }
        )
        for rec in group.itertuples(index=False):
            label = "Per unit increase" if var.is_continuous else str(rec.level)
            rows.append(
                {
                    "label": label,
                    "n": rec.n,
                    "hr": rec.hr,
                    "lower": rec.lower,
                    "upper": rec.upper,
                    "p": rec.p,
                    "estimate": format_estimate(
                        rec.hr, rec.lower, rec.upper, reference=rec.reference
                    ),
                    "kind": LEVEL,
                    "reference": bool(rec.reference),
                }
            )
    return pd.DataFrame(rows)


def _xlimits(table: pd.DataFrame):
    levels = table[table["kind"] == LEVEL]
    lo = np.nanmin(levels["lower"].values) if len(levels) else 0.5
    hi = np.nanmax(levels["upper"].values) if len(levels) else 2.0
    return min(lo, 1.0) / 1.2, max(hi, 1.0) * 1.2


def plot_forest(table: pd.DataFrame, title: Optional[str] = None) -> plt.Figure:
    """
    Render a forest-plot table.

    Columns from left to right: characteristic, N, the hazard ratios on a log
    scale with a reference line at 1, a blank spacer and the ``HR (95% CI)``
    text. The header row sits above a horizontal rule; predictor headers and
    the participant count are bold.
    """
    n_rows = len(table)
    height = max(3.0, 0.32 * (n_rows + 2))
    fig, axes = plt.subplots(
        1,
        5,
        figsize=(12, height),
        gridspec_kw={"width_ratios": [3.2, 0.8, 4.0, 0.3, 2.4], "wspace": 0.02},
        sharey=True,
    )
    ax_label, ax_n, ax_plot, ax_spacer, ax_text = axes
    ylim = (n_rows + 0.5, -0.5)

    for ax in (ax_label, ax_n, ax_spacer, ax_text):
        ax.set_axis_off()
        ax.set_xlim(0, 1)

    # header row at y=0, body rows from y=1
    ax_label.text(0, 0, "Characteristic", ha="left", va="center", fontweight="bold")
    ax_n.text(1, 0, "N", ha="right", va="center", fontweight="bold")
    ax_text.text(1, 0, "HR (95% CI)", ha="right", va="center", fontweight="bold")

    for i, rec in enumerate(table.itertuples(index=False), start=1):
        bold = rec.kind in (TOTAL, HEADER)
        indent = 0.0 if bold else 0.06
        ax_label.text(
            indent,
            i,
            rec.label,
            ha="left",
            va="center",
            fontweight="bold" if bold else "normal",
        )
        if rec.kind == LEVEL:
            if not pd.isna(rec.n):
                ax_n.text(1, i, f"{int(rec.n)}", ha="right", va="center")
            ax_text.text(1, i, rec.estimate, ha="right", va="center")
            if rec.reference:
                ax_plot.plot(1.0, i, marker="D", mfc="white", mec="black", ms=5)
            else:
                ax_plot.hlines(i, rec.lower, rec.upper, color="black", linewidth=1.2)
                ax_plot.plot(rec.hr, i, marker="s", color="black", ms=5)

    ax_plot.axvline(1.0, color="grey", linestyle="--", linewidth=1)
    ax_plot.set_xscale("log")
    lo, hi = _xlimits(table)
    ax_plot.set_xlim(lo, hi)
    ticks = [t for t in TICKS if lo <= t <= hi]
    ax_plot.set_xticks(ticks)
    ax_plot.set_xticklabels([f"{t:g}" for t in ticks])
    ax_plot.minorticks_off()
    ax_plot.set_xlabel("Hazard ratio (log scale)")
    ax_plot.tick_params(axis="y", left=False, labelleft=False)
    for side in ("left", "right", "top"):
        ax_plot.spines[side].set_visible(False)

    for ax in axes:
        ax.set_ylim(*ylim)
        ax.axhline(0.5, color="black", linewidth=0.8)

    if title:
        fig.suptitle(title, fontweight="bold")
    logger.debug(f"Forest plot with {n_rows} rows")
    return fig
