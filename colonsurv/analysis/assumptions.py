"""Proportional-hazards assumption checks based on scaled Schoenfeld residuals.

The test follows Grambsch and Therneau (1994): the scaled Schoenfeld
residuals of a covariate are regressed on a transform of event time. Under
proportional hazards the slope is zero. Multi-level factors are tested
jointly with one degree of freedom per parameter, and a global test covers
all parameters of the model. For single-parameter terms the statistic is the
one computed by :func:`lifelines.statistics.proportional_hazard_test`.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import math
from logging import DEBUG
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from lifelines import CoxPHFitter, KaplanMeierFitter
from logdecorator import log_on_end, log_on_start
from scipy.stats import chi2, rankdata
from statsmodels.nonparametric.smoothers_lowess import lowess

from colonsurv.analysis.cox import Design, fit_cox
from colonsurv.data.variables import get_variable
from colonsurv.utils import logging

logger = logging.get_default_logger()

GLOBAL = "GLOBAL"


def _km_transform(times, durations, events):
    kmf = KaplanMeierFitter().fit(durations, events)
    return 1 - np.nan_to_num(kmf.survival_function_at_times(times).values)


def _rank_transform(times, durations, events):
    # event times only, ties broken in residual order as lifelines does
    return rankdata(np.asarray(times, dtype=float), method="ordinal")


TIME_TRANSFORMS: Dict[str, Callable] = {
    "km": _km_transform,
    "rank": _rank_transform,
    "identity": lambda times, durations, events: np.asarray(times, dtype=float),
    "log": lambda times, durations, events: np.log(np.asarray(times, dtype=float)),
}


def scaled_residuals(cph: CoxPHFitter, design: Design) -> Tuple[pd.DataFrame, pd.Series]:
    """Scaled Schoenfeld residuals and the event time of each residual row."""
    resid = cph.compute_residuals(design.frame, kind="scaled_schoenfeld")
    times = design.frame.loc[resid.index, design.duration_col]
    return resid, times


def check_proportional_hazards(
    cph: CoxPHFitter, design: Design, time_transform: str = "km"
) -> pd.DataFrame:
    """
    Test the proportional-hazards assumption per model term and globally.

    Args:
        cph: A fitted Cox model
        design: The design the model was fitted on
        time_transform: ``km``, ``rank``, ``identity`` or ``log``

    Returns:
        pd.DataFrame: Indexed by term key plus ``GLOBAL``, with columns
        ``chisq``, ``df`` and ``p``
    """
    if time_transform not in TIME_TRANSFORMS:
        raise ValueError(
            f"Unknown time transform '{time_transform}'. "
            f"Choose one of {list(TIME_TRANSFORMS)}"
        )

    resid, times = scaled_residuals(cph, design)
    frame = design.frame
    g = TIME_TRANSFORMS[time_transform](
        times.values, frame[design.duration_col], frame[design.event_col]
    )
    g = np.asarray(g, dtype=float) - np.mean(g)

    n_events = len(resid)
    params = list(cph.params_.index)
    # a constant offset of the residuals cancels because g is centred
    w = pd.Series(g @ resid[params].values, index=params)
    variance = cph.variance_matrix_.loc[params, params]
    denom = n_events * np.sum(g**2)

    def statistic(cols: List[str]) -> Tuple[float, int, float]:
        v = variance.loc[cols, cols].values
        stat = float(w[cols].values @ np.linalg.solve(v, w[cols].values) / denom)
        dof = len(cols)
        return stat, dof, float(chi2.sf(stat, dof))

    rows = {}
    for key, cols in design.terms.items():
        rows[key] = statistic(cols)
    rows[GLOBAL] = statistic(params)

    result = pd.DataFrame.from_dict(rows, orient="index", columns=["chisq", "df", "p"])
    result["df"] = result["df"].astype(int)
    result.index.name = "term"
    logger.debug(f"Proportional hazards test ({time_transform}):\n{result}")
    return result


def violations(result: pd.DataFrame, alpha: float = 0.05) -> List[str]:
    """Terms whose test rejects proportional hazards at level ``alpha``."""
    terms = result.drop(index=GLOBAL, errors="ignore")
    return list(terms.index[terms["p"] < alpha])


def plot_schoenfeld(
    cph: CoxPHFitter, design: Design, ncols: int = 3, frac: float = 0.4
) -> plt.Figure:
    """
    Plot scaled Schoenfeld residuals against event time, one panel per term.

    Each parameter of a term gets its residuals and a LOWESS smooth in its
    own colour, so a multi-level factor shares one panel. A flat smooth
    around the zero line is expected under proportional hazards.
    """
    resid, times = scaled_residuals(cph, design)
    terms = design.terms
    nrows = max(1, math.ceil(len(terms) / ncols))
    fig, axes = plt.subplots(
        nrows, ncols, figsize=(5 * ncols, 3.8 * nrows), squeeze=False
    )
    order = np.argsort(times.values)
    t = times.values[order]
    for ax, (key, params) in zip(axes.flat, terms.items()):
        for i, param in enumerate(params):
            r = resid[param].values[order]
            ax.scatter(t, r, s=8, alpha=0.3, color=f"C{i}", edgecolors="none")
            smoothed = lowess(r, t, frac=frac)
            ax.plot(
                smoothed[:, 0], smoothed[:, 1], color=f"C{i}", linewidth=2, label=param
            )
        ax.axhline(0, color="grey", linestyle=":", linewidth=1)
        ax.set_title(get_variable(key).label, fontsize=10)
        ax.set_xlabel("Time (days)")
        ax.set_ylabel("Scaled residual")
        if len(params) > 1:
            ax.legend(fontsize=7, frameon=False)
    for ax in list(axes.flat)[len(terms) :]:
        ax.set_visible(False)
    fig.tight_layout()
    return fig


@log_on_start(DEBUG, "Refit with strata {strata}...", logger=logger)
@log_on_end(DEBUG, "done!", logger=logger)
def stratified_refit(
    df: pd.DataFrame, keys: Sequence[str], strata: Sequence[str]
) -> Tuple[CoxPHFitter, Design]:
    """
    Refit a model with ``strata`` moved out of the covariates.

    Each stratum gets its own baseline hazard and contributes no coefficient.
    """
    unknown = [k for k in strata if k not in keys]
    if unknown:
        raise ValueError(f"Strata {unknown} are not covariates of the model")
    remaining = [k for k in keys if k not in strata]
    if not remaining:
        raise ValueError("No covariates left after stratification")
    return fit_cox(df, remaining, strata=strata)
