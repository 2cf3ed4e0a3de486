"""Cox proportional-hazards regression.

Categorical and binary covariates are one-hot encoded against their
reference level; parameters are named ``key[level]``. Hazard ratios are
reported with normal-approximation confidence intervals on the log-hazard
scale, ``exp(log(HR) +/- z * se)``.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from dataclasses import dataclass, field
from logging import DEBUG, ERROR
from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd
from lifelines import CoxPHFitter
from logdecorator import log_on_end, log_on_error, log_on_start

from colonsurv.data.variables import get_variable
from colonsurv.utils import logging
from colonsurv.utils.format import NO_VALUE, format_ci, format_hr, format_p

logger = logging.get_default_logger()

DURATION_COL = "time"
EVENT_COL = "status"


@dataclass
class Design:
    """Model frame of a Cox fit and the parameters that belong to each term."""

    frame: pd.DataFrame
    terms: Dict[str, List[str]] = field(default_factory=dict)
    strata: List[str] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    duration_col: str = DURATION_COL
    event_col: str = EVENT_COL

    @property
    def params(self) -> List[str]:
        return [p for params in self.terms.values() for p in params]


def param_name(key: str, level) -> str:
    return f"{key}[{level}]"


def design_matrix(
    df: pd.DataFrame,
    keys: Sequence[str],
    strata: Sequence[str] = (),
    duration_col: str = DURATION_COL,
    event_col: str = EVENT_COL,
) -> Design:
    """
    Build the model frame for a Cox fit.

    Args:
        df: The analysis table
        keys: Variable keys entering the model with coefficients
        strata: Variable keys entering as strata (integer level codes)
        duration_col: Time-to-event column
        event_col: Event indicator column

    Returns:
        Design: The frame and the term -> parameter mapping
    """
    frame = pd.DataFrame(
        {
            duration_col: df[duration_col].astype(float),
            event_col: df[event_col].astype(int),
        },
        index=df.index,
    )
    raw = {}
    for key in list(keys) + list(strata):
        raw[key] = get_variable(key).values(df)

    complete = pd.concat(raw, axis=1).notna().all(axis=1) if raw else None
    if complete is not None and not complete.all():
        logger.info(f"Dropped {int((~complete).sum())} records with missing covariates")
        frame = frame[complete].copy()
        raw = {k: v[complete] for k, v in raw.items()}

    design = Design(frame=frame, duration_col=duration_col, event_col=event_col)
    for key in keys:
        var = get_variable(key)
        values = raw[key]
        if var.is_continuous:
            design.frame[key] = values
            design.terms[key] = [key]
            design.counts[key] = int(values.notna().sum())
            continue
        params = []
        for level in var.levels:
            design.counts[param_name(key, level)] = int((values == level).sum())
            if level == var.reference:
                continue
            name = param_name(key, level)
            design.frame[name] = (values == level).astype(int)
            params.append(name)
        design.terms[key] = params

    for key in strata:
        if get_variable(key).is_continuous:
            raise ValueError(f"Cannot stratify by continuous variable '{key}'")
        design.frame[key] = raw[key].cat.codes.astype(int)
        design.strata.append(key)

    return design


@log_on_start(DEBUG, "Fit Cox model on {keys}...", logger=logger)
@log_on_error(
    ERROR,
    "Error fitting Cox model: {e!r}",
    logger=logger,
    on_exceptions=Exception,
    reraise=True,
)
@log_on_end(DEBUG, "done!", logger=logger)
def fit_cox(
    df: pd.DataFrame, keys: Sequence[str], strata: Sequence[str] = ()
) -> Tuple[CoxPHFitter, Design]:
    """
    Fit a Cox proportional-hazards model.

    Args:
        df: The analysis table
        keys: Covariates with coefficients
        strata: Covariates entering as strata (own baseline hazard, no coefficient)

    Returns:
        Tuple[CoxPHFitter, Design]: The fitted model and its design
    """
    design = design_matrix(df, keys, strata=strata)
    cph = CoxPHFitter()
    cph.fit(
        design.frame,
        duration_col=design.duration_col,
        event_col=design.event_col,
        strata=list(design.strata) or None,
    )
    return cph, design


def confidence_interval(hr, se, z: float = 1.96):
    """Normal-approximation interval ``exp(log(hr) -/+ z * se)``."""
    log_hr = np.log(hr)
    return np.exp(log_hr - z * se), np.exp(log_hr + z * se)


def hazard_ratios(cph: CoxPHFitter, design: Design, z: float = 1.96) -> pd.DataFrame:
    """
    Tidy hazard-ratio table of a fitted model.

    Categorical terms get one row per level, including a synthetic reference
    row with HR 1, interval [1, 1] and no p-value, placed first.

    Returns:
        pd.DataFrame: Columns ``variable``, ``label``, ``level``, ``param``,
        ``n``, ``hr``, ``lower``, ``upper``, ``p``, ``reference``
    """
    summary = cph.summary
    rows = []
    for key, params in design.terms.items():
        var = get_variable(key)
        if var.is_continuous:
            levels = [(None, key)]
        else:
            levels = [(level, param_name(key, level)) for level in var.levels]
        for level, param in levels:
            row = {
                "variable": key,
                "label": var.label,
                "level": level,
                "param": param,
                "n": design.counts.get(param, 0),
            }
            if param in params:
                hr = float(summary.loc[param, "exp(coef)"])
                se = float(summary.loc[param, "se(coef)"])
                lower, upper = confidence_interval(hr, se, z)
                row.update(
                    hr=hr,
                    lower=float(lower),
                    upper=float(upper),
                    p=float(summary.loc[param, "p"]),
                    reference=False,
                )
            else:
                row.update(hr=1.0, lower=1.0, upper=1.0, p=np.nan, reference=True)
            rows.append(row)
    return pd.DataFrame(rows)


def univariable_table(
    df: pd.DataFrame, keys: Sequence[str], z: float = 1.96
) -> pd.DataFrame:
    """One single-covariate fit per key, stacked into one table."""
    tables = []
    for key in keys:
        cph, design = fit_cox(df, [key])
        table = hazard_ratios(cph, design, z)
        table["N"] = len(design.frame)
        tables.append(table)
    return pd.concat(tables, ignore_index=True)


def multivariable_table(
    df: pd.DataFrame, keys: Sequence[str], z: float = 1.96
) -> Tuple[pd.DataFrame, CoxPHFitter, Design]:
    """Fit all ``keys`` jointly; returns the tidy table, the model and its design."""
    cph, design = fit_cox(df, keys)
    table = hazard_ratios(cph, design, z)
    table["N"] = len(design.frame)
    return table, cph, design


def model_fit_summary(cph: CoxPHFitter) -> str:
    """Plain-text fit statistics of a Cox model."""
    lr = cph.log_likelihood_ratio_test()
    p = format_p(lr.p_value)
    return "\n".join(
        [
            f"n = {len(cph.durations)}, events = {int(cph.event_observed.sum())}",
            f"Concordance = {cph.concordance_index_:.3f}",
            f"Partial AIC = {cph.AIC_partial_:.2f}",
            f"Likelihood ratio test = {lr.test_statistic:.2f} "
            f"on {len(cph.params_)} df, p{'' if p.startswith('<') else ' = '}{p}",
        ]
    )


def _display(table: pd.DataFrame) -> pd.DataFrame:
    out = pd.DataFrame(index=table.index)
    out["HR"] = [
        NO_VALUE if ref else format_hr(hr)
        for ref, hr in zip(table["reference"], table["hr"])
    ]
    out["95% CI"] = [
        NO_VALUE if ref else format_ci(lo, up)
        for ref, lo, up in zip(table["reference"], table["lower"], table["upper"])
    ]
    out["p-value"] = table["p"].map(format_p)
    return out


def combined_table(univariable: pd.DataFrame, multivariable: pd.DataFrame) -> pd.DataFrame:
    """
    Place univariable and multivariable results side by side.

    Rows follow the univariable table, then any terms fitted only in the
    multivariable model. A side without a row for a term is left blank.

    Returns:
        pd.DataFrame: Row index (Characteristic, Level) and column groups
        ``Univariable`` and ``Multivariable``, each with HR, 95% CI and p-value
    """
    uni = _display(univariable)
    uni.index = pd.MultiIndex.from_arrays(
        [univariable["variable"], univariable["level"].fillna("")]
    )
    multi = _display(multivariable)
    multi.index = pd.MultiIndex.from_arrays(
        [multivariable["variable"], multivariable["level"].fillna("")]
    )
    extra = multi.index.difference(uni.index, sort=False)
    if len(extra):
        logger.info(
            f"Terms without a univariable fit: {list(extra.get_level_values(0).unique())}"
        )
    index = uni.index.append(extra)

    combined = pd.concat(
        {
            "Univariable": uni.reindex(index).fillna(""),
            "Multivariable": multi.reindex(index).fillna(""),
        },
        axis=1,
    )
    n = pd.concat(
        [
            pd.Series(univariable["N"].values, index=uni.index),
            pd.Series(multivariable["N"].values, index=multi.index).loc[extra],
        ]
    )
    combined.index = pd.MultiIndex.from_arrays(
        [
            [get_variable(k).label for k in index.get_level_values(0)],
            index.get_level_values(1),
        ],
        names=["Characteristic", "Level"],
    )
    combined.insert(0, ("", "N"), n.values)
    return combined
