"""Assemble the analysis results into report documents.

Two documents are produced: the fixed-time analysis of the colon trial and
a time-varying placeholder that carries only a title and a short narrative.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from dataclasses import dataclass, field
from typing import List, Optional

import matplotlib.pyplot as plt
import pandas as pd
from omegaconf import DictConfig

from colonsurv.analysis.assumptions import GLOBAL
from colonsurv.analysis.km import KMResult, km_medians
from colonsurv.data.variables import get_variable
from colonsurv.report.elements import Report
from colonsurv.utils.format import format_p


@dataclass
class AnalysisResults:
    """Everything the fixed-time report shows."""

    target_event: str
    n_raw: int
    n_event: int
    n_dropped: int
    n_analysed: int
    summary: pd.DataFrame
    km: List[KMResult]
    km_figure: plt.Figure
    univariable: pd.DataFrame
    multivariable: pd.DataFrame
    combined: pd.DataFrame
    forest: pd.DataFrame
    forest_figure: plt.Figure
    ph_test: pd.DataFrame
    schoenfeld_figure: plt.Figure
    model_fit: str = ""
    violations: List[str] = field(default_factory=list)
    stratified_ph_test: Optional[pd.DataFrame] = None
    stratified: Optional[pd.DataFrame] = None


def ph_display(result: pd.DataFrame) -> pd.DataFrame:
    """Label the terms of a proportional-hazards test for display."""
    out = pd.DataFrame(
        {
            "Chi-square": result["chisq"].map(lambda x: f"{x:.2f}"),
            "df": result["df"].astype(int),
            "p-value": result["p"].map(format_p),
        }
    )
    out.index = [
        "Global" if term == GLOBAL else get_variable(term).label for term in result.index
    ]
    out.index.name = "Term"
    return out


def _hr_display(tidy: pd.DataFrame) -> pd.DataFrame:
    rows = tidy[~tidy["reference"]]
    return pd.DataFrame(
        {
            "Characteristic": rows["label"].values,
            "Level": rows["level"].fillna("").values,
            "HR": rows["hr"].map(lambda x: f"{x:.2f}").values,
            "95% CI": [f"{lo:.2f}, {up:.2f}" for lo, up in zip(rows["lower"], rows["upper"])],
            "p-value": rows["p"].map(format_p).values,
        }
    )


def _labels(keys) -> str:
    return ", ".join(get_variable(k).label.lower() for k in keys)


def build_fixed_time_report(cfg: DictConfig, results: AnalysisResults) -> Report:
    """
    Lay out the fixed-time survival analysis.

    Args:
        cfg: The report configuration
        results: Output of the analysis steps

    Returns:
        Report: Sections for the data, the descriptive summary, Kaplan-Meier
        curves, Cox regression, the forest plot and the proportional-hazards
        checks
    """
    alpha = cfg.analysis.alpha
    report = Report(title=cfg.report.title, author=cfg.report.author)

    report.heading("Data")
    report.text(
        f"The colon cancer adjuvant chemotherapy trial holds {results.n_raw} records, "
        f"two per patient: one for recurrence and one for death. The analysis keeps "
        f"the {results.n_event} records of the '{results.target_event}' event."
    )
    if results.n_dropped:
        report.text(
            f"{results.n_dropped} records without a tumour differentiation grade were "
            f"excluded, leaving {results.n_analysed} patients for analysis."
        )
    else:
        report.text(
            f"Every record has a tumour differentiation grade; all "
            f"{results.n_analysed} patients are analysed."
        )

    report.heading("Descriptive summary")
    report.text(
        "Continuous characteristics are given as mean (SD), median [Q1, Q3] and "
        "range; categorical characteristics as n (%). Missing values are excluded."
    )
    report.table(results.summary, caption="Patient characteristics by treatment arm")

    report.heading("Kaplan-Meier curves")
    report.text(
        "Survival curves with 95% confidence bands, stratified by each characteristic. "
        "Dotted lines mark the median survival; the p-value is from a log-rank test "
        "across levels."
    )
    report.figure(results.km_figure, caption="Kaplan-Meier estimates by characteristic")
    report.heading("Median survival", level=2)
    report.table(km_medians(results.km), caption="Median survival in days (NR: not reached)")

    report.heading("Cox regression")
    multi_keys = list(results.multivariable["variable"].unique())
    report.text(
        "Hazard ratios with 95% confidence intervals computed as "
        f"exp(log(HR) ± {cfg.analysis.ci_z} × SE). Univariable models hold one "
        "characteristic each; the multivariable model adjusts for "
        f"{_labels(multi_keys)}."
    )
    report.table(results.combined, caption="Univariable and multivariable Cox models")
    if results.model_fit:
        report.heading("Multivariable model fit", level=2)
        report.preformatted(results.model_fit)

    report.heading("Forest plot")
    report.figure(
        results.forest_figure, caption="Hazard ratios of the multivariable Cox model"
    )

    report.heading("Proportional hazards assumption")
    report.text(
        "Scaled Schoenfeld residuals are tested against "
        f"{cfg.analysis.time_transform}-transformed time per term and globally. "
        f"A p-value below {alpha} indicates that the hazard ratio changes over time."
    )
    report.table(ph_display(results.ph_test), caption="Test of proportional hazards")
    report.figure(
        results.schoenfeld_figure,
        caption="Scaled Schoenfeld residuals with a LOWESS smooth; "
        "a flat smooth is expected under proportional hazards",
    )

    if not results.violations:
        report.text(f"No term violates the assumption at the {alpha} level.")
    elif results.stratified is None:
        report.text(f"Terms violating the assumption: {_labels(results.violations)}.")
    else:
        report.heading("Stratified sensitivity analysis", level=2)
        report.text(
            f"The model is refitted with {_labels(results.violations)} as strata, "
            "each stratum with its own baseline hazard and no coefficient."
        )
        report.table(_hr_display(results.stratified), caption="Stratified Cox model")
        report.table(
            ph_display(results.stratified_ph_test),
            caption="Test of proportional hazards after stratification",
        )
    return report


def build_time_varying_report(cfg: DictConfig) -> Report:
    """The time-varying document: a title and a placeholder narrative."""
    report = Report(title=cfg.report.title, author=cfg.report.author)
    report.heading("Time-varying survival analysis")
    report.text(
        "This document is reserved for an analysis with time-varying covariates "
        "and time-dependent effects of the colon trial. It has no analysis yet."
    )
    return report
