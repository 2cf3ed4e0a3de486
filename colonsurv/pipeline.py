"""Survival analysis report of the colon cancer trial

Runs the analysis steps in order and writes the report document:

1. load and clean the records
2. summarise the patients per treatment arm
3. Kaplan-Meier curves per characteristic
4. univariable and multivariable Cox models
5. forest plot of the multivariable hazard ratios
6. proportional-hazards checks with an optional stratified refit

Usage: ``python -m colonsurv.pipeline format=pdf``, or
``--config-name report_time_varying`` for the time-varying document.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import json
import os
import shutil
import tempfile
from logging import DEBUG, ERROR
from pathlib import Path

import hydra
from logdecorator import log_on_end, log_on_error, log_on_start
from omegaconf import DictConfig, OmegaConf

from colonsurv.analysis.assumptions import (
    check_proportional_hazards,
    plot_schoenfeld,
    stratified_refit,
    violations,
)
from colonsurv.analysis.cox import (
    combined_table,
    hazard_ratios,
    model_fit_summary,
    multivariable_table,
    univariable_table,
)
from colonsurv.analysis.forest import forest_table, plot_forest
from colonsurv.analysis.km import fit_km, km_medians, plot_km_grid
from colonsurv.analysis.summary import summary_table
from colonsurv.data.clean import clean
from colonsurv.data.load import load_dataset
from colonsurv.report.build import (
    AnalysisResults,
    build_fixed_time_report,
    build_time_varying_report,
)
from colonsurv.report.themes import apply_plot_style
from colonsurv.report.writer import write_report
from colonsurv.utils import config, logging

logger = logging.get_default_logger()

FIXED_TIME = "fixed_time"
TIME_VARYING = "time_varying"


def analyse(cfg: DictConfig) -> AnalysisResults:
    """
    Run the fixed-time analysis.

    Args:
        cfg: The report configuration

    Returns:
        AnalysisResults: Tables and figures of every analysis step
    """
    acfg = cfg.analysis
    raw = load_dataset(cfg.data)
    df = clean(raw, target_event=cfg.data.target_event)
    n_event = len(df) + df.attrs["n_dropped_differ"]

    summary = summary_table(df, list(acfg.summary_variables), group=acfg.group)

    km = [fit_km(df, key) for key in acfg.km_covariates]
    km_figure = plot_km_grid(km, ncols=acfg.km_ncols)

    univariable = univariable_table(df, list(acfg.univariable), z=acfg.ci_z)
    multivariable, cph, design = multivariable_table(
        df, list(acfg.multivariable), z=acfg.ci_z
    )
    combined = combined_table(univariable, multivariable)
    logger.info(f"Multivariable model:\n{cph.summary[['exp(coef)', 'p']]}")

    forest = forest_table(multivariable, n_total=len(design.frame))
    forest_figure = plot_forest(forest)

    ph_test = check_proportional_hazards(cph, design, time_transform=acfg.time_transform)
    schoenfeld_figure = plot_schoenfeld(cph, design)
    violating = violations(ph_test, alpha=acfg.alpha)
    logger.info(f"Terms violating proportional hazards: {violating}")

    results = AnalysisResults(
        target_event=cfg.data.target_event,
        n_raw=len(raw),
        n_event=n_event,
        n_dropped=df.attrs["n_dropped_differ"],
        n_analysed=len(df),
        summary=summary,
        km=km,
        km_figure=km_figure,
        univariable=univariable,
        multivariable=multivariable,
        combined=combined,
        forest=forest,
        forest_figure=forest_figure,
        ph_test=ph_test,
        schoenfeld_figure=schoenfeld_figure,
        model_fit=model_fit_summary(cph),
        violations=violating,
    )

    remaining = [k for k in acfg.multivariable if k not in violating]
    if acfg.stratify_violations and violating and remaining:
        cph_s, design_s = stratified_refit(df, list(acfg.multivariable), violating)
        results.stratified = hazard_ratios(cph_s, design_s, z=acfg.ci_z)
        results.stratified_ph_test = check_proportional_hazards(
            cph_s, design_s, time_transform=acfg.time_transform
        )
    return results


def _write_tables(results: AnalysisResults, tables_dir: Path) -> None:
    results.summary.to_csv(tables_dir / "summary.csv")
    km_medians(results.km).to_csv(tables_dir / "km_medians.csv", index=False)
    results.univariable.to_csv(tables_dir / "univariable.csv", index=False)
    results.multivariable.to_csv(tables_dir / "multivariable.csv", index=False)
    results.forest.to_csv(tables_dir / "forest.csv", index=False)
    results.ph_test.to_csv(tables_dir / "ph_test.csv")

    tests = {
        "n_raw": results.n_raw,
        "n_event": results.n_event,
        "n_dropped_differ": results.n_dropped,
        "n_analysed": results.n_analysed,
        "logrank_p": {r.key: r.logrank_p for r in results.km},
        "ph_test": results.ph_test.to_dict(orient="index"),
        "violations": results.violations,
    }
    if results.stratified_ph_test is not None:
        results.stratified.to_csv(tables_dir / "stratified.csv", index=False)
        tests["stratified_ph_test"] = results.stratified_ph_test.to_dict(orient="index")
    with (tables_dir / "tests.json").open("w") as f:
        json.dump(tests, f, ensure_ascii=False, indent=4, cls=logging.NpEncoder)


def export_tables(results: AnalysisResults, output_dir) -> Path:
    """
    Write the result tables as CSV and the test results as JSON.

    The files go to a staging directory that replaces ``<output_dir>/tables``
    once all of them are written; on failure the staging directory is removed.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    tables_dir = output_dir / "tables"
    staging = Path(tempfile.mkdtemp(prefix=".tables.", dir=output_dir))
    try:
        _write_tables(results, staging)
        if tables_dir.exists():
            shutil.rmtree(tables_dir)
        os.replace(staging, tables_dir)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    logger.info(f"Tables exported to {tables_dir}")
    return tables_dir


def generate_report(cfg: DictConfig) -> Path:
    """
    Produce the configured report document.

    Tables are exported only once the document is written; if the export
    fails the document is removed again.

    Returns:
        Path: The written document
    """
    logger.debug(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")
    fmt = cfg.format
    apply_plot_style(fmt.plot_style, fmt.dpi)

    results = None
    if cfg.report.kind == TIME_VARYING:
        report = build_time_varying_report(cfg)
    elif cfg.report.kind == FIXED_TIME:
        results = analyse(cfg)
        report = build_fixed_time_report(cfg, results)
    else:
        raise ValueError(
            f"Unknown report kind '{cfg.report.kind}'. "
            f"Choose one of {[FIXED_TIME, TIME_VARYING]}"
        )

    try:
        path = write_report(report, fmt, cfg.report.output_dir, cfg.report.filename)
    finally:
        report.close()

    if results is not None and cfg.report.export_tables:
        try:
            export_tables(results, cfg.report.output_dir)
        except BaseException:
            path.unlink()
            raise
    return path


config.register_configs()


@log_on_start(DEBUG, "Start generating the report...")
@log_on_error(
    ERROR,
    "Error during report generation: {e!r}",
    on_exceptions=Exception,
    reraise=True,
)
@log_on_end(DEBUG, "done!")
@hydra.main(version_base=None, config_path="../conf", config_name="report.yaml")
def run_report(cfg: DictConfig) -> None:
    logging.set_verbosity(logging.INFO)
    generate_report(cfg)


if __name__ == "__main__":
    run_report()
