"""Configuration Utilities

The report configuration is a structured omegaconf schema registered with
hydra's config store. The yaml files under ``conf/`` only select a format
group and override values; everything else falls back to the defaults here.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from dataclasses import dataclass, field
from typing import List, Optional

from hydra.core.config_store import ConfigStore
from omegaconf import OmegaConf

from colonsurv.utils import logging

logger = logging.get_default_logger("colonsurv.utils.config")

KM_COVARIATES = [
    "rx",
    "sex",
    "age_group",
    "obstruct",
    "perfor",
    "adhere",
    "differ",
    "extent",
    "surg",
    "node4",
]

MULTIVARIABLE_COVARIATES = [
    "rx",
    "obstruct",
    "adhere",
    "differ",
    "extent",
    "surg",
    "node4",
]

SUMMARY_VARIABLES = [
    "sex",
    "age",
    "age_group",
    "obstruct",
    "perfor",
    "adhere",
    "nodes",
    "differ",
    "extent",
    "surg",
    "node4",
]


@dataclass
class DataConfig:
    name: str = "colon"
    package: str = "survival"
    cache: Optional[str] = None
    csv_path: Optional[str] = None
    target_event: str = "death"


@dataclass
class AnalysisConfig:
    group: str = "rx"
    summary_variables: List[str] = field(default_factory=lambda: list(SUMMARY_VARIABLES))
    km_covariates: List[str] = field(default_factory=lambda: list(KM_COVARIATES))
    km_ncols: int = 2
    univariable: List[str] = field(default_factory=lambda: list(KM_COVARIATES))
    multivariable: List[str] = field(
        default_factory=lambda: list(MULTIVARIABLE_COVARIATES)
    )
    ci_z: float = 1.96
    alpha: float = 0.05
    time_transform: str = "km"
    stratify_violations: bool = True


@dataclass
class FormatConfig:
    name: str = "html"
    toc: bool = True
    toc_depth: int = 2
    toc_position: str = "float"
    theme: str = "default"
    plot_style: str = "whitegrid"
    dpi: int = 150
    paper: str = "a4"
    orientation: str = "portrait"
    page_template: Optional[str] = None


@dataclass
class ReportInfo:
    kind: str = "fixed_time"
    title: str = "Survival analysis of the colon cancer adjuvant chemotherapy trial"
    author: str = ""
    output_dir: str = "outputs/report"
    filename: str = "colon_survival"
    export_tables: bool = False


@dataclass
class ReportConfig:
    report: ReportInfo = field(default_factory=ReportInfo)
    data: DataConfig = field(default_factory=DataConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    format: FormatConfig = field(default_factory=FormatConfig)


def register_configs() -> None:
    """Register the report schema so yaml files can extend it."""
    logger.debug("Register the report configuration schema")
    cs = ConfigStore.instance()
    cs.store(name="report_schema", node=ReportConfig)


def default_config():
    """Return the default report configuration as a structured DictConfig."""
    return OmegaConf.structured(ReportConfig)
