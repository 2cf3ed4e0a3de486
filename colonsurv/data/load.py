"""Load the colon trial dataset"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from logging import DEBUG, ERROR

import pandas as pd
import statsmodels.api as sm
from logdecorator import log_on_end, log_on_error, log_on_start
from omegaconf import DictConfig

from colonsurv.utils import logging

logger = logging.get_default_logger()

REQUIRED_COLUMNS = [
    "id",
    "rx",
    "sex",
    "age",
    "obstruct",
    "perfor",
    "adhere",
    "nodes",
    "status",
    "differ",
    "extent",
    "surg",
    "node4",
    "time",
    "etype",
]

NUMERIC_COLUMNS = [c for c in REQUIRED_COLUMNS if c != "rx"]


def validate_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Check that every required field is present and numeric where expected.

    Args:
        df: Raw records

    Returns:
        pd.DataFrame: ``df`` with the numeric columns coerced to numbers

    Raises:
        KeyError: if required columns are absent
        ValueError: if a numeric column holds non-numeric values
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(f"Dataset is missing required columns: {missing}")

    df = df.copy()
    for col in NUMERIC_COLUMNS:
        # raises ValueError on values that cannot be converted
        df[col] = pd.to_numeric(df[col])
    df["rx"] = df["rx"].astype(str)
    return df


def check_two_rows_per_subject(df: pd.DataFrame) -> bool:
    """Warn when a subject does not contribute exactly one row per event type."""
    counts = df.groupby("id")["etype"].nunique()
    sizes = df.groupby("id").size()
    ok = bool(((counts == 2) & (sizes == 2)).all())
    if not ok:
        bad = int(((counts != 2) | (sizes != 2)).sum())
        logger.warning(f"{bad} subjects do not have exactly two rows (one per event)")
    return ok


@log_on_start(DEBUG, "Load dataset...", logger=logger)
@log_on_error(
    ERROR,
    "Error loading dataset: {e!r}",
    logger=logger,
    on_exceptions=Exception,
    reraise=True,
)
@log_on_end(DEBUG, "done!", logger=logger)
def load_dataset(cfg: DictConfig) -> pd.DataFrame:
    """
    Load the raw colon records.

    A local CSV takes precedence; otherwise the dataset is fetched by name
    from the R datasets collection through statsmodels, which caches it when
    ``cfg.cache`` names a directory.

    Args:
        cfg: The ``data`` section of the report configuration

    Returns:
        pd.DataFrame: Raw records, two rows per subject
    """
    if cfg.csv_path:
        logger.info(f"Read dataset from {cfg.csv_path}")
        df = pd.read_csv(cfg.csv_path)
    else:
        logger.info(f"Fetch dataset {cfg.package}::{cfg.name}")
        cache = cfg.cache if cfg.cache else False
        df = sm.datasets.get_rdataset(cfg.name, cfg.package, cache=cache).data

    df = df.drop(columns=[c for c in ("rownames", "Unnamed: 0") if c in df.columns])
    df = validate_columns(df).reset_index(drop=True)
    logger.info(f"Loaded {len(df)} records for {df['id'].nunique()} subjects")
    check_two_rows_per_subject(df)
    return df
