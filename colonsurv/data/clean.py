"""Turn the raw colon records into the analysis table."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from logging import DEBUG

import pandas as pd
from logdecorator import log_on_end, log_on_start

from colonsurv.data import labels
from colonsurv.utils import logging

logger = logging.get_default_logger()

EVENT_TYPES = {"recurrence": 1, "death": 2}


def event_code(target_event: str) -> int:
    """Return the ``etype`` code of a named event type."""
    try:
        return EVENT_TYPES[target_event]
    except KeyError:
        raise ValueError(
            f"Unknown target event '{target_event}'. Choose one of {list(EVENT_TYPES)}"
        ) from None


@log_on_start(DEBUG, "Clean records for event {target_event}...", logger=logger)
@log_on_end(DEBUG, "done!", logger=logger)
def clean(raw: pd.DataFrame, target_event: str = "death") -> pd.DataFrame:
    """
    Build the analysis table: one row per subject for the target event.

    Rows of other event types are removed, then rows without a
    differentiation grade. The derived label columns are attached and the
    treatment arm becomes an ordered categorical.

    Args:
        raw: Raw records as returned by :func:`colonsurv.data.load.load_dataset`
        target_event: ``"death"`` or ``"recurrence"``

    Returns:
        pd.DataFrame: The analysis table. ``attrs["n_dropped_differ"]`` holds
        the number of rows excluded for a missing differentiation grade.
    """
    code = event_code(target_event)
    events = raw[raw["etype"] == code]
    logger.info(f"{len(events)} records with event type '{target_event}'")

    complete = events[events["differ"].notna()]
    n_dropped = len(events) - len(complete)
    if n_dropped:
        logger.info(f"Dropped {n_dropped} records with missing differentiation grade")

    df = labels.derive_labels(complete)
    df["rx"] = labels.treatment(df["rx"])
    df = df.reset_index(drop=True)
    df.attrs["target_event"] = target_event
    df.attrs["n_dropped_differ"] = n_dropped
    return df
