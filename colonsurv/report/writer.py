"""Dispatch a report to its output format and write it atomically."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import os
import tempfile
from logging import DEBUG, ERROR, INFO
from pathlib import Path

from logdecorator import log_on_end, log_on_error, log_on_start
from omegaconf import DictConfig

from colonsurv.report.elements import Report
from colonsurv.report.html import write_html
from colonsurv.report.pdf import write_pdf
from colonsurv.report.word import write_docx
from colonsurv.utils import logging

logger = logging.get_default_logger()

WRITERS = {
    "html": write_html,
    "pdf": write_pdf,
    "docx": write_docx,
}


@log_on_start(DEBUG, "Write {fmt.name} report to {output_dir}...", logger=logger)
@log_on_error(
    ERROR,
    "Error writing the report: {e!r}",
    logger=logger,
    on_exceptions=Exception,
    reraise=True,
)
@log_on_end(INFO, "Report written to {result}", logger=logger)
def write_report(report: Report, fmt: DictConfig, output_dir, filename: str) -> Path:
    """
    Render ``report`` as ``<output_dir>/<filename>.<fmt.name>``.

    The document is rendered into a temporary file next to the destination
    and renamed into place once complete; on failure the temporary file is
    removed and the error re-raised.

    Returns:
        Path: The written report
    """
    if fmt.name not in WRITERS:
        raise ValueError(f"Unknown report format '{fmt.name}'. Choose one of {list(WRITERS)}")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / f"{filename}.{fmt.name}"

    fd, tmp = tempfile.mkstemp(prefix=f".{filename}.", suffix=".part", dir=output_dir)
    try:
        with os.fdopen(fd, "wb") as fh:
            WRITERS[fmt.name](report, fmt, fh)
        os.replace(tmp, target)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    return target
