import json
import logging as std_logging

import numpy as np

from colonsurv.utils import logging
from colonsurv.utils.format import format_ci, format_estimate, format_hr, format_p


def test_default_logger_name():
    assert logging.get_default_logger().name == "colonsurv"


def test_set_verbosity():
    logger = logging.get_default_logger()
    previous = logger.level
    try:
        logging.set_verbosity(logging.DEBUG)
        assert logger.level == std_logging.DEBUG
    finally:
        logger.setLevel(previous)
        std_logging.getLogger().setLevel(std_logging.WARNING)


def test_np_encoder():
    data = {
        "n": np.int64(906),
        "p": np.float64(0.25),
        "flag": np.bool_(True),
        "hr": np.array([0.7, 2.49]),
    }
    decoded = json.loads(json.dumps(data, cls=logging.NpEncoder))
    assert decoded == {"n": 906, "p": 0.25, "flag": True, "hr": [0.7, 2.49]}


def test_format_p():
    assert format_p(0.0004) == "<0.001"
    assert format_p(0.0456) == "0.046"
    assert format_p(np.nan) == ""
    assert format_p(None) == ""


def test_format_estimate():
    assert format_hr(0.6987) == "0.70"
    assert format_ci(0.581, 0.846) == "0.58, 0.85"
    assert format_estimate(0.6987, 0.581, 0.846) == "0.70 (0.58 to 0.85)"
    assert format_estimate(1.0, 1.0, 1.0, reference=True) == "Ref."
