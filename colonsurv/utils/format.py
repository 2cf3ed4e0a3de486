"""Number formatting shared by tables and figures."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import numpy as np

NO_VALUE = "—"


def format_p(p) -> str:
    """Format a p-value with three decimals, ``<0.001`` below that, blank if undefined."""
    if p is None or np.isnan(p):
        return ""
    if p < 0.001:
        return "<0.001"
    return f"{p:.3f}"


def format_hr(hr) -> str:
    return f"{hr:.2f}"


def format_ci(lower, upper, sep: str = ", ") -> str:
    return f"{lower:.2f}{sep}{upper:.2f}"


def format_estimate(hr, lower, upper, reference: bool = False) -> str:
    """``HR (lower to upper)``, or ``Ref.`` for a reference category."""
    if reference:
        return "Ref."
    return f"{format_hr(hr)} ({format_ci(lower, upper, sep=' to ')})"
