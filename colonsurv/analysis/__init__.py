"""Analysis module for the colon trial reports.

This module provides the descriptive summary table, Kaplan-Meier curves,
Cox regression, forest plots and proportional-hazards diagnostics.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"
