"""Survival analysis reports for the colon cancer adjuvant chemotherapy trial."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

__version__ = "0.1.0"
