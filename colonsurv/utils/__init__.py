"""Shared utilities: logging and configuration."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"
