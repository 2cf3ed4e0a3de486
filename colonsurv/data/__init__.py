"""Loading, cleaning and labelling of the colon trial records."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"
