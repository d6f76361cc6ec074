"""Capital account statement extraction and balance checks."""

__version__ = "0.1.0"
