"""Multi-project documentation server."""

__version__ = "0.1.0"
