"""Record-keeping and query service for user financial transactions."""

__version__ = "0.1.0"
