"""Portfolio sync and market-data caching engine."""

__version__ = "0.1.0"
