"""Portfolio management API and service monitoring building blocks."""

__version__ = "0.1.0"