"""Report dashboard data-refresh engine."""

__version__ = "1.0.0"
