"""Personal reading log with rule-based achievements."""

__version__ = "0.2.0"
