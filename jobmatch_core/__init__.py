"""Job posting extraction, scoring and ranking core."""

__version__ = "1.0.0"
