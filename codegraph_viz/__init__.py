"""Layout engine for code dependency graphs."""

__version__ = "1.0.0"
