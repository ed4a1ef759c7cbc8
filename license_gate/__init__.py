"""License compliance gate for npm dependency graphs."""

__version__ = "0.1.0"
