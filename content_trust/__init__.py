"""Content trust pipeline: staged verification, scoring and review consensus."""

__version__ = "0.1.0"
