"""Lead Signal AI: find and rank hiring leads for a job description."""

__version__ = "0.1.0"
