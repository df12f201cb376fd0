"""Scorefree: spoiler-aware ingestion of sports highlight metadata."""

__version__ = "0.1.0"

__all__ = ["__version__"]
