"""Utility helpers shared across Scorefree modules."""

from scorefree.utils.formatting import format_duration, format_view_count, parse_duration_seconds

__all__ = ["format_duration", "format_view_count", "parse_duration_seconds"]
