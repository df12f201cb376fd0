"""Domain models for Scorefree."""

from scorefree.models.preferences import DEFAULT_CATEGORIES, CategoryPreference, UserVideoInteraction
from scorefree.models.reports import CategoryError, IngestionReport, ReclassificationReport, RecordError
from scorefree.models.video import ClassificationResult, VideoRecord

__all__ = [
    "CategoryError",
    "CategoryPreference",
    "ClassificationResult",
    "DEFAULT_CATEGORIES",
    "IngestionReport",
    "ReclassificationReport",
    "RecordError",
    "UserVideoInteraction",
    "VideoRecord",
]
