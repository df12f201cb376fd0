"""Validation helpers for catalog video identifiers."""

from __future__ import annotations

import re
from typing import Optional


class InvalidVideoIdError(ValueError):
    """Raised when a catalog item carries an identifier that is not a YouTube video id."""


_VIDEO_ID_PATTERN = re.compile(r"^[0-9A-Za-z_-]{11}$")


def is_valid_video_id(candidate: Optional[object]) -> bool:
    """Return ``True`` when ``candidate`` looks like an 11-character YouTube video id."""

    return isinstance(candidate, str) and _VIDEO_ID_PATTERN.fullmatch(candidate.strip()) is not None


def validate_video_id(candidate: Optional[object]) -> str:
    """Return the stripped video id or raise :class:`InvalidVideoIdError`."""

    if not is_valid_video_id(candidate):
        raise InvalidVideoIdError(f"Invalid YouTube video ID: {candidate!r}")
    return str(candidate).strip()


__all__ = ["InvalidVideoIdError", "is_valid_video_id", "validate_video_id"]
