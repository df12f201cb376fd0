"""Shared base model for Scorefree domain objects."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class ScoreFreeBaseModel(BaseModel):
    """Strict model base: unknown fields are rejected and assignments re-validated.

    Surrounding whitespace is stripped from every string field, so catalog titles and
    category names compare cleanly.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe dict used for JSONB columns and ``--json`` CLI output."""

        return self.model_dump(mode="json")


__all__ = ["ScoreFreeBaseModel"]
