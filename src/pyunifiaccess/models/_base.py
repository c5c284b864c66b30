"""Base model for UniFi Access API payloads.

Every hub payload model inherits from :class:`UnifiBaseModel` which provides:

* ``extra="ignore"`` so firmware additions never break parsing.
* A ``model_validator(mode="before")`` that drops ``None`` and blank-string
  values so the field default is used instead.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class UnifiBaseModel(BaseModel):
    """Base for hub payload models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Drop blank values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        original = dict(values)
        cleaned: dict[str, Any] = {}
        for key, value in original.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[key] = value
        # Keep an explicitly supplied raw (kwargs construction).
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
