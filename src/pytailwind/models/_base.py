"""Base model for Tailwind controller payloads.

Every response model inherits from :class:`TailwindBaseModel` which
provides:

* frozen, ``extra="ignore"`` configuration so new firmware fields do
  not break parsing.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TailwindBaseModel(BaseModel):
    """Base for controller response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        """Drop ``None`` values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if value is not None}
        # Only auto-stash raw when the caller did not pass one explicitly.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
