"""
DTOs for extracted booth candidates.

``ExtractedBooth`` is the in-memory result of one extraction: the completion
reply is untrusted, so every field is coerced here (blank strings become
None, coordinates become floats when they can) and anything without a
usable name fails validation. Over-long text is cut to the column width
rather than rejected.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

CLOSED_STATUS_WORDS = {"closed", "inactive", "removed", "gone", "defunct"}

# Widths of the matching booths columns. Longer values are cut to fit.
COLUMN_WIDTHS = {
    "name": 255,
    "address": 512,
    "city": 255,
    "state": 100,
    "country": 100,
    "postal_code": 20,
    "machine_type": 100,
    "machine_model": 100,
    "cost": 100,
    "hours": 255,
    "website": 2048,
    "photo_url": 2048,
}


class ExtractedBooth(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    postal_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    status: str | None = None
    machine_type: str | None = None
    machine_model: str | None = None
    cost: str | None = None
    hours: str | None = None
    description: str | None = None
    website: str | None = None
    photo_url: str | None = None

    # Page the entity was extracted from; set by the extraction service.
    source_url: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str):
            return value if value.strip() else None
        if isinstance(value, (dict, list)):
            # Nested objects/lists from the model are not meaningful here.
            return None
        if value is None or info.field_name in ("latitude", "longitude"):
            return value
        # Postal codes and costs often come back as bare numbers.
        return str(value)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value: Any) -> float | None:
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> str | None:
        if value is None:
            return None
        word = str(value).strip().lower()
        if not word:
            return None
        return "closed" if word in CLOSED_STATUS_WORDS else "active"

    @field_validator(*COLUMN_WIDTHS, mode="after")
    @classmethod
    def _fit_column(cls, value: str | None, info: ValidationInfo) -> str | None:
        width = COLUMN_WIDTHS[info.field_name]
        if value is not None and len(value) > width:
            return value[:width].rstrip()
        return value
