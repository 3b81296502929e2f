# src/fare_gate/schemas/context.py
"""Redemption context schemas."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContextUpsert(BaseModel):
    """Schema for registering or updating a validating unit."""

    label: str = Field(..., min_length=1, max_length=64)
    plate: str | None = Field(None, max_length=32)
    timezone: str | None = Field(None, description="IANA timezone name")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as err:
            raise ValueError(f"Unknown timezone: {value}") from err
        return value


class ContextResponse(BaseModel):
    """Schema for a registered validating unit."""

    id: str
    label: str
    plate: str | None
    timezone: str | None

    model_config = ConfigDict(from_attributes=True)


class DailyCountResponse(BaseModel):
    """Today's successful redemptions for one context."""

    context_id: str
    timezone: str
    since: str
    count: int
    total: float
