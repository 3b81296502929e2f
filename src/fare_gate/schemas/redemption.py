# src/fare_gate/schemas/redemption.py
"""Redemption request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class Geolocation(BaseModel):
    """Coordinates reported by the validating device."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class RedemptionCreate(BaseModel):
    """Schema for a point-of-use redemption request."""

    ticket_token: str = Field(..., min_length=1, max_length=64, description="Scanned ticket token")
    context_id: str = Field(..., min_length=1, max_length=64, description="Validating unit")
    route_id: str | None = Field(None, max_length=64)
    geolocation: Geolocation | None = None


class RedemptionValid(BaseModel):
    """Receipt returned when the ticket was redeemed."""

    valid: Literal[True] = True
    message: str
    short_code: str
    redeemed_at: datetime
    amount: float
    daily_context_count: int
    daily_context_total: float


class RedemptionRejected(BaseModel):
    """Returned for unknown, inactive or expired-transfer tickets."""

    valid: Literal[False] = False
    error_type: Literal["invalid", "inactive", "expired_transfer"]
    message: str


class FraudDetails(BaseModel):
    """Forensic summary of the original redemption and the new attempt."""

    original_used_at: datetime
    original_context: str | None
    original_context_label: str | None = None
    original_context_plate: str | None = None
    original_route: str | None
    minutes_elapsed: int
    distance_km: float | None = None
    same_context: bool
    short_code: str
    holder_total_attempts: int
    ticket_total_attempts: int


class RedemptionFraud(BaseModel):
    """Returned when a used ticket is presented again."""

    valid: Literal[False] = False
    error_type: Literal["fraud"] = "fraud"
    severity: Literal["low", "medium", "high", "critical"]
    message: str
    fraud_details: FraudDetails


RedemptionResponse = RedemptionValid | RedemptionFraud | RedemptionRejected
