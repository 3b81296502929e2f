# src/fare_gate/schemas/fraud.py
"""Fraud attempt schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FraudAttemptResponse(BaseModel):
    """Schema for a recorded fraud attempt."""

    id: int
    ticket_id: str
    holder_id: str
    detected_at: datetime
    original_used_at: datetime
    original_context_id: str | None
    original_route_id: str | None
    detected_context_id: str
    detected_route_id: str | None
    fraud_type: str
    severity: str
    distance_km: float | None
    minutes_elapsed: int
    ticket_attempts: int
    holder_attempts: int

    model_config = ConfigDict(from_attributes=True)
