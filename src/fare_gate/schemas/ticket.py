# src/fare_gate/schemas/ticket.py
"""Ticket and transfer schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class TicketResponse(BaseModel):
    """Schema for ticket information returned by the API."""

    id: str
    holder_id: str
    state: str
    amount: float
    issued_at: datetime
    short_code: str | None = None
    used_at: datetime | None = None
    used_by_context_id: str | None = None
    used_route_id: str | None = None
    transfer_expires_at: datetime | None = None


class TransferCreate(BaseModel):
    """Schema for starting a transfer."""

    transferred_to: str | None = Field(None, max_length=255, description="Recipient reference")


class TransferResponse(BaseModel):
    """What the holder shares with the recipient."""

    transfer_token: str
    expires_at: datetime
    short_code: str


class SweepResponse(BaseModel):
    """Result of an overdue-transfer sweep."""

    reclaimed: int
