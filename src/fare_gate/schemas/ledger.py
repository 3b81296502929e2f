# src/fare_gate/schemas/ledger.py
"""Account ledger schemas."""

from pydantic import BaseModel, ConfigDict, Field


class LedgerCredit(BaseModel):
    """Schema for adding purchased credits to a holder."""

    amount: int = Field(..., ge=1, le=100, description="Number of ticket credits")


class LedgerResponse(BaseModel):
    """Schema for a holder's ticket balance."""

    holder_id: str
    credit_count: int
    total_redeemed_count: int

    model_config = ConfigDict(from_attributes=True)
