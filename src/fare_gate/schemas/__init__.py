# src/fare_gate/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .context import ContextResponse, ContextUpsert, DailyCountResponse
from .fraud import FraudAttemptResponse
from .ledger import LedgerCredit, LedgerResponse
from .redemption import (
    FraudDetails,
    Geolocation,
    RedemptionCreate,
    RedemptionFraud,
    RedemptionRejected,
    RedemptionValid,
)
from .ticket import SweepResponse, TicketResponse, TransferCreate, TransferResponse

__all__ = [
    "ContextResponse", "ContextUpsert", "DailyCountResponse",
    "FraudAttemptResponse",
    "LedgerCredit", "LedgerResponse",
    "FraudDetails", "Geolocation", "RedemptionCreate",
    "RedemptionFraud", "RedemptionRejected", "RedemptionValid",
    "SweepResponse", "TicketResponse", "TransferCreate", "TransferResponse",
]
