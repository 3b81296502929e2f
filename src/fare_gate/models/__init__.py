# src/fare_gate/models/__init__.py
"""SQLAlchemy models for the Fare Gate service."""

from .context import RedemptionContext
from .fraud import FraudAttempt
from .ledger import TicketAccount
from .ticket import Ticket
from .validation_log import ValidationLogEntry

__all__ = [
    "FraudAttempt",
    "RedemptionContext",
    "Ticket",
    "TicketAccount",
    "ValidationLogEntry",
]
