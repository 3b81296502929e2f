"""Business logic services for the Fare Gate service."""

from .forensics import FraudAlert, FraudForensicsScorer
from .issuance import IssuanceService
from .ledger import AccountLedger
from .redemption import RedemptionEngine, RedemptionRequest, RedemptionResult
from .transfer import TransferManager
from .validation_log import ValidationLog

__all__ = [
    "AccountLedger",
    "FraudAlert",
    "FraudForensicsScorer",
    "IssuanceService",
    "RedemptionEngine",
    "RedemptionRequest",
    "RedemptionResult",
    "TransferManager",
    "ValidationLog",
]
