# src/fare_gate/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .contexts import router as contexts_router
from .fraud import router as fraud_router
from .ledger import router as ledger_router
from .redemptions import router as redemptions_router
from .system import router as system_router
from .tickets import router as tickets_router
from .validations import router as validations_router

__all__ = [
    "contexts_router",
    "fraud_router",
    "ledger_router",
    "redemptions_router",
    "system_router",
    "tickets_router",
    "validations_router",
]
