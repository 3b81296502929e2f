"""Version 1 API endpoints."""

from .endpoints import (
    contexts_router,
    fraud_router,
    ledger_router,
    redemptions_router,
    system_router,
    tickets_router,
    validations_router,
)

__all__ = [
    "contexts_router",
    "fraud_router",
    "ledger_router",
    "redemptions_router",
    "system_router",
    "tickets_router",
    "validations_router",
]
