"""Domain exceptions raised by the Fare Gate services."""

from __future__ import annotations


class FareGateError(RuntimeError):
    """Base exception for ticket lifecycle failures."""


class TicketNotFoundError(FareGateError):
    """Raised when a token does not resolve to any ticket."""


class AlreadyRedeemedError(FareGateError):
    """Raised when an operation needs an unredeemed ticket but it is used."""


class InactiveStateError(FareGateError):
    """Raised when a ticket is in a state that does not allow the operation."""

    def __init__(self, state: str, message: str | None = None) -> None:
        super().__init__(message or f"Ticket is not available (state: {state})")
        self.state = state


class InsufficientCreditError(FareGateError):
    """Raised when a holder has no ticket credits left."""


class IssueLimitReachedError(FareGateError):
    """Raised when a holder already received the daily maximum of tickets."""


class NotTicketHolderError(FareGateError):
    """Raised when the caller does not own the ticket they act on."""
