"""Translate domain exceptions into HTTP errors."""

from fastapi import HTTPException, status

from fare_gate.services.errors import (
    AlreadyRedeemedError,
    FareGateError,
    InactiveStateError,
    InsufficientCreditError,
    IssueLimitReachedError,
    NotTicketHolderError,
    TicketNotFoundError,
)

_STATUS_BY_ERROR: tuple[tuple[type[FareGateError], int], ...] = (
    (TicketNotFoundError, status.HTTP_404_NOT_FOUND),
    (NotTicketHolderError, status.HTTP_403_FORBIDDEN),
    (InsufficientCreditError, status.HTTP_402_PAYMENT_REQUIRED),
    (IssueLimitReachedError, status.HTTP_429_TOO_MANY_REQUESTS),
    (AlreadyRedeemedError, status.HTTP_409_CONFLICT),
    (InactiveStateError, status.HTTP_409_CONFLICT),
)


def http_error(err: FareGateError) -> HTTPException:
    """Return the HTTPException matching a domain error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(err, error_type):
            return HTTPException(status_code=status_code, detail=str(err))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err))
