"""Shared API dependencies for authentication and common functionality."""

from collections.abc import Callable
from datetime import datetime
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from fare_gate.core.security import SERVICE_ROLE, decode_claims
from fare_gate.db.session import get_db
from fare_gate.db.time import utcnow

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_token_claims(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> dict[str, Any]:
    """Return the verified claims of the caller's bearer token.

    Tokens are minted by the external identity service; this service only
    verifies them.

    Raises:
        HTTPException: If the token is invalid or has no subject.
    """
    claims = decode_claims(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return claims


ClaimsDep = Annotated[dict[str, Any], Depends(get_token_claims)]


def get_current_identity(claims: ClaimsDep) -> str:
    """Return the identity id (``sub``) of the caller."""
    return str(claims["sub"])


def get_service_identity(claims: ClaimsDep) -> str:
    """Return the caller's identity if it carries the back-office role.

    Raises:
        HTTPException: If the token is not a service token.
    """
    if claims.get("role") != SERVICE_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Service credentials required",
        )
    return str(claims["sub"])


# Type aliases for identity dependencies
CurrentIdentityDep = Annotated[str, Depends(get_current_identity)]
ServiceIdentityDep = Annotated[str, Depends(get_service_identity)]


def get_clock() -> Callable[[], datetime]:
    """Return the time source used by request handlers."""
    return utcnow


# Type alias for the clock dependency; tests override ``get_clock``.
ClockDep = Annotated[Callable[[], datetime], Depends(get_clock)]
