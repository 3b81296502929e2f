# src/fare_gate/api/v1/endpoints/fraud.py
"""Fraud attempt listing for operators."""

from typing import Annotated

from fastapi import APIRouter, Query

from fare_gate.api.v1.dependencies import ServiceIdentityDep, SessionDep
from fare_gate.schemas.fraud import FraudAttemptResponse
from fare_gate.services.forensics import FraudForensicsScorer

router = APIRouter(prefix="/fraud-attempts", tags=["fraud"])


@router.get("/", response_model=list[FraudAttemptResponse])
def list_fraud_attempts(
    _service: ServiceIdentityDep,
    db: SessionDep,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    ticket_id: str | None = None,
    holder_id: str | None = None,
) -> list[FraudAttemptResponse]:
    """Return recorded fraud attempts, newest first."""
    attempts = FraudForensicsScorer(db).list_attempts(
        limit=limit,
        ticket_id=ticket_id,
        holder_id=holder_id,
    )
    return [FraudAttemptResponse.model_validate(attempt) for attempt in attempts]
