# src/fare_gate/api/v1/endpoints/redemptions.py
"""Point-of-use redemption endpoint."""

from fastapi import APIRouter

from fare_gate.api.v1.dependencies import ClockDep, CurrentIdentityDep, SessionDep
from fare_gate.api.v1.errors import http_error
from fare_gate.schemas.redemption import (
    FraudDetails,
    RedemptionCreate,
    RedemptionFraud,
    RedemptionRejected,
    RedemptionResponse,
    RedemptionValid,
)
from fare_gate.services.errors import FareGateError
from fare_gate.services.redemption import RedemptionEngine, RedemptionRequest, RedemptionResult

router = APIRouter(prefix="/redemptions", tags=["redemptions"])


def to_redemption_response(result: RedemptionResult) -> RedemptionResponse:
    """Convert an engine result to its API schema."""
    if result.receipt is not None:
        receipt = result.receipt
        return RedemptionValid(
            message=result.message,
            short_code=receipt.short_code,
            redeemed_at=receipt.redeemed_at,
            amount=receipt.amount,
            daily_context_count=receipt.daily_context_count,
            daily_context_total=receipt.daily_context_total,
        )

    if result.fraud is not None:
        alert = result.fraud
        return RedemptionFraud(
            severity=alert.severity,
            message=result.message,
            fraud_details=FraudDetails(
                original_used_at=alert.original_used_at,
                original_context=alert.original_context_id,
                original_context_label=alert.original_context_label,
                original_context_plate=alert.original_context_plate,
                original_route=alert.original_route_id,
                minutes_elapsed=alert.minutes_elapsed,
                distance_km=(
                    round(alert.distance_km, 1) if alert.distance_km is not None else None
                ),
                same_context=alert.same_context,
                short_code=alert.short_code,
                holder_total_attempts=alert.holder_attempts,
                ticket_total_attempts=alert.ticket_attempts,
            ),
        )

    return RedemptionRejected(error_type=result.error_type, message=result.message)


@router.post("/", response_model=RedemptionResponse)
def redeem_ticket(
    payload: RedemptionCreate,
    agent_id: CurrentIdentityDep,
    db: SessionDep,
    clock: ClockDep,
) -> RedemptionResponse:
    """Redeem a scanned ticket.

    Every business outcome is a 200 response; ``valid`` and ``error_type``
    tell the validator what happened. A ledger with no credit to debit is
    a 402 and leaves the ticket unredeemed.
    """
    geolocation = payload.geolocation
    request = RedemptionRequest(
        ticket_token=payload.ticket_token,
        context_id=payload.context_id,
        route_id=payload.route_id,
        latitude=geolocation.lat if geolocation else None,
        longitude=geolocation.lon if geolocation else None,
        agent_id=agent_id,
    )
    try:
        result = RedemptionEngine(db, clock=clock).redeem(request)
    except FareGateError as err:
        raise http_error(err) from err
    return to_redemption_response(result)
