# src/fare_gate/api/v1/endpoints/tickets.py
"""Ticket issuance and transfer endpoints."""

from fastapi import APIRouter, HTTPException, status

from fare_gate.api.v1.dependencies import (
    ClockDep,
    CurrentIdentityDep,
    ServiceIdentityDep,
    SessionDep,
)
from fare_gate.api.v1.errors import http_error
from fare_gate.core.settings import settings
from fare_gate.models import Ticket
from fare_gate.schemas.ticket import (
    SweepResponse,
    TicketResponse,
    TransferCreate,
    TransferResponse,
)
from fare_gate.services.errors import FareGateError
from fare_gate.services.issuance import IssuanceService
from fare_gate.services.transfer import TransferManager

router = APIRouter(tags=["tickets"])


def to_ticket_response(ticket: Ticket) -> TicketResponse:
    """Convert a Ticket ORM instance to an API schema."""
    return TicketResponse(
        id=ticket.id,
        holder_id=ticket.holder_id,
        state=ticket.state,
        amount=float(ticket.amount),
        issued_at=ticket.issued_at,
        short_code=ticket.short_code(settings.short_code_length),
        used_at=ticket.used_at,
        used_by_context_id=ticket.used_by_context_id,
        used_route_id=ticket.used_route_id,
        transfer_expires_at=ticket.transfer_expires_at,
    )


@router.post("/tickets/", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
def issue_ticket(
    holder_id: CurrentIdentityDep,
    db: SessionDep,
    clock: ClockDep,
) -> TicketResponse:
    """Issue a ticket to the caller if they have credit left."""
    try:
        ticket = IssuanceService(db, clock=clock).issue(holder_id)
    except FareGateError as err:
        raise http_error(err) from err
    return to_ticket_response(ticket)


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
def get_ticket(
    ticket_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> TicketResponse:
    """Return one of the caller's tickets."""
    try:
        ticket = IssuanceService(db).get(ticket_id)
    except FareGateError as err:
        raise http_error(err) from err
    if ticket.holder_id != identity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    return to_ticket_response(ticket)


@router.post("/tickets/{ticket_id}/void", response_model=TicketResponse)
def void_ticket(
    ticket_id: str,
    identity: CurrentIdentityDep,
    db: SessionDep,
) -> TicketResponse:
    """Cancel one of the caller's active tickets."""
    service = IssuanceService(db)
    try:
        if service.get(ticket_id).holder_id != identity:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
        ticket = service.void(ticket_id)
    except FareGateError as err:
        raise http_error(err) from err
    return to_ticket_response(ticket)


@router.post("/tickets/{ticket_id}/transfer", response_model=TransferResponse)
def transfer_ticket(
    ticket_id: str,
    payload: TransferCreate,
    identity: CurrentIdentityDep,
    db: SessionDep,
    clock: ClockDep,
) -> TransferResponse:
    """Delegate an active ticket for the configured transfer window."""
    try:
        receipt = TransferManager(db, clock=clock).begin_transfer(
            ticket_id,
            identity,
            transferred_to=payload.transferred_to,
        )
    except FareGateError as err:
        raise http_error(err) from err
    return TransferResponse(
        transfer_token=receipt.transfer_token,
        expires_at=receipt.expires_at,
        short_code=receipt.short_code,
    )


@router.post("/transfers/sweep", response_model=SweepResponse)
def sweep_transfers(
    _service: ServiceIdentityDep,
    db: SessionDep,
    clock: ClockDep,
) -> SweepResponse:
    """Reclaim every transfer whose window has closed (for cron callers)."""
    return SweepResponse(reclaimed=TransferManager(db, clock=clock).sweep_expired())
