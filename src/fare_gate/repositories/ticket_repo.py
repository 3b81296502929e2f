"""Data access helpers for working with tickets."""
from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from fare_gate.db.time import utcnow
from fare_gate.models.ticket import (
    TICKET_STATE_ACTIVE,
    TICKET_STATE_TRANSFER_PENDING,
    TICKET_STATES,
    Ticket,
)

__all__ = ["TicketRepository"]

# Columns other components may set alongside a state change.
_TRANSITION_FIELDS = frozenset(
    {
        "used_at",
        "used_by_context_id",
        "used_route_id",
        "used_at_latitude",
        "used_at_longitude",
        "transfer_expires_at",
        "transferred_at",
        "transferred_to",
    }
)


class TicketRepository:
    """Ticket store; the only component allowed to change ``Ticket.state``."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get(self, ticket_id: str) -> Ticket | None:
        """Return a ticket by token, always reading the stored row."""
        result = self.session.execute(
            select(Ticket)
            .where(Ticket.id == ticket_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    def create(
        self,
        *,
        holder_id: str,
        amount: float,
        issued_at: datetime | None = None,
    ) -> Ticket:
        """Insert a new ``active`` ticket with a random token."""
        ticket = Ticket(
            id=str(uuid.uuid4()),
            holder_id=holder_id,
            state=TICKET_STATE_ACTIVE,
            amount=amount,
            issued_at=issued_at or utcnow(),
        )
        self.session.add(ticket)
        self.session.flush()
        return ticket

    def transition(
        self,
        ticket_id: str,
        expected_state: str,
        new_state: str,
        fields: Mapping[str, Any] | None = None,
    ) -> bool:
        """Compare-and-swap the ticket state.

        Executes a single conditional ``UPDATE ... WHERE state = :expected``,
        so the check and the write happen as one statement under the store's
        isolation. Returns False, without raising, when the stored state no
        longer matches ``expected_state``.

        Args:
            ticket_id: Token of the ticket to update.
            expected_state: State the caller observed.
            new_state: State to move to.
            fields: Evidence columns written together with the state.
        """
        if new_state not in TICKET_STATES:
            raise ValueError(f"Unknown ticket state: {new_state}")
        values = dict(fields or {})
        unknown = set(values) - _TRANSITION_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be set through a transition: {sorted(unknown)}")
        values["state"] = new_state

        result = self.session.execute(
            update(Ticket)
            .where(Ticket.id == ticket_id, Ticket.state == expected_state)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        swapped = result.rowcount == 1
        # Cached instances must never outlive a write.
        cached = self.session.identity_map.get(self.session.identity_key(Ticket, ticket_id))
        if cached is not None:
            self.session.expire(cached)
        return swapped

    def list_overdue_transfers(self, now: datetime, limit: int = 500) -> list[str]:
        """Return ids of pending transfers whose window has closed."""
        result = self.session.execute(
            select(Ticket.id)
            .where(
                Ticket.state == TICKET_STATE_TRANSFER_PENDING,
                Ticket.transfer_expires_at < now,
            )
            .order_by(Ticket.transfer_expires_at)
            .limit(limit)
        )
        return list(result.scalars())

    def count_issued_since(self, holder_id: str, since: datetime) -> int:
        """Return how many tickets a holder received since ``since``."""
        result = self.session.execute(
            select(func.count())
            .select_from(Ticket)
            .where(Ticket.holder_id == holder_id, Ticket.issued_at >= since)
        )
        return int(result.scalar_one())

    def count_outstanding(self, holder_id: str) -> int:
        """Return the holder's tickets that can still be redeemed."""
        result = self.session.execute(
            select(func.count())
            .select_from(Ticket)
            .where(
                Ticket.holder_id == holder_id,
                Ticket.state.in_((TICKET_STATE_ACTIVE, TICKET_STATE_TRANSFER_PENDING)),
            )
        )
        return int(result.scalar_one())
