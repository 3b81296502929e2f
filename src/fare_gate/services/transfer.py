"""Time-boxed delegation of an active ticket to a second party."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from fare_gate.core.settings import settings
from fare_gate.db.time import utcnow
from fare_gate.models import Ticket
from fare_gate.models.ticket import (
    TICKET_STATE_ACTIVE,
    TICKET_STATE_TRANSFER_PENDING,
    TICKET_STATE_USED,
)
from fare_gate.repositories.ticket_repo import TicketRepository
from fare_gate.services.errors import (
    AlreadyRedeemedError,
    InactiveStateError,
    NotTicketHolderError,
    TicketNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferReceipt:
    """What the holder shares with the recipient."""

    transfer_token: str
    expires_at: datetime
    short_code: str


class TransferManager:
    """Starts transfers and returns overdue ones to their holder."""

    def __init__(
        self,
        db: Session,
        *,
        repo: TicketRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.repo = repo or TicketRepository(db)
        self.clock = clock

    @property
    def window(self) -> timedelta:
        return timedelta(hours=settings.transfer_window_hours)

    def begin_transfer(
        self,
        ticket_id: str,
        requester_id: str,
        *,
        transferred_to: str | None = None,
    ) -> TransferReceipt:
        """Move an active ticket to ``transfer_pending`` for one window.

        The recipient redeems the same token; ``transfer_token`` is that token.

        Raises:
            TicketNotFoundError: Unknown ticket.
            NotTicketHolderError: ``requester_id`` does not own the ticket.
            AlreadyRedeemedError: The ticket was already used.
            InactiveStateError: The ticket is not ``active``.
        """
        ticket = self.repo.get(ticket_id)
        if ticket is None:
            raise TicketNotFoundError("Ticket not found")
        if ticket.holder_id != requester_id:
            raise NotTicketHolderError("Only the ticket holder can transfer it")

        now = self.clock()
        expires_at = now + self.window
        swapped = self.repo.transition(
            ticket_id,
            TICKET_STATE_ACTIVE,
            TICKET_STATE_TRANSFER_PENDING,
            {
                "transfer_expires_at": expires_at,
                "transferred_at": now,
                "transferred_to": transferred_to,
            },
        )
        if not swapped:
            current = self.repo.get(ticket_id)
            state = current.state if current is not None else ticket.state
            if state == TICKET_STATE_USED:
                raise AlreadyRedeemedError("Ticket was already used")
            raise InactiveStateError(state, "Ticket is not available for transfer")

        self.db.commit()
        short_code = ticket.short_code(settings.short_code_length)
        logger.info("Ticket %s transferred, expires at %s", short_code, expires_at.isoformat())
        return TransferReceipt(
            transfer_token=ticket_id,
            expires_at=expires_at,
            short_code=short_code,
        )

    def is_overdue(self, ticket: Ticket, now: datetime) -> bool:
        """Return True when a pending transfer's window has closed."""
        return (
            ticket.state == TICKET_STATE_TRANSFER_PENDING
            and ticket.transfer_expires_at is not None
            and now > ticket.transfer_expires_at
        )

    def reclaim(self, ticket: Ticket, now: datetime) -> bool:
        """Return an overdue transfer to ``active`` within the caller's transaction.

        No credit moves: the ticket itself becomes usable again. Returns False
        (a no-op) when the ticket is not an overdue transfer or a concurrent
        request reclaimed or redeemed it first.
        """
        if not self.is_overdue(ticket, now):
            return False
        swapped = self.repo.transition(
            ticket.id,
            TICKET_STATE_TRANSFER_PENDING,
            TICKET_STATE_ACTIVE,
            {"transfer_expires_at": None},
        )
        if swapped:
            logger.info(
                "Reclaimed expired transfer for ticket %s",
                ticket.short_code(settings.short_code_length),
            )
        return swapped

    def reclaim_if_expired(self, ticket_id: str) -> bool:
        """Reclaim a single ticket if its transfer expired; idempotent."""
        ticket = self.repo.get(ticket_id)
        if ticket is None:
            raise TicketNotFoundError("Ticket not found")
        reclaimed = self.reclaim(ticket, self.clock())
        self.db.commit()
        return reclaimed

    def sweep_expired(self, batch_size: int = 500) -> int:
        """Reclaim every overdue transfer and return how many were reclaimed."""
        now = self.clock()
        reclaimed = 0
        for ticket_id in self.repo.list_overdue_transfers(now, limit=batch_size):
            ticket = self.repo.get(ticket_id)
            if ticket is not None and self.reclaim(ticket, now):
                reclaimed += 1
            self.db.commit()
        if reclaimed:
            logger.info("Transfer sweep reclaimed %d ticket(s)", reclaimed)
        return reclaimed
