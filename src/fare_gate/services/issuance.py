"""Ticket issuance for holders with available credit."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.orm import Session

from fare_gate.core.settings import settings
from fare_gate.db.time import local_midnight, utcnow
from fare_gate.models import Ticket
from fare_gate.models.ticket import TICKET_STATE_ACTIVE, TICKET_STATE_EXPIRED, TICKET_STATE_USED
from fare_gate.repositories.ticket_repo import TicketRepository
from fare_gate.services.errors import (
    AlreadyRedeemedError,
    InactiveStateError,
    InsufficientCreditError,
    IssueLimitReachedError,
    TicketNotFoundError,
)
from fare_gate.services.ledger import AccountLedger

logger = logging.getLogger(__name__)


class IssuanceService:
    """Creates tickets; credits are reserved here but only debited on redemption."""

    def __init__(
        self,
        db: Session,
        *,
        repo: TicketRepository | None = None,
        ledger: AccountLedger | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.repo = repo or TicketRepository(db)
        self.ledger = ledger or AccountLedger(db)
        self.clock = clock

    def issue(self, holder_id: str) -> Ticket:
        """Issue a new active ticket to ``holder_id``.

        Raises:
            InsufficientCreditError: Every credit is already reserved by an
                unredeemed ticket.
            IssueLimitReachedError: The holder reached today's issuance limit.
        """
        now = self.clock()
        account = self.ledger.lock_account(holder_id)
        # Each active or transfer_pending ticket holds one credit until redeemed.
        if account is None or account.credit_count <= self.repo.count_outstanding(holder_id):
            raise InsufficientCreditError("No tickets available. Purchase more tickets.")

        issued_today = self.repo.count_issued_since(
            holder_id, local_midnight(now, settings.default_timezone)
        )
        if issued_today >= settings.daily_issue_limit:
            raise IssueLimitReachedError(
                f"Daily limit of {settings.daily_issue_limit} tickets reached"
            )

        ticket = self.repo.create(holder_id=holder_id, amount=settings.ticket_price, issued_at=now)
        self.db.commit()
        logger.info(
            "Issued ticket %s to holder %s",
            ticket.short_code(settings.short_code_length),
            holder_id,
        )
        return ticket

    def get(self, ticket_id: str) -> Ticket:
        """Return a ticket or raise ``TicketNotFoundError``."""
        ticket = self.repo.get(ticket_id)
        if ticket is None:
            raise TicketNotFoundError("Ticket not found")
        return ticket

    def void(self, ticket_id: str) -> Ticket:
        """Cancel an active ticket so it can no longer be redeemed."""
        ticket = self.get(ticket_id)
        if not self.repo.transition(ticket_id, TICKET_STATE_ACTIVE, TICKET_STATE_EXPIRED):
            current = self.get(ticket_id)
            if current.state == TICKET_STATE_USED:
                raise AlreadyRedeemedError("Ticket was already used")
            raise InactiveStateError(current.state, "Only active tickets can be voided")
        self.db.commit()
        logger.info("Voided ticket %s", ticket.short_code(settings.short_code_length))
        return self.get(ticket_id)
