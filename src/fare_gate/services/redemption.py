"""Redemption engine: redeems a ticket exactly once.

The compare-and-swap on ``Ticket.state`` is the only arbiter of which request
redeems a ticket. There is no application lock and no read-then-write gap: a
request that loses the swap never retries, it re-reads the ticket and goes
down the fraud path, so a race with oneself and a genuine double use are
handled identically.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from fare_gate.core.settings import settings
from fare_gate.db.time import utcnow
from fare_gate.models import Ticket
from fare_gate.models.ticket import (
    TICKET_STATE_ACTIVE,
    TICKET_STATE_TRANSFER_PENDING,
    TICKET_STATE_USED,
)
from fare_gate.models.validation_log import (
    RESULT_EXPIRED_TRANSFER,
    RESULT_FRAUD,
    RESULT_INACTIVE,
    RESULT_INVALID,
    RESULT_VALID,
)
from fare_gate.repositories.ticket_repo import TicketRepository
from fare_gate.services.errors import InsufficientCreditError
from fare_gate.services.forensics import FRAUD_MESSAGE, FraudAlert, FraudForensicsScorer
from fare_gate.services.ledger import AccountLedger
from fare_gate.services.transfer import TransferManager
from fare_gate.services.validation_log import ValidationLog

logger = logging.getLogger(__name__)

REDEEMABLE_STATES = (TICKET_STATE_ACTIVE, TICKET_STATE_TRANSFER_PENDING)

MESSAGE_VALID = "TICKET VALID"
MESSAGE_INVALID = "Invalid ticket or it does not exist"
MESSAGE_EXPIRED_TRANSFER = "Transferred ticket expired. It was returned to its original holder."


@dataclass(frozen=True)
class RedemptionRequest:
    """A point-of-use request to consume a ticket."""

    ticket_token: str
    context_id: str
    route_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    agent_id: str | None = None


@dataclass(frozen=True)
class RedemptionReceipt:
    """Holder-facing proof of a successful redemption."""

    short_code: str
    redeemed_at: datetime
    amount: float
    daily_context_count: int
    daily_context_total: float


@dataclass(frozen=True)
class RedemptionResult:
    """Outcome of a redemption attempt.

    ``receipt`` is set iff ``valid``; ``fraud`` is set iff
    ``error_type == "fraud"``.
    """

    valid: bool
    message: str
    error_type: str | None = None
    receipt: RedemptionReceipt | None = None
    fraud: FraudAlert | None = None


class RedemptionEngine:
    """Stateless per-request handler; safe to run concurrently across processes."""

    def __init__(
        self,
        db: Session,
        *,
        clock: Callable[[], datetime] = utcnow,
        repo: TicketRepository | None = None,
        ledger: AccountLedger | None = None,
        validation_log: ValidationLog | None = None,
        transfers: TransferManager | None = None,
        scorer: FraudForensicsScorer | None = None,
    ) -> None:
        self.db = db
        self.clock = clock
        self.repo = repo or TicketRepository(db)
        self.ledger = ledger or AccountLedger(db)
        self.validation_log = validation_log or ValidationLog(db)
        self.transfers = transfers or TransferManager(db, repo=self.repo, clock=clock)
        self.scorer = scorer or FraudForensicsScorer(
            db, ledger=self.ledger, validation_log=self.validation_log
        )

    def redeem(self, request: RedemptionRequest) -> RedemptionResult:
        """Run the redemption algorithm and commit its outcome."""
        now = self.clock()
        ticket = self._lookup(request.ticket_token)

        if ticket is None:
            return self._reject(request, now, RESULT_INVALID, MESSAGE_INVALID, ticket_id=None)

        if self.transfers.is_overdue(ticket, now):
            return self._expire_transfer(ticket, request, now)

        if ticket.state == TICKET_STATE_USED:
            return self._fraud(ticket, request, now)

        if ticket.state not in REDEEMABLE_STATES:
            return self._reject(
                request,
                now,
                RESULT_INACTIVE,
                f"Ticket not valid. State: {ticket.state}",
                ticket_id=ticket.id,
            )

        ticket_id = ticket.id
        holder_id = ticket.holder_id
        amount = float(ticket.amount)
        short_code = ticket.short_code(settings.short_code_length)

        swapped = self.repo.transition(
            ticket_id,
            ticket.state,
            TICKET_STATE_USED,
            {
                "used_at": now,
                "used_by_context_id": request.context_id,
                "used_route_id": request.route_id,
                "used_at_latitude": request.latitude,
                "used_at_longitude": request.longitude,
                "transfer_expires_at": None,
            },
        )
        if not swapped:
            return self._lost_race(ticket_id, request, now)

        try:
            self.ledger.debit(holder_id)
        except InsufficientCreditError:
            # Issuance reserves one credit per outstanding ticket; reaching
            # here means the ledger is out of step, so the swap is undone.
            self.db.rollback()
            logger.error("No credit to debit for holder %s; redemption rolled back", holder_id)
            raise

        self.validation_log.append(
            result=RESULT_VALID,
            ticket_id=ticket_id,
            context_id=request.context_id,
            route_id=request.route_id,
            agent_id=request.agent_id,
            latitude=request.latitude,
            longitude=request.longitude,
            created_at=now,
        )
        daily_count = self.validation_log.count_valid_today(request.context_id, now)
        self.db.commit()

        logger.info(
            "Redeemed ticket %s on context %s (daily: %d)",
            short_code,
            request.context_id,
            daily_count,
        )
        return RedemptionResult(
            valid=True,
            message=MESSAGE_VALID,
            receipt=RedemptionReceipt(
                short_code=short_code,
                redeemed_at=now,
                amount=amount,
                daily_context_count=daily_count,
                daily_context_total=round(daily_count * settings.ticket_price, 2),
            ),
        )

    def _lookup(self, token: str) -> Ticket | None:
        """Resolve a token, retrying storage failures a bounded number of times."""
        attempts = max(0, settings.lookup_retry_attempts) + 1
        for attempt in range(1, attempts + 1):
            try:
                return self.repo.get(token)
            except OperationalError as err:
                if attempt >= attempts:
                    raise
                logger.warning("Ticket lookup failed (attempt %d), retrying: %s", attempt, err)
                self.db.rollback()
        return None  # pragma: no cover - loop always returns or raises

    def _lost_race(
        self, ticket_id: str, request: RedemptionRequest, now: datetime
    ) -> RedemptionResult:
        current = self.repo.get(ticket_id)
        if current is not None and current.state == TICKET_STATE_USED:
            return self._fraud(current, request, now)
        state = current.state if current is not None else "missing"
        return self._reject(
            request,
            now,
            RESULT_INACTIVE,
            f"Ticket not valid. State: {state}",
            ticket_id=ticket_id,
        )

    def _expire_transfer(
        self, ticket: Ticket, request: RedemptionRequest, now: datetime
    ) -> RedemptionResult:
        ticket_id = ticket.id
        if not self.transfers.reclaim(ticket, now):
            current = self.repo.get(ticket_id)
            if current is not None and current.state == TICKET_STATE_USED:
                return self._fraud(current, request, now)
        logger.warning("Rejected redemption of expired transfer on context %s", request.context_id)
        return self._reject(
            request,
            now,
            RESULT_EXPIRED_TRANSFER,
            MESSAGE_EXPIRED_TRANSFER,
            ticket_id=ticket_id,
        )

    def _fraud(self, ticket: Ticket, request: RedemptionRequest, now: datetime) -> RedemptionResult:
        alert = self.scorer.score(
            ticket,
            context_id=request.context_id,
            now=now,
            route_id=request.route_id,
            latitude=request.latitude,
            longitude=request.longitude,
            agent_id=request.agent_id,
        )
        self.db.commit()
        return RedemptionResult(
            valid=False,
            error_type=RESULT_FRAUD,
            message=FRAUD_MESSAGE,
            fraud=alert,
        )

    def _reject(
        self,
        request: RedemptionRequest,
        now: datetime,
        result: str,
        message: str,
        *,
        ticket_id: str | None,
    ) -> RedemptionResult:
        self.validation_log.append(
            result=result,
            ticket_id=ticket_id,
            context_id=request.context_id,
            route_id=request.route_id,
            agent_id=request.agent_id,
            latitude=request.latitude,
            longitude=request.longitude,
            message=message,
            created_at=now,
        )
        self.db.commit()
        return RedemptionResult(valid=False, error_type=result, message=message)
