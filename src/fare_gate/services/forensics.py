"""Fraud forensics for tickets presented after they were already used.

When a used ticket comes back, the scorer reconstructs the original
redemption, measures how far apart (in km and minutes) the two attempts are,
and grades the holder's history into a severity tier. Every detection is
persisted as an insert-only ``FraudAttempt`` row and mirrored in the
validation log.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fare_gate.core.settings import settings
from fare_gate.models import FraudAttempt, RedemptionContext, Ticket
from fare_gate.models.fraud import (
    FRAUD_TYPE_DIFFERENT_CONTEXT,
    FRAUD_TYPE_SAME_CONTEXT,
    SEVERITY_CRITICAL,
    SEVERITY_HIGH,
    SEVERITY_LOW,
    SEVERITY_MEDIUM,
)
from fare_gate.models.ticket import TICKET_STATE_USED
from fare_gate.models.validation_log import RESULT_FRAUD
from fare_gate.services.ledger import AccountLedger
from fare_gate.services.validation_log import ValidationLog

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
FRAUD_MESSAGE = "FRAUD ALERT - TICKET ALREADY USED"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance between two points in kilometres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(
    origin: tuple[float | None, float | None],
    target: tuple[float | None, float | None],
) -> float | None:
    """Return the distance between two optional coordinates, or None."""
    if None in origin or None in target:
        return None
    return haversine_km(origin[0], origin[1], target[0], target[1])  # type: ignore[arg-type]


def severity_for(holder_attempts: int, thresholds: Mapping[str, int] | None = None) -> str:
    """Map a holder's attempt count (including the current one) to a tier."""
    tiers = thresholds or settings.severity_thresholds
    if holder_attempts >= tiers["critical"]:
        return SEVERITY_CRITICAL
    if holder_attempts >= tiers["high"]:
        return SEVERITY_HIGH
    if holder_attempts >= tiers["medium"]:
        return SEVERITY_MEDIUM
    return SEVERITY_LOW


@dataclass(frozen=True)
class FraudAlert:
    """Structured verdict returned for a double redemption."""

    record_id: int
    severity: str
    fraud_type: str
    short_code: str
    original_used_at: datetime
    original_context_id: str | None
    original_context_label: str | None
    original_context_plate: str | None
    original_route_id: str | None
    original_latitude: float | None
    original_longitude: float | None
    minutes_elapsed: int
    distance_km: float | None
    ticket_attempts: int
    holder_attempts: int

    @property
    def same_context(self) -> bool:
        """True when the ticket was presented again at the context that redeemed it."""
        return self.fraud_type == FRAUD_TYPE_SAME_CONTEXT


class FraudForensicsScorer:
    """Builds and persists fraud reports; reads tickets, never writes them."""

    def __init__(
        self,
        db: Session,
        *,
        ledger: AccountLedger | None = None,
        validation_log: ValidationLog | None = None,
        thresholds: Mapping[str, int] | None = None,
    ) -> None:
        self.db = db
        self.ledger = ledger or AccountLedger(db)
        self.validation_log = validation_log or ValidationLog(db)
        self.thresholds = thresholds

    def _count_attempts(self, column: object, value: str) -> int:
        result = self.db.execute(
            select(func.count()).select_from(FraudAttempt).where(column == value)
        )
        return int(result.scalar_one())

    def score(
        self,
        ticket: Ticket,
        *,
        context_id: str,
        now: datetime,
        route_id: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        agent_id: str | None = None,
    ) -> FraudAlert:
        """Record a fraud attempt against ``ticket`` and return the alert.

        Must run inside the caller's transaction; the counts are read after
        locking the holder's ledger row so concurrent attempts by the same
        holder cannot both observe the same total.

        Raises:
            ValueError: If the ticket is not used or its holder has no ledger row.
        """
        if ticket.state != TICKET_STATE_USED or ticket.used_at is None:
            raise ValueError("Fraud scoring requires a used ticket")

        if self.ledger.lock_account(ticket.holder_id) is None:
            # Without the row lock concurrent attempts could share a total.
            raise ValueError(f"Holder {ticket.holder_id} has no ledger account")
        ticket_attempts = self._count_attempts(FraudAttempt.ticket_id, ticket.id) + 1
        holder_attempts = self._count_attempts(FraudAttempt.holder_id, ticket.holder_id) + 1

        severity = severity_for(holder_attempts, self.thresholds)
        fraud_type = (
            FRAUD_TYPE_SAME_CONTEXT
            if ticket.used_by_context_id == context_id
            else FRAUD_TYPE_DIFFERENT_CONTEXT
        )
        distance_km = distance_between(
            (ticket.used_at_latitude, ticket.used_at_longitude),
            (latitude, longitude),
        )
        minutes_elapsed = max(0, math.floor((now - ticket.used_at).total_seconds() / 60))

        record = FraudAttempt(
            ticket_id=ticket.id,
            holder_id=ticket.holder_id,
            detected_at=now,
            original_used_at=ticket.used_at,
            original_context_id=ticket.used_by_context_id,
            original_route_id=ticket.used_route_id,
            original_latitude=ticket.used_at_latitude,
            original_longitude=ticket.used_at_longitude,
            detected_context_id=context_id,
            detected_route_id=route_id,
            detected_latitude=latitude,
            detected_longitude=longitude,
            fraud_type=fraud_type,
            severity=severity,
            distance_km=distance_km,
            minutes_elapsed=minutes_elapsed,
            ticket_attempts=ticket_attempts,
            holder_attempts=holder_attempts,
        )
        self.db.add(record)
        self.db.flush()

        self.validation_log.append(
            result=RESULT_FRAUD,
            ticket_id=ticket.id,
            context_id=context_id,
            route_id=route_id,
            agent_id=agent_id,
            latitude=latitude,
            longitude=longitude,
            message="Ticket already used - fraud attempt",
            created_at=now,
        )

        short_code = ticket.short_code(settings.short_code_length)
        logger.warning(
            "Fraud attempt on ticket %s: %s, severity=%s, holder_attempts=%d",
            short_code,
            fraud_type,
            severity,
            holder_attempts,
        )

        original = (
            self.db.get(RedemptionContext, ticket.used_by_context_id)
            if ticket.used_by_context_id
            else None
        )
        return FraudAlert(
            record_id=record.id,
            severity=severity,
            fraud_type=fraud_type,
            short_code=short_code,
            original_used_at=ticket.used_at,
            original_context_id=ticket.used_by_context_id,
            original_context_label=original.label if original else None,
            original_context_plate=original.plate if original else None,
            original_route_id=ticket.used_route_id,
            original_latitude=ticket.used_at_latitude,
            original_longitude=ticket.used_at_longitude,
            minutes_elapsed=minutes_elapsed,
            distance_km=distance_km,
            ticket_attempts=ticket_attempts,
            holder_attempts=holder_attempts,
        )

    def list_attempts(
        self,
        *,
        limit: int = 50,
        ticket_id: str | None = None,
        holder_id: str | None = None,
    ) -> list[FraudAttempt]:
        """Return recorded attempts, newest first."""
        stmt = select(FraudAttempt)
        if ticket_id is not None:
            stmt = stmt.where(FraudAttempt.ticket_id == ticket_id)
        if holder_id is not None:
            stmt = stmt.where(FraudAttempt.holder_id == holder_id)
        stmt = stmt.order_by(FraudAttempt.detected_at.desc(), FraudAttempt.id.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars())
