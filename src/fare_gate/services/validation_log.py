"""Append-only validation log and the per-context daily aggregator."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fare_gate.core.settings import settings
from fare_gate.db.time import local_midnight
from fare_gate.models import RedemptionContext, ValidationLogEntry
from fare_gate.models.validation_log import RESULT_VALID, VALIDATION_RESULTS


class ValidationLog:
    """Records every redemption attempt and answers daily counter queries."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def append(
        self,
        *,
        result: str,
        context_id: str,
        created_at: datetime,
        ticket_id: str | None = None,
        route_id: str | None = None,
        agent_id: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        message: str | None = None,
    ) -> ValidationLogEntry:
        """Append one entry. Entries are never updated or deleted."""
        if result not in VALIDATION_RESULTS:
            raise ValueError(f"Unknown validation result: {result}")
        entry = ValidationLogEntry(
            ticket_id=ticket_id,
            result=result,
            context_id=context_id,
            route_id=route_id,
            agent_id=agent_id,
            latitude=latitude,
            longitude=longitude,
            message=message,
            created_at=created_at,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def count_valid_since(self, context_id: str, since: datetime) -> int:
        """Return successful redemptions recorded by a context since ``since``."""
        result = self.db.execute(
            select(func.count())
            .select_from(ValidationLogEntry)
            .where(
                ValidationLogEntry.context_id == context_id,
                ValidationLogEntry.result == RESULT_VALID,
                ValidationLogEntry.created_at >= since,
            )
        )
        return int(result.scalar_one())

    def context_timezone(self, context_id: str) -> str:
        """Return the IANA timezone that anchors a context's operating day."""
        context = self.db.get(RedemptionContext, context_id)
        if context is not None and context.timezone:
            return context.timezone
        return settings.default_timezone

    def day_start(self, context_id: str, now: datetime) -> datetime:
        """Return the UTC instant of local midnight for the context."""
        return local_midnight(now, self.context_timezone(context_id))

    def count_valid_today(self, context_id: str, now: datetime) -> int:
        """Return today's successful redemptions for a context."""
        return self.count_valid_since(context_id, self.day_start(context_id, now))

    def daily_counts(self, since: datetime, until: datetime | None = None) -> dict[str, int]:
        """Return successful redemptions per context in ``[since, until)``."""
        stmt = (
            select(ValidationLogEntry.context_id, func.count())
            .where(
                ValidationLogEntry.result == RESULT_VALID,
                ValidationLogEntry.created_at >= since,
            )
            .group_by(ValidationLogEntry.context_id)
        )
        if until is not None:
            stmt = stmt.where(ValidationLogEntry.created_at < until)
        return {context_id: int(count) for context_id, count in self.db.execute(stmt)}
