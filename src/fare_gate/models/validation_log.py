# src/fare_gate/models/validation_log.py
"""Append-only audit trail of every redemption attempt."""

from datetime import datetime

from sqlalchemy import Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fare_gate.db.session import Base
from fare_gate.db.time import UTCDateTime, utcnow

RESULT_VALID = "valid"
RESULT_FRAUD = "fraud"
RESULT_EXPIRED_TRANSFER = "expired_transfer"
RESULT_INVALID = "invalid"
RESULT_INACTIVE = "inactive"

VALIDATION_RESULTS = (
    RESULT_VALID,
    RESULT_FRAUD,
    RESULT_EXPIRED_TRANSFER,
    RESULT_INVALID,
    RESULT_INACTIVE,
)


class ValidationLogEntry(Base):
    """A single redemption attempt and its outcome."""

    __tablename__ = "validation_log"
    __table_args__ = (
        Index("ix_validation_log_context_result_created", "context_id", "result", "created_at"),
    )

    # Autoincrement id preserves insertion order.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Null when the presented token did not resolve to a ticket.
    ticket_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    result: Mapped[str] = mapped_column(String(32), nullable=False)
    context_id: Mapped[str] = mapped_column(String(64), nullable=False)
    route_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    agent_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
