# src/fare_gate/models/fraud.py
"""Forensic records of double-redemption attempts."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from fare_gate.db.session import Base
from fare_gate.db.time import UTCDateTime, utcnow

FRAUD_TYPE_SAME_CONTEXT = "same_context"
FRAUD_TYPE_DIFFERENT_CONTEXT = "different_context"

SEVERITY_LOW = "low"
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"
SEVERITY_CRITICAL = "critical"

SEVERITY_LEVELS = (SEVERITY_LOW, SEVERITY_MEDIUM, SEVERITY_HIGH, SEVERITY_CRITICAL)


class FraudAttempt(Base):
    """One row per detected double redemption. Insert-only."""

    __tablename__ = "fraud_attempt"
    __table_args__ = (
        CheckConstraint(
            "fraud_type IN ('same_context', 'different_context')",
            name="ck_fraud_attempt_type",
        ),
        Index("ix_fraud_attempt_ticket_id", "ticket_id"),
        Index("ix_fraud_attempt_holder_id", "holder_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[str] = mapped_column(String(64), ForeignKey("ticket.id"), nullable=False)
    holder_id: Mapped[str] = mapped_column(String(64), nullable=False)
    detected_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Snapshot of the original redemption.
    original_used_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    original_context_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    original_route_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    original_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    original_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # The attempt that tripped the alarm.
    detected_context_id: Mapped[str] = mapped_column(String(64), nullable=False)
    detected_route_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    detected_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    detected_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    fraud_type: Mapped[str] = mapped_column(String(32), nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    distance_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    minutes_elapsed: Mapped[int] = mapped_column(Integer, nullable=False)
    # Running totals inclusive of this attempt.
    ticket_attempts: Mapped[int] = mapped_column(Integer, nullable=False)
    holder_attempts: Mapped[int] = mapped_column(Integer, nullable=False)
