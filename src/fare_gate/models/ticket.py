# src/fare_gate/models/ticket.py
"""SQLAlchemy model for single-use transit tickets."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Float, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fare_gate.db.session import Base
from fare_gate.db.time import UTCDateTime, utcnow

TICKET_STATE_ACTIVE = "active"
TICKET_STATE_USED = "used"
TICKET_STATE_EXPIRED = "expired"
TICKET_STATE_TRANSFER_PENDING = "transfer_pending"

TICKET_STATES = (
    TICKET_STATE_ACTIVE,
    TICKET_STATE_USED,
    TICKET_STATE_EXPIRED,
    TICKET_STATE_TRANSFER_PENDING,
)


class Ticket(Base):
    """A prepaid ticket whose ``id`` is the redeemable token.

    ``state`` moves only through the repository compare-and-swap. Redemption
    evidence is populated iff ``state == "used"``; transfer expiry is populated
    only while ``state == "transfer_pending"``.
    """

    __tablename__ = "ticket"
    __table_args__ = (
        CheckConstraint(
            "state IN ('active', 'used', 'expired', 'transfer_pending')",
            name="ck_ticket_state",
        ),
        Index("ix_ticket_holder_issued", "holder_id", "issued_at"),
        Index("ix_ticket_state_transfer_expiry", "state", "transfer_expires_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    holder_id: Mapped[str] = mapped_column(String(64), nullable=False)
    state: Mapped[str] = mapped_column(String(32), nullable=False, default=TICKET_STATE_ACTIVE)
    amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Redemption evidence.
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    used_by_context_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    used_route_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    used_at_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    used_at_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Transfer evidence; informational only once reclaimed.
    transfer_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    transferred_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    transferred_to: Mapped[str | None] = mapped_column(Text, nullable=True)

    def short_code(self, length: int) -> str:
        """Return the holder-facing display code (token tail, upper-cased)."""
        return self.id[-length:].upper()
