# src/fare_gate/models/ledger.py
"""Per-holder balance of unredeemed ticket credits."""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from fare_gate.db.session import Base


class TicketAccount(Base):
    """Ledger row tracking how many ticket credits a holder has left."""

    __tablename__ = "ticket_account"
    __table_args__ = (
        CheckConstraint("credit_count >= 0", name="ck_ticket_account_credit_non_negative"),
    )

    holder_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    credit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_redeemed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
