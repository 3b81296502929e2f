# src/fare_gate/models/context.py
"""Registry of redeeming contexts (vehicles, terminals)."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fare_gate.db.session import Base


class RedemptionContext(Base):
    """A validating unit and the timezone its operating day is anchored to."""

    __tablename__ = "redemption_context"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Economic number or terminal name shown to operators.
    label: Mapped[str] = mapped_column(Text, nullable=False)
    plate: Mapped[str | None] = mapped_column(Text, nullable=True)
    # IANA name; None falls back to settings.default_timezone.
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
