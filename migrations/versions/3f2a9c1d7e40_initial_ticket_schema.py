"""initial ticket schema

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-19 09:12:44.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7e40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tickets, ledger, validation log, fraud attempts and contexts."""
    op.create_table(
        "redemption_context",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("plate", sa.Text(), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "ticket_account",
        sa.Column("holder_id", sa.String(length=64), nullable=False),
        sa.Column("credit_count", sa.Integer(), nullable=False),
        sa.Column("total_redeemed_count", sa.Integer(), nullable=False),
        sa.CheckConstraint("credit_count >= 0", name="ck_ticket_account_credit_non_negative"),
        sa.PrimaryKeyConstraint("holder_id"),
    )
    op.create_table(
        "ticket",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("holder_id", sa.String(length=64), nullable=False),
        sa.Column("state", sa.String(length=32), nullable=False),
        sa.Column("amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("issued_at", sa.DateTime(), nullable=False),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("used_by_context_id", sa.String(length=64), nullable=True),
        sa.Column("used_route_id", sa.String(length=64), nullable=True),
        sa.Column("used_at_latitude", sa.Float(), nullable=True),
        sa.Column("used_at_longitude", sa.Float(), nullable=True),
        sa.Column("transfer_expires_at", sa.DateTime(), nullable=True),
        sa.Column("transferred_at", sa.DateTime(), nullable=True),
        sa.Column("transferred_to", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "state IN ('active', 'used', 'expired', 'transfer_pending')",
            name="ck_ticket_state",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ticket_holder_issued", "ticket", ["holder_id", "issued_at"])
    op.create_index(
        "ix_ticket_state_transfer_expiry", "ticket", ["state", "transfer_expires_at"]
    )
    op.create_table(
        "validation_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ticket_id", sa.String(length=64), nullable=True),
        sa.Column("result", sa.String(length=32), nullable=False),
        sa.Column("context_id", sa.String(length=64), nullable=False),
        sa.Column("route_id", sa.String(length=64), nullable=True),
        sa.Column("agent_id", sa.String(length=64), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_validation_log_context_result_created",
        "validation_log",
        ["context_id", "result", "created_at"],
    )
    op.create_table(
        "fraud_attempt",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ticket_id", sa.String(length=64), nullable=False),
        sa.Column("holder_id", sa.String(length=64), nullable=False),
        sa.Column("detected_at", sa.DateTime(), nullable=False),
        sa.Column("original_used_at", sa.DateTime(), nullable=False),
        sa.Column("original_context_id", sa.String(length=64), nullable=True),
        sa.Column("original_route_id", sa.String(length=64), nullable=True),
        sa.Column("original_latitude", sa.Float(), nullable=True),
        sa.Column("original_longitude", sa.Float(), nullable=True),
        sa.Column("detected_context_id", sa.String(length=64), nullable=False),
        sa.Column("detected_route_id", sa.String(length=64), nullable=True),
        sa.Column("detected_latitude", sa.Float(), nullable=True),
        sa.Column("detected_longitude", sa.Float(), nullable=True),
        sa.Column("fraud_type", sa.String(length=32), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("distance_km", sa.Float(), nullable=True),
        sa.Column("minutes_elapsed", sa.Integer(), nullable=False),
        sa.Column("ticket_attempts", sa.Integer(), nullable=False),
        sa.Column("holder_attempts", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "fraud_type IN ('same_context', 'different_context')",
            name="ck_fraud_attempt_type",
        ),
        sa.ForeignKeyConstraint(["ticket_id"], ["ticket.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fraud_attempt_ticket_id", "fraud_attempt", ["ticket_id"])
    op.create_index("ix_fraud_attempt_holder_id", "fraud_attempt", ["holder_id"])


def downgrade() -> None:
    """Drop all Fare Gate tables."""
    op.drop_index("ix_fraud_attempt_holder_id", table_name="fraud_attempt")
    op.drop_index("ix_fraud_attempt_ticket_id", table_name="fraud_attempt")
    op.drop_table("fraud_attempt")
    op.drop_index("ix_validation_log_context_result_created", table_name="validation_log")
    op.drop_table("validation_log")
    op.drop_index("ix_ticket_state_transfer_expiry", table_name="ticket")
    op.drop_index("ix_ticket_holder_issued", table_name="ticket")
    op.drop_table("ticket")
    op.drop_table("ticket_account")
    op.drop_table("redemption_context")
