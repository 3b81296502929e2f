"""Account ledger: per-holder ticket credit balances."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from fare_gate.models import TicketAccount
from fare_gate.services.errors import InsufficientCreditError

logger = logging.getLogger(__name__)


class AccountLedger:
    """Moves ticket credits in and out of holder accounts.

    Neither ``debit`` nor ``credit`` is idempotent; callers gate each call on a
    successful ticket compare-and-swap so it runs exactly once per transition.
    Both only flush; the caller owns the transaction.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_account(self, holder_id: str) -> TicketAccount | None:
        """Return the ledger row for a holder, if one exists."""
        return self.db.get(TicketAccount, holder_id, populate_existing=True)

    def lock_account(self, holder_id: str) -> TicketAccount | None:
        """Return the holder's row locked for the rest of the transaction."""
        return self.db.execute(
            select(TicketAccount)
            .where(TicketAccount.holder_id == holder_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().first()

    def debit(self, holder_id: str) -> None:
        """Consume one credit and count one redemption.

        Raises:
            InsufficientCreditError: If the holder has no account or no credits.
        """
        result = self.db.execute(
            update(TicketAccount)
            .where(
                TicketAccount.holder_id == holder_id,
                TicketAccount.credit_count > 0,
            )
            .values(
                credit_count=TicketAccount.credit_count - 1,
                total_redeemed_count=TicketAccount.total_redeemed_count + 1,
            )
            .execution_options(synchronize_session=False)
        )
        self._expire_cached(holder_id)
        if result.rowcount != 1:
            raise InsufficientCreditError(f"Holder {holder_id} has no ticket credits")

    def credit(self, holder_id: str, amount: int) -> TicketAccount:
        """Add ``amount`` credits to a holder, opening the account if needed."""
        if amount <= 0:
            raise ValueError("Credit amount must be positive")

        account = self.lock_account(holder_id)
        if account is None:
            account = TicketAccount(holder_id=holder_id, credit_count=0, total_redeemed_count=0)
            self.db.add(account)
            self.db.flush()
        account.credit_count += amount
        self.db.flush()
        logger.info("Credited %d ticket(s) to holder %s", amount, holder_id)
        return account

    def _expire_cached(self, holder_id: str) -> None:
        cached = self.db.identity_map.get(self.db.identity_key(TicketAccount, holder_id))
        if cached is not None:
            self.db.expire(cached)
