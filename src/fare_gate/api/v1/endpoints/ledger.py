# src/fare_gate/api/v1/endpoints/ledger.py
"""Account ledger endpoints."""

from fastapi import APIRouter, HTTPException, status

from fare_gate.api.v1.dependencies import CurrentIdentityDep, ServiceIdentityDep, SessionDep
from fare_gate.schemas.ledger import LedgerCredit, LedgerResponse
from fare_gate.services.ledger import AccountLedger

router = APIRouter(prefix="/ledger", tags=["ledger"])


def _balance(ledger: AccountLedger, holder_id: str) -> LedgerResponse:
    account = ledger.get_account(holder_id)
    if account is None:
        return LedgerResponse(holder_id=holder_id, credit_count=0, total_redeemed_count=0)
    return LedgerResponse.model_validate(account)


@router.get("/me", response_model=LedgerResponse)
def get_my_balance(identity: CurrentIdentityDep, db: SessionDep) -> LedgerResponse:
    """Return the caller's ticket balance."""
    return _balance(AccountLedger(db), identity)


@router.get("/{holder_id}", response_model=LedgerResponse)
def get_balance(
    holder_id: str,
    _service: ServiceIdentityDep,
    db: SessionDep,
) -> LedgerResponse:
    """Return any holder's ticket balance (back-office only)."""
    return _balance(AccountLedger(db), holder_id)


@router.post(
    "/{holder_id}/credits",
    response_model=LedgerResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_credits(
    holder_id: str,
    payload: LedgerCredit,
    _service: ServiceIdentityDep,
    db: SessionDep,
) -> LedgerResponse:
    """Credit purchased tickets to a holder once payment has settled."""
    ledger = AccountLedger(db)
    try:
        account = ledger.credit(holder_id, payload.amount)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    db.commit()
    return LedgerResponse.model_validate(account)
