# src/fare_gate/api/v1/endpoints/contexts.py
"""Registry of validating units."""

from fastapi import APIRouter, HTTPException, status

from fare_gate.api.v1.dependencies import CurrentIdentityDep, ServiceIdentityDep, SessionDep
from fare_gate.models import RedemptionContext
from fare_gate.schemas.context import ContextResponse, ContextUpsert

router = APIRouter(prefix="/contexts", tags=["contexts"])


@router.put("/{context_id}", response_model=ContextResponse)
def upsert_context(
    context_id: str,
    payload: ContextUpsert,
    _service: ServiceIdentityDep,
    db: SessionDep,
) -> ContextResponse:
    """Register a validating unit or update its label, plate or timezone."""
    context = db.get(RedemptionContext, context_id)
    if context is None:
        context = RedemptionContext(id=context_id, label=payload.label)
        db.add(context)
    context.label = payload.label
    context.plate = payload.plate
    context.timezone = payload.timezone
    db.commit()
    db.refresh(context)
    return ContextResponse.model_validate(context)


@router.get("/{context_id}", response_model=ContextResponse)
def get_context(
    context_id: str,
    _identity: CurrentIdentityDep,
    db: SessionDep,
) -> ContextResponse:
    """Return a registered validating unit."""
    context = db.get(RedemptionContext, context_id)
    if context is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Context not found")
    return ContextResponse.model_validate(context)
