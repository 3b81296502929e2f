# src/fare_gate/api/v1/endpoints/validations.py
"""Daily validation counters for operators and validators."""

from datetime import timedelta

from fastapi import APIRouter

from fare_gate.api.v1.dependencies import (
    ClockDep,
    CurrentIdentityDep,
    ServiceIdentityDep,
    SessionDep,
)
from fare_gate.core.settings import settings
from fare_gate.db.time import local_midnight
from fare_gate.schemas.context import DailyCountResponse
from fare_gate.services.validation_log import ValidationLog

router = APIRouter(prefix="/validations", tags=["validations"])


@router.get("/daily", response_model=DailyCountResponse)
def get_daily_count(
    context_id: str,
    _identity: CurrentIdentityDep,
    db: SessionDep,
    clock: ClockDep,
) -> DailyCountResponse:
    """Return today's valid redemptions and revenue for one context."""
    log = ValidationLog(db)
    tz_name = log.context_timezone(context_id)
    since = local_midnight(clock(), tz_name)
    count = log.count_valid_since(context_id, since)
    return DailyCountResponse(
        context_id=context_id,
        timezone=tz_name,
        since=since.isoformat(),
        count=count,
        total=round(count * settings.ticket_price, 2),
    )


@router.get("/daily/summary")
def get_daily_summary(
    _service: ServiceIdentityDep,
    db: SessionDep,
    clock: ClockDep,
) -> dict[str, object]:
    """Return today's valid redemptions per context in the default timezone."""
    since = local_midnight(clock(), settings.default_timezone)
    counts = ValidationLog(db).daily_counts(since, since + timedelta(days=1))
    return {
        "timezone": settings.default_timezone,
        "since": since.isoformat(),
        "counts": counts,
        "total": round(sum(counts.values()) * settings.ticket_price, 2),
    }
