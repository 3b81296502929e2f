"""System and transparency endpoints for the Fare Gate API."""

from __future__ import annotations

from fastapi import APIRouter

from fare_gate.core.settings import settings

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of fare policy.

    Excludes secrets and connection strings; suitable for validator apps.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "fare": {
            "ticket_price": settings.ticket_price,
            "short_code_length": settings.short_code_length,
            "daily_issue_limit": settings.daily_issue_limit,
            "default_timezone": settings.default_timezone,
        },
        "transfers": {
            "window_hours": settings.transfer_window_hours,
            "sweep_enabled": settings.transfer_sweep_enabled,
        },
        "fraud": {
            "severity_thresholds": settings.severity_thresholds,
        },
    }
