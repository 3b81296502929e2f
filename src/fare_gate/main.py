# src/fare_gate/main.py
"""Main entry point for the Fare Gate application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from fare_gate.api.v1 import (
    contexts_router,
    fraud_router,
    ledger_router,
    redemptions_router,
    system_router,
    tickets_router,
    validations_router,
)
from fare_gate.core.settings import settings
from fare_gate.services.sweeper import TransferSweepWorker

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize FastAPI app
app = FastAPI(
    title="Fare Gate API",
    description="Single-use digital ticket validation with fraud forensics",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(redemptions_router, prefix="/api/v1")
app.include_router(tickets_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")
app.include_router(fraud_router, prefix="/api/v1")
app.include_router(validations_router, prefix="/api/v1")
app.include_router(contexts_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.transfer_sweep_enabled:
        worker = TransferSweepWorker()
        await worker.start()
        app.state.sweep_worker = worker
    else:
        app.state.sweep_worker = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: TransferSweepWorker | None = getattr(app.state, "sweep_worker", None)
    if worker:
        await worker.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Fare Gate API",
        "version": settings.app_version,
        "description": "Single-use digital ticket validation with fraud forensics",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fare_gate.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
