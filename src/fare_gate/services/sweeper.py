"""Background reclaim of overdue ticket transfers.

Lazy reclaim at redemption time is sufficient for correctness; the sweeper
only keeps ticket states tidy for holders who never present the ticket again.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from fare_gate.core.settings import settings
from fare_gate.db.session import SessionLocal
from fare_gate.services.transfer import TransferManager

logger = logging.getLogger(__name__)


def sweep_once() -> int:
    """Run one sweep in a fresh session and return the reclaimed count."""
    with SessionLocal() as db:
        return TransferManager(db).sweep_expired()


class TransferSweepWorker:
    """Periodically reclaims transfers whose window has closed."""

    def __init__(self, interval_seconds: float | None = None) -> None:
        self.interval = max(
            1.0,
            float(interval_seconds or settings.transfer_sweep_interval_seconds),
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.to_thread(sweep_once)
            except SQLAlchemyError as e:
                logger.error("TransferSweepWorker encountered database error: %s", e, exc_info=True)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                continue
