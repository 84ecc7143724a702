"""
In-process durable notification sweep.

Runs ``PushNotificationService.process_pending_notifications`` every
``Push.SweepIntervalSecs`` seconds inside the API process.  Reminders are
therefore delivered up to one interval after their scheduled time.
"""

import asyncio
import logging

from dayfuse.configs import configs
from dayfuse.core.push.service import PushNotificationService, SweepReport

logger = logging.getLogger(__name__)

# Stop event for graceful shutdown
_stop_event: asyncio.Event | None = None
_sweep_task: asyncio.Task[None] | None = None


async def run_sweep_once() -> SweepReport:
    """Open a session, sweep due notifications, commit."""
    from dayfuse.infra.database import get_task_db_session

    async with get_task_db_session() as db:
        service = PushNotificationService(db)
        try:
            report = await service.process_pending_notifications()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    if report.processed:
        logger.info(
            f"Push sweep: processed={report.processed}, sent={report.sent}, "
            f"failed={report.failed}, abandoned={report.abandoned}"
        )
    return report


async def _sweep_loop(interval: float) -> None:
    assert _stop_event is not None
    logger.info(f"Push notification sweeper started - checking every {interval:g} seconds")

    while not _stop_event.is_set():
        try:
            # Cancellable wait: returns early when stop is requested
            await asyncio.wait_for(_stop_event.wait(), timeout=interval)
            break
        except asyncio.TimeoutError:
            pass

        try:
            await run_sweep_once()
        except asyncio.CancelledError:
            logger.info("Push sweeper cancelled during sweep")
            raise
        except Exception as e:
            logger.error(f"Push sweep error: {e}")

    logger.info("Push notification sweeper stopped")


def start_sweeper(interval: float | None = None) -> asyncio.Task[None]:
    """Start the background sweep on the running loop (idempotent)."""
    global _stop_event, _sweep_task
    if _sweep_task is not None and not _sweep_task.done():
        return _sweep_task

    _stop_event = asyncio.Event()
    _sweep_task = asyncio.create_task(_sweep_loop(interval or configs.Push.SweepIntervalSecs))
    return _sweep_task


async def stop_sweeper() -> None:
    """Signal the sweep loop to exit and wait for it."""
    global _sweep_task
    if _stop_event is not None:
        _stop_event.set()
    if _sweep_task is not None:
        try:
            await asyncio.wait_for(_sweep_task, timeout=5)
        except asyncio.TimeoutError:
            _sweep_task.cancel()
        _sweep_task = None
