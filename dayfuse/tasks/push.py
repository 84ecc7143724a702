"""Celery task for the durable push sweep (used when ``Push.SweepMode == "celery"``)."""

import asyncio
import logging

from dayfuse.core.celery_app import celery_app
from dayfuse.core.push.service import SweepReport

logger = logging.getLogger(__name__)


async def _sweep_with_fresh_pool() -> SweepReport:
    from dayfuse.core.push.sweeper import run_sweep_once
    from dayfuse.infra.database import async_engine

    try:
        return await run_sweep_once()
    finally:
        # Each asyncio.run() gets a new loop; pooled connections must not leak across loops
        await async_engine.dispose()


@celery_app.task(name="process_pending_notifications", ignore_result=True, soft_time_limit=25)
def process_pending_notifications() -> dict[str, int]:
    """Beat entry-point: sweep due notifications in an event loop."""
    report = asyncio.run(_sweep_with_fresh_pool())
    if not report.processed:
        logger.debug("Push sweep: nothing due")
    return {
        "processed": report.processed,
        "sent": report.sent,
        "failed": report.failed,
        "abandoned": report.abandoned,
    }
