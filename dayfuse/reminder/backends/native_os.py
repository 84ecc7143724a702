from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from dayfuse.reminder.backends.base import DeliveryBackend
from dayfuse.reminder.models import Channel, ReminderKey, ReminderPayload
from dayfuse.reminder.ports import NativeNotificationScheduler

logger = logging.getLogger(__name__)


class NativeOSBackend(DeliveryBackend):
    """Persistent OS notification scheduling on native builds.

    The reminder key string is the platform identifier, so re-arming a key
    always replaces the previous OS entry instead of leaking a duplicate.
    """

    channel = Channel.native_os

    def __init__(self, scheduler: NativeNotificationScheduler) -> None:
        super().__init__()
        self.scheduler = scheduler

    async def arm(self, key: ReminderKey, trigger_at: datetime, payload: ReminderPayload) -> str:
        identifier = str(key)
        await self.scheduler.cancel(identifier)
        content: dict[str, Any] = {
            "title": f"📋 {payload.title}",
            "body": payload.body,
            "data": {"taskId": payload.task_id, "type": key.kind.value},
            "categoryIdentifier": "task_reminder",
        }
        await self.scheduler.schedule(identifier, trigger_at, content)
        logger.debug(f"Native reminder {identifier} scheduled at {trigger_at.isoformat()}")
        return identifier

    async def disarm(self, handle: Any) -> None:
        if handle:
            await self.scheduler.cancel(str(handle))
