from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from dayfuse.reminder.backends.base import DeliveryBackend
from dayfuse.reminder.exceptions import DeliveryFailed
from dayfuse.reminder.models import Channel, ReminderKey, ReminderPayload
from dayfuse.reminder.push_client import PushClient

logger = logging.getLogger(__name__)


class ServerDurableBackend(DeliveryBackend):
    """Stores the reminder on the relay, which pushes it at due time.

    The handle is the server task id; disarming deletes that task, which
    also drops its pending scheduled notifications.
    """

    channel = Channel.server_durable

    def __init__(self, client: PushClient, user_id: str) -> None:
        super().__init__()
        self.client = client
        self.user_id = user_id

    async def arm(self, key: ReminderKey, trigger_at: datetime, payload: ReminderPayload) -> str:
        try:
            envelope = await self.client.create_task(
                self.user_id,
                payload.task_title,
                trigger_at,
                description=payload.description,
                reminder_title=payload.title,
                reminder_body=payload.body,
            )
        except httpx.HTTPError as e:
            raise DeliveryFailed(self.channel, f"could not store reminder {key}: {e}") from e

        server_task_id = str(envelope["task"]["id"])
        if not envelope.get("notificationScheduled"):
            await self._discard(server_task_id)
            raise DeliveryFailed(self.channel, f"server declined to schedule reminder {key}")

        logger.info(f"Reminder {key} stored on server as task {server_task_id}")
        return server_task_id

    async def disarm(self, handle: Any) -> None:
        if not handle:
            return
        try:
            await self.client.delete_task(str(handle))
        except httpx.HTTPError as e:
            raise DeliveryFailed(self.channel, f"could not cancel server task {handle}: {e}") from e

    async def _discard(self, server_task_id: str) -> None:
        try:
            await self.client.delete_task(server_task_id)
        except httpx.HTTPError as e:
            logger.warning(f"Failed to discard unscheduled server task {server_task_id}: {e}")
