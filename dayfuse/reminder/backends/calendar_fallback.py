from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from dayfuse.reminder.backends.base import DeliveryBackend
from dayfuse.reminder.channels import DeviceCapability
from dayfuse.reminder.clock import Clock
from dayfuse.reminder.fallbacks import CalendarFallback, build_calendar_fallback
from dayfuse.reminder.models import Channel, ReminderKey, ReminderPayload
from dayfuse.reminder.ports import CalendarSink

logger = logging.getLogger(__name__)


class CalendarFallbackBackend(DeliveryBackend):
    """Exports the reminder as a calendar event with a zero-offset alarm.

    Nothing stays armed on the device, so ``disarm`` has nothing to undo;
    an exported event can only be removed by the user.
    """

    channel = Channel.calendar_fallback

    def __init__(
        self,
        clock: Clock,
        capability_provider: Callable[[], DeviceCapability],
        sink: CalendarSink | None = None,
        duration: timedelta | None = None,
    ) -> None:
        super().__init__()
        self.clock = clock
        self.capability_provider = capability_provider
        self.sink = sink
        self.duration = duration

    async def arm(self, key: ReminderKey, trigger_at: datetime, payload: ReminderPayload) -> CalendarFallback:
        fallback = build_calendar_fallback(
            payload,
            trigger_at,
            self.capability_provider(),
            duration=self.duration,
            now=self.clock.now(),
        )
        if self.sink is not None:
            self.sink.deliver(fallback)
        logger.info(f"Reminder {key} exported as calendar event {fallback.filename}")
        return fallback

    async def disarm(self, handle: Any) -> None:
        return None
