from __future__ import annotations

import logging
from abc import abstractmethod
from datetime import datetime
from typing import Any

from dayfuse.reminder.backends.base import DeliveryBackend
from dayfuse.reminder.clock import Clock, TimerHandle, TimerService
from dayfuse.reminder.models import Channel, ReminderKey, ReminderPayload
from dayfuse.reminder.ports import Notifier

logger = logging.getLogger(__name__)


class CountdownBackend(DeliveryBackend):
    """Arms a timer relative to the clock and delivers when it fires.

    Delay is fixed at arm time; device sleep is not compensated.
    """

    def __init__(self, clock: Clock, timers: TimerService) -> None:
        super().__init__()
        self.clock = clock
        self.timers = timers

    async def arm(self, key: ReminderKey, trigger_at: datetime, payload: ReminderPayload) -> TimerHandle:
        delay = (trigger_at - self.clock.now()).total_seconds()

        def _fire() -> None:
            try:
                self._deliver(payload)
            except Exception:
                logger.exception(f"Failed to show reminder {key} via {self.channel.value}")
            finally:
                self._notify_fired(key)

        handle = self.timers.call_later(delay, _fire)
        logger.debug(f"Armed {self.channel.value} reminder {key} in {delay:.0f}s")
        return handle

    async def disarm(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()

    @abstractmethod
    def _deliver(self, payload: ReminderPayload) -> None: ...


class LocalTimerBackend(CountdownBackend):
    """Plain in-page Notification API call, lost on tab close or reload."""

    channel = Channel.local_timer

    def __init__(self, clock: Clock, timers: TimerService, notifier: Notifier) -> None:
        super().__init__(clock, timers)
        self.notifier = notifier

    def _deliver(self, payload: ReminderPayload) -> None:
        self.notifier.show(payload.title, payload.notification_options())
