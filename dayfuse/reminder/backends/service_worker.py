from __future__ import annotations

from typing import Any

from dayfuse.reminder.backends.local_timer import CountdownBackend
from dayfuse.reminder.clock import Clock, TimerService
from dayfuse.reminder.models import Channel, ReminderPayload
from dayfuse.reminder.ports import ServiceWorkerPort

SHOW_NOTIFICATION = "SHOW_NOTIFICATION"


class ServiceWorkerBackend(CountdownBackend):
    """Countdown in the page, display delegated to the service worker.

    Survives a backgrounded tab but not a closed browser.
    """

    channel = Channel.service_worker

    def __init__(self, clock: Clock, timers: TimerService, worker: ServiceWorkerPort) -> None:
        super().__init__(clock, timers)
        self.worker = worker

    def _deliver(self, payload: ReminderPayload) -> None:
        message: dict[str, Any] = {
            "type": SHOW_NOTIFICATION,
            "title": payload.title,
            "options": payload.notification_options(),
        }
        self.worker.post_message(message)
