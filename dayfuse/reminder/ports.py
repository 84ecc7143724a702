"""Platform seams the reminder engine talks to.

A browser build, a native shell and the test suite each provide their own
implementations; the engine only depends on these protocols.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from dayfuse.reminder.models import PermissionState, ReminderKey

if TYPE_CHECKING:
    from dayfuse.reminder.fallbacks import CalendarFallback
    from dayfuse.reminder.store import StoredReminder


@dataclass(frozen=True)
class PushSubscriptionInfo:
    """Result of ``pushManager.subscribe`` as the relay expects it."""

    endpoint: str
    p256dh: str
    auth: str


class Notifier(Protocol):
    """In-page Notification API."""

    def show(self, title: str, options: dict[str, Any]) -> None: ...


class ServiceWorkerPort(Protocol):
    """``postMessage`` to the active service worker registration."""

    def post_message(self, message: dict[str, Any]) -> None: ...


class NativeNotificationScheduler(Protocol):
    """Persistent OS-level notification scheduling on native builds."""

    async def schedule(self, identifier: str, trigger_at: datetime, content: dict[str, Any]) -> str: ...

    async def cancel(self, identifier: str) -> None: ...


class PermissionPort(Protocol):
    def current(self) -> PermissionState: ...

    async def request(self) -> PermissionState: ...


class PushSubscriber(Protocol):
    async def subscribe(self, application_server_key: str) -> PushSubscriptionInfo: ...


class CalendarSink(Protocol):
    """Receives the calendar export so the UI can offer a download."""

    def deliver(self, fallback: CalendarFallback) -> None: ...


class ReminderStore(Protocol):
    """Durable record of pending reminders, keyed by ``str(ReminderKey)``.

    Lets a reload re-register what the previous session armed.
    """

    def load(self) -> list[StoredReminder]: ...

    def save(self, record: StoredReminder) -> None: ...

    def delete(self, key: ReminderKey) -> None: ...
