"""Errors raised inside the reminder engine.

``NotificationManager`` catches all of them at its boundary and turns them
into ``False`` plus a log line, so task CRUD is never blocked by a
notification failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dayfuse.reminder.models import Channel


class ReminderError(Exception):
    """Base class for reminder engine errors."""


class PermissionDenied(ReminderError):
    """The user refused (or previously blocked) notification permission."""


class UnsupportedPlatform(ReminderError):
    """The device offers no way to deliver the requested kind of notification."""


class SchedulingSkipped(ReminderError):
    """The reminder was not armed, e.g. because its trigger is not in the future."""

    def __init__(self, task_id: str, reason: str) -> None:
        self.task_id = task_id
        self.reason = reason
        super().__init__(f"Reminder for task {task_id} skipped: {reason}")


class DeliveryFailed(ReminderError):
    """A delivery backend could not arm or disarm a reminder."""

    def __init__(self, channel: Channel, message: str) -> None:
        self.channel = channel
        super().__init__(f"[{channel.value}] {message}")


class SubscriptionRegistrationFailed(ReminderError):
    """Fetching the VAPID key, subscribing, or registering with the server failed."""


class ReminderNotFound(ReminderError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"No reminder or task known for {task_id}")
