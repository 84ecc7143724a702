"""Value types shared by the reminder scheduler, channel selector and backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar

from dayfuse.configs import configs
from dayfuse.core.push.payload import REMINDER_ACTIONS, reminder_text


class Channel(str, Enum):
    """Delivery mechanism chosen for a reminder, strongest guarantee first."""

    server_durable = "server-durable"
    native_os = "native-os"
    service_worker = "service-worker"
    local_timer = "local-timer"
    calendar_fallback = "calendar-fallback"


CHANNEL_PRIORITY: tuple[Channel, ...] = tuple(Channel)


class ReminderKind(str, Enum):
    primary = "primary"
    followup = "followup"


class ReminderState(str, Enum):
    pending = "pending"
    fired = "fired"
    cancelled = "cancelled"


_SUFFIX_KINDS = frozenset(k.value for k in ReminderKind if k is not ReminderKind.primary)


class PermissionState(str, Enum):
    default = "default"
    granted = "granted"
    denied = "denied"


@dataclass(frozen=True)
class ReminderKey:
    """Deterministic identity of a reminder.

    The string form is ``taskId`` for the primary reminder and
    ``taskId:followup`` for the follow-up; :meth:`parse` is its inverse.
    Re-arming under the same key always supersedes the previous entry.
    """

    SEPARATOR: ClassVar[str] = ":"

    task_id: str
    kind: ReminderKind = ReminderKind.primary

    def __post_init__(self) -> None:
        if not self.task_id:
            raise ValueError("ReminderKey requires a task id")
        head, sep, tail = self.task_id.rpartition(self.SEPARATOR)
        if sep and head and tail in _SUFFIX_KINDS:
            raise ValueError(f"Task id {self.task_id!r} collides with the {tail} key suffix")

    def __str__(self) -> str:
        if self.kind is ReminderKind.primary:
            return self.task_id
        return f"{self.task_id}{self.SEPARATOR}{self.kind.value}"

    @classmethod
    def parse(cls, value: str) -> ReminderKey:
        head, sep, tail = value.rpartition(cls.SEPARATOR)
        if sep and head and tail in _SUFFIX_KINDS:
            return cls(head, ReminderKind(tail))
        return cls(value)

    @classmethod
    def primary_for(cls, task_id: str) -> ReminderKey:
        return cls(task_id, ReminderKind.primary)

    @classmethod
    def followup_for(cls, task_id: str) -> ReminderKey:
        return cls(task_id, ReminderKind.followup)


def task_keys(task_id: str) -> tuple[ReminderKey, ReminderKey]:
    """Every key a task can own, primary first."""
    return ReminderKey.primary_for(task_id), ReminderKey.followup_for(task_id)


@dataclass(frozen=True)
class TaskRecord:
    """The slice of a task the reminder engine reads. Never mutated here."""

    id: str
    title: str
    due_date: date
    due_time: str | None = None  # "HH:MM", local time
    description: str | None = None
    completed: bool = False


@dataclass(frozen=True)
class ReminderPayload:
    title: str
    body: str
    task_id: str
    task_title: str
    description: str | None = None
    url: str = field(default_factory=lambda: configs.Push.ClickUrl)

    def notification_options(self) -> dict[str, Any]:
        """Options object handed to the Notification API / service worker."""
        return {
            "body": self.body,
            "icon": configs.Push.Icon,
            "badge": configs.Push.Badge,
            "tag": f"task-{self.task_id}",
            "requireInteraction": True,
            "data": {"taskId": self.task_id, "url": self.url},
            "actions": [dict(a) for a in REMINDER_ACTIONS],
        }


def reminder_payload(task: TaskRecord) -> ReminderPayload:
    title, body = reminder_text(task.title)
    return ReminderPayload(title=title, body=body, task_id=task.id, task_title=task.title, description=task.description)


def followup_payload(task: TaskRecord) -> ReminderPayload:
    title, _ = reminder_text(task.title)
    return ReminderPayload(
        title=title,
        body=f"Still pending: {task.title}",
        task_id=task.id,
        task_title=task.title,
        description=task.description,
    )


def snoozed_payload(task_id: str, task_title: str, description: str | None = None) -> ReminderPayload:
    return ReminderPayload(
        title="Snoozed Task Reminder",
        body=f"Your snoozed task is ready: {task_title}",
        task_id=task_id,
        task_title=task_title,
        description=description,
    )


@dataclass(frozen=True)
class ReminderHandle:
    """What the scheduler returns to callers after arming a primary reminder."""

    key: ReminderKey
    channel: Channel
    trigger_at: datetime
    backend_handle: Any = None


@dataclass
class ReminderEntry:
    key: ReminderKey
    trigger_at: datetime
    channel: Channel
    payload: ReminderPayload
    handle: Any = None
    state: ReminderState = ReminderState.pending

    @property
    def task_id(self) -> str:
        return self.key.task_id

    @property
    def is_pending(self) -> bool:
        return self.state is ReminderState.pending

    def as_handle(self) -> ReminderHandle:
        return ReminderHandle(key=self.key, channel=self.channel, trigger_at=self.trigger_at, backend_handle=self.handle)
