"""Push payload shapes understood by the DayFuse service worker."""

from __future__ import annotations

from typing import Any, TypedDict

from dayfuse.configs import configs


class PushAction(TypedDict):
    action: str
    title: str


class PushPayload(TypedDict, total=False):
    title: str
    body: str
    icon: str
    badge: str
    tag: str
    data: dict[str, Any]
    actions: list[PushAction]


REMINDER_ACTIONS: list[PushAction] = [
    {"action": "complete", "title": "✓ Complete"},
    {"action": "snooze", "title": "⏰ Snooze 10min"},
    {"action": "view", "title": "👁 View"},
]


def build_reminder_payload(title: str, body: str, task_id: str, notification_id: str) -> PushPayload:
    return {
        "title": title,
        "body": body,
        "icon": configs.Push.Icon,
        "badge": configs.Push.Badge,
        "tag": f"task-{task_id}",
        "data": {
            "taskId": task_id,
            "notificationId": notification_id,
            "url": configs.Push.ClickUrl,
        },
        "actions": list(REMINDER_ACTIONS),
    }


def build_simple_payload(title: str, body: str) -> PushPayload:
    return {
        "title": title,
        "body": body,
        "icon": configs.Push.Icon,
        "badge": configs.Push.Badge,
        "data": {"url": configs.Push.ClickUrl},
    }


def reminder_text(task_title: str) -> tuple[str, str]:
    """Title and body used for a task's durable reminder."""
    return "DayFuse Task Reminder", f"Time to work on: {task_title}"
