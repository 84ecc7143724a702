from .push_subscription import PushSubscription, PushSubscriptionCreate
from .scheduled_notification import ScheduledNotification, ScheduledNotificationCreate
from .task import Task, TaskCreate, TaskUpdate

__all__ = [
    "PushSubscription",
    "PushSubscriptionCreate",
    "ScheduledNotification",
    "ScheduledNotificationCreate",
    "Task",
    "TaskCreate",
    "TaskUpdate",
]
