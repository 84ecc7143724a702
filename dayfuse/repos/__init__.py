from .push_subscription import PushSubscriptionRepository
from .scheduled_notification import ScheduledNotificationRepository
from .task import TaskRepository

__all__ = [
    "PushSubscriptionRepository",
    "ScheduledNotificationRepository",
    "TaskRepository",
]
