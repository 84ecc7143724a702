"""Client-side reminder engine: scheduler, channel selection, delivery backends and fallbacks."""

from .channels import DeviceCapability, detect_browser, detect_capabilities, parse_ios_version, select_channel
from .clock import AsyncioTimerService, Clock, SystemClock, TimerService, compute_trigger_at, local_zone
from .exceptions import (
    DeliveryFailed,
    PermissionDenied,
    ReminderError,
    ReminderNotFound,
    SchedulingSkipped,
    SubscriptionRegistrationFailed,
    UnsupportedPlatform,
)
from .manager import ManagerPorts, NotificationManager
from .models import (
    Channel,
    PermissionState,
    ReminderEntry,
    ReminderHandle,
    ReminderKey,
    ReminderKind,
    ReminderPayload,
    ReminderState,
    TaskRecord,
)
from .scheduler import ReminderScheduler
from .store import JsonFileReminderStore, StoredReminder

__all__ = [
    "AsyncioTimerService",
    "Channel",
    "Clock",
    "DeliveryFailed",
    "DeviceCapability",
    "JsonFileReminderStore",
    "ManagerPorts",
    "NotificationManager",
    "PermissionDenied",
    "PermissionState",
    "ReminderEntry",
    "ReminderError",
    "ReminderHandle",
    "ReminderKey",
    "ReminderKind",
    "ReminderNotFound",
    "ReminderPayload",
    "ReminderScheduler",
    "ReminderState",
    "SchedulingSkipped",
    "StoredReminder",
    "SubscriptionRegistrationFailed",
    "SystemClock",
    "TaskRecord",
    "TimerService",
    "UnsupportedPlatform",
    "compute_trigger_at",
    "detect_browser",
    "detect_capabilities",
    "local_zone",
    "parse_ios_version",
    "select_channel",
]
