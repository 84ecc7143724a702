"""User-facing degradation notices and the calendar fallback bundle."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from dayfuse.configs import configs
from dayfuse.reminder.calendar import (
    build_calendar_event,
    create_google_calendar_url,
    create_outlook_calendar_url,
    default_event_duration,
    event_uid,
    filename_for_title,
)
from dayfuse.reminder.channels import DeviceCapability, select_channel
from dayfuse.reminder.models import Channel, ReminderPayload

IOS_INSTALL_MESSAGE = (
    "For notifications to work on iPhone:\n"
    "1. Tap the Share button (square with arrow)\n"
    '2. Select "Add to Home Screen"\n'
    "3. Open DayFuse from your home screen\n"
    "4. Enable notifications when prompted"
)
IOS_VERSION_MESSAGE = (
    "Your iOS version has limited notification support. For the best experience, consider:\n"
    "- Updating to iOS {version} or later\n"
    "- Adding tasks to your iPhone Calendar"
)
CALENDAR_FALLBACK_MESSAGE = (
    "Task reminder added to your calendar as backup! "
    "You can download the calendar event to add it to your calendar app."
)
LIMITED_BROWSER_MESSAGE = "Browser notifications are limited. We'll add task reminders to your calendar instead!"


class NoticeKind(str, Enum):
    ios_install = "ios-install"
    ios_version = "ios-version"
    calendar_fallback = "calendar-fallback"
    limited_browser = "limited-browser"


class NoticeLevel(str, Enum):
    info = "info"
    warning = "warning"
    success = "success"


@dataclass(frozen=True)
class FallbackNotice:
    kind: NoticeKind
    level: NoticeLevel
    message: str


@dataclass(frozen=True)
class CalendarFallback:
    """Everything the UI needs to offer the reminder as a calendar event."""

    task_id: str
    ics: str
    filename: str
    google_url: str
    outlook_url: str
    notices: list[FallbackNotice] = field(default_factory=list)


def fallback_notices(capability: DeviceCapability, channel: Channel | None = None) -> list[FallbackNotice]:
    channel = channel or select_channel(capability)
    notices: list[FallbackNotice] = []
    min_ios = tuple(configs.Reminder.MinIOSPushVersion)

    if capability.is_ios and not capability.is_native:
        if not capability.is_pwa_installed:
            notices.append(FallbackNotice(NoticeKind.ios_install, NoticeLevel.info, IOS_INSTALL_MESSAGE))
        elif capability.ios_version is not None and capability.ios_version < min_ios:
            version = ".".join(str(part) for part in min_ios)
            notices.append(
                FallbackNotice(NoticeKind.ios_version, NoticeLevel.warning, IOS_VERSION_MESSAGE.format(version=version))
            )

    if channel is Channel.calendar_fallback:
        if not capability.is_ios and not capability.is_native and not capability.supports_push:
            notices.append(FallbackNotice(NoticeKind.limited_browser, NoticeLevel.info, LIMITED_BROWSER_MESSAGE))
        notices.append(FallbackNotice(NoticeKind.calendar_fallback, NoticeLevel.success, CALENDAR_FALLBACK_MESSAGE))

    return notices


def build_calendar_fallback(
    payload: ReminderPayload,
    trigger_at: datetime,
    capability: DeviceCapability,
    *,
    duration: timedelta | None = None,
    now: datetime | None = None,
) -> CalendarFallback:
    end = trigger_at + (duration or default_event_duration())
    return CalendarFallback(
        task_id=payload.task_id,
        ics=build_calendar_event(
            event_uid(payload.task_id),
            payload.task_title,
            trigger_at,
            end,
            description=payload.description,
            now=now,
        ),
        filename=filename_for_title(payload.task_title),
        google_url=create_google_calendar_url(payload.task_title, trigger_at, end, details=payload.description or ""),
        outlook_url=create_outlook_calendar_url(payload.task_title, trigger_at, end, body=payload.description or ""),
        notices=fallback_notices(capability, Channel.calendar_fallback),
    )
