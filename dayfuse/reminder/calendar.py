"""
iCalendar export used when no notification channel is available.

The event carries a zero-offset ``VALARM`` so the user's calendar app
raises the reminder at the task's due time.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from dayfuse.configs import configs
from dayfuse.reminder.clock import compute_trigger_at, local_zone
from dayfuse.reminder.exceptions import SchedulingSkipped
from dayfuse.reminder.models import TaskRecord

CRLF = "\r\n"
PRODID = "-//DayFuse//Task Reminder//EN"
UID_DOMAIN = "dayfuse.app"

# RFC 5545 3.1: content lines longer than 75 octets are folded
_MAX_LINE_OCTETS = 75


def _ics_datetime(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def escape_text(value: str) -> str:
    """Escape a TEXT property value (RFC 5545 3.3.11)."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
        .replace("\r", "\\n")
    )


def _fold(line: str) -> str:
    if len(line.encode("utf-8")) <= _MAX_LINE_OCTETS:
        return line

    parts: list[str] = []
    current = ""
    limit = _MAX_LINE_OCTETS
    for ch in line:
        if len((current + ch).encode("utf-8")) > limit:
            parts.append(current)
            current = ch
            # continuation lines start with a space
            limit = _MAX_LINE_OCTETS - 1
        else:
            current += ch
    parts.append(current)
    return (CRLF + " ").join(parts)


def build_calendar_event(
    uid: str,
    summary: str,
    start: datetime,
    end: datetime,
    *,
    description: str | None = None,
    now: datetime | None = None,
) -> str:
    stamp = _ics_datetime(now or datetime.now(timezone.utc))
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{stamp}",
        f"DTSTART:{_ics_datetime(start)}",
        f"DTEND:{_ics_datetime(end)}",
        f"SUMMARY:{escape_text(summary)}",
    ]
    if description:
        lines.append(f"DESCRIPTION:{escape_text(description)}")
    lines += [
        "STATUS:CONFIRMED",
        "TRANSP:OPAQUE",
        "BEGIN:VALARM",
        "TRIGGER:PT0M",
        "DESCRIPTION:Task Reminder",
        "ACTION:DISPLAY",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return CRLF.join(_fold(line) for line in lines) + CRLF


def event_uid(task_id: str) -> str:
    return f"{task_id}@{UID_DOMAIN}"


def default_event_duration() -> timedelta:
    return timedelta(minutes=configs.Reminder.CalendarEventMinutes)


def generate_calendar_event(
    task: TaskRecord,
    *,
    trigger_at: datetime | None = None,
    duration: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    """Single-event ``.ics`` document for *task*.

    *trigger_at* defaults to the task's due date and time in the zone of
    *now*, or the local zone with its DST rules.  Untimed tasks cannot be
    exported.
    """
    if trigger_at is None:
        tz = now.tzinfo if now is not None else local_zone()
        trigger_at = compute_trigger_at(task.due_date, task.due_time, tz)
    if trigger_at is None:
        raise SchedulingSkipped(task.id, "task has no due time")

    return build_calendar_event(
        event_uid(task.id),
        task.title,
        trigger_at,
        trigger_at + (duration or default_event_duration()),
        description=task.description,
        now=now,
    )


def filename_for_title(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "_", title, flags=re.IGNORECASE).lower()
    return f"{slug or 'task'}_reminder.ics"


def calendar_filename(task: TaskRecord) -> str:
    return filename_for_title(task.title)


def create_google_calendar_url(
    title: str,
    start: datetime,
    end: datetime,
    *,
    details: str = "",
    location: str = "",
) -> str:
    params = {
        "action": "TEMPLATE",
        "text": title,
        "dates": f"{_ics_datetime(start)}/{_ics_datetime(end)}",
        "details": details,
        "location": location,
    }
    return f"https://calendar.google.com/calendar/render?{urlencode(params)}"


def _outlook_datetime(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def create_outlook_calendar_url(
    title: str,
    start: datetime,
    end: datetime,
    *,
    body: str = "",
    location: str = "",
) -> str:
    params = {
        "path": "/calendar/action/compose",
        "rru": "addevent",
        "subject": title,
        "startdt": _outlook_datetime(start),
        "enddt": _outlook_datetime(end),
        "body": body,
        "location": location,
    }
    return f"https://outlook.live.com/calendar/0/deeplink/compose?{urlencode(params)}"
