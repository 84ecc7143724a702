"""Time sources for the reminder engine.

Both are injected so tests can drive the scheduler with a manual clock
instead of sleeping.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from collections.abc import Callable
from datetime import date, datetime, time, tzinfo
from pathlib import Path
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dayfuse.configs import configs

logger = logging.getLogger(__name__)

_DUE_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_LOCALTIME = Path("/etc/localtime")


class Clock(Protocol):
    def now(self) -> datetime:
        """Current instant as an aware datetime in the user's zone."""
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerService(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


def _localtime_zone_name() -> str | None:
    try:
        target = _LOCALTIME.resolve(strict=True).as_posix()
    except OSError:
        return None
    _, marker, name = target.partition("zoneinfo/")
    if not marker:
        return None
    for prefix in ("posix/", "right/"):
        name = name.removeprefix(prefix)
    return name or None


def local_zone() -> tzinfo:
    """Zone due dates are resolved in, with its DST rules.

    ``Reminder.Timezone`` wins, then the ``TZ`` variable, then the
    ``/etc/localtime`` link.  A fixed UTC offset is the last resort and
    drifts by an hour across DST changes.
    """
    candidates = (
        configs.Reminder.Timezone,
        os.environ.get("TZ", "").lstrip(":"),
        _localtime_zone_name(),
    )
    for name in candidates:
        if not name:
            continue
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Invalid timezone '{name}', ignoring")

    logger.warning("Host timezone not resolvable, falling back to a fixed UTC offset")
    offset = datetime.now().astimezone().tzinfo
    assert offset is not None
    return offset


class SystemClock:
    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz or local_zone()

    def now(self) -> datetime:
        return datetime.now(self.tz)


class AsyncioTimerService:
    """Timers on the running event loop.

    Delays are measured on the loop's monotonic clock from arm time, so a
    device that sleeps past the trigger fires late rather than on time.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(max(delay, 0.0), callback)


def parse_due_time(value: str) -> time:
    """Parse ``HH:MM`` into a :class:`time` with zero seconds."""
    match = _DUE_TIME_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid due time {value!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid due time {value!r}, expected HH:MM")
    return time(hours, minutes)


def compute_trigger_at(due_date: date, due_time: str | None, tz: tzinfo | None) -> datetime | None:
    """Local midnight of *due_date* plus *due_time*; ``None`` for untimed tasks."""
    if not due_time:
        return None
    return datetime.combine(due_date, parse_due_time(due_time), tzinfo=tz)
