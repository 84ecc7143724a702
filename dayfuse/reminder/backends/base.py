"""
Abstract delivery backend and the fire listener contract.

One implementation per :class:`~dayfuse.reminder.models.Channel`; the
scheduler holds them in a mapping keyed by channel.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Any, ClassVar

from dayfuse.reminder.models import Channel, ReminderKey, ReminderPayload

logger = logging.getLogger(__name__)

FireListener = Callable[[ReminderKey], None]


class DeliveryBackend(ABC):
    """Arms and disarms reminders on one delivery channel.

    ``arm`` returns an opaque handle that is later passed back to
    ``disarm``.  Backends that raise leave no reminder armed.
    """

    channel: ClassVar[Channel]

    def __init__(self) -> None:
        self._fire_listener: FireListener | None = None

    def set_fire_listener(self, listener: FireListener | None) -> None:
        self._fire_listener = listener

    def _notify_fired(self, key: ReminderKey) -> None:
        if self._fire_listener is None:
            return
        try:
            self._fire_listener(key)
        except Exception:
            logger.exception(f"Fire listener failed for reminder {key}")

    @abstractmethod
    async def arm(self, key: ReminderKey, trigger_at: datetime, payload: ReminderPayload) -> Any:
        """Arm delivery of *payload* at *trigger_at*; returns the backend handle."""

    @abstractmethod
    async def disarm(self, handle: Any) -> None:
        """Cancel a previously armed reminder. Unknown handles are ignored."""
