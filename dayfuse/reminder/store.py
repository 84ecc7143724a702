"""Persistence of pending reminders across reloads.

Only what is needed to re-register a reminder is kept: its key, trigger,
channel, payload and, for channels whose handle is a plain identifier
(native OS ids, relay task ids), that handle.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from dayfuse.reminder.models import Channel, ReminderEntry, ReminderKey, ReminderPayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredReminder:
    key: ReminderKey
    trigger_at: datetime
    channel: Channel
    payload: ReminderPayload
    handle: str | None = None

    @classmethod
    def from_entry(cls, entry: ReminderEntry) -> StoredReminder:
        handle = entry.handle if isinstance(entry.handle, str) else None
        return cls(key=entry.key, trigger_at=entry.trigger_at, channel=entry.channel, payload=entry.payload, handle=handle)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": str(self.key),
            "triggerAt": self.trigger_at.isoformat(),
            "channel": self.channel.value,
            "payload": asdict(self.payload),
            "handle": self.handle,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoredReminder:
        trigger_at = datetime.fromisoformat(data["triggerAt"])
        if trigger_at.tzinfo is None:
            raise ValueError(f"Stored trigger {data['triggerAt']!r} has no UTC offset")
        return cls(
            key=ReminderKey.parse(data["key"]),
            trigger_at=trigger_at,
            channel=Channel(data["channel"]),
            payload=ReminderPayload(**data["payload"]),
            handle=data.get("handle"),
        )


class JsonFileReminderStore:
    """:class:`~dayfuse.reminder.ports.ReminderStore` backed by one JSON file.

    The file holds an object mapping key strings to records.  Writes go to
    a sibling temp file first and replace the original, so a crash mid-write
    leaves the previous state intact.  Unreadable records are logged and
    skipped on load.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Reminder store {self.path} is corrupt, starting empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Reminder store {self.path} does not hold an object, starting empty")
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f"{self.path.name}.tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self.path)

    def load(self) -> list[StoredReminder]:
        records: list[StoredReminder] = []
        for key, value in self._read().items():
            try:
                records.append(StoredReminder.from_dict(value))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable stored reminder {key}: {e}")
        return records

    def save(self, record: StoredReminder) -> None:
        data = self._read()
        data[str(record.key)] = record.to_dict()
        self._write(data)

    def delete(self, key: ReminderKey) -> None:
        data = self._read()
        if data.pop(str(key), None) is not None:
            self._write(data)
