"""
Reminder scheduler: the client-side state machine for task reminders.

Every reminder is keyed by a :class:`ReminderKey` derived from its task id,
so scheduling is cancel-then-create under the same key and cancelling is
idempotent.  At most one primary and one follow-up entry are pending per
task at any time.

Calls for the same task are serialised with a per-task ``asyncio.Lock``;
backend ``arm``/``disarm`` calls await I/O, and without the lock a cancel
could interleave with the create of a concurrent save.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta
from typing import Any

from dayfuse.configs import configs
from dayfuse.reminder.backends.base import DeliveryBackend
from dayfuse.reminder.channels import DeviceCapability, select_channel
from dayfuse.reminder.clock import Clock, compute_trigger_at
from dayfuse.reminder.exceptions import (
    DeliveryFailed,
    ReminderError,
    ReminderNotFound,
    SchedulingSkipped,
    UnsupportedPlatform,
)
from dayfuse.reminder.models import (
    CHANNEL_PRIORITY,
    Channel,
    ReminderEntry,
    ReminderHandle,
    ReminderKey,
    ReminderPayload,
    ReminderState,
    ReminderKind,
    TaskRecord,
    followup_payload,
    reminder_payload,
    snoozed_payload,
    task_keys,
)
from dayfuse.reminder.ports import ReminderStore
from dayfuse.reminder.store import StoredReminder

logger = logging.getLogger(__name__)

TaskLookup = Callable[[str], Awaitable[TaskRecord | None]]

# Channels whose delivery happens outside this process; nothing reports the fire back
FIRE_AND_FORGET_CHANNELS = frozenset({Channel.native_os, Channel.server_durable, Channel.calendar_fallback})


class ReminderScheduler:
    def __init__(
        self,
        clock: Clock,
        backends: Iterable[DeliveryBackend],
        capability_provider: Callable[[], DeviceCapability],
        *,
        task_lookup: TaskLookup | None = None,
        followup_enabled: bool | None = None,
        followup_delay: timedelta | None = None,
        store: ReminderStore | None = None,
    ) -> None:
        self.clock = clock
        self.store = store
        self.capability_provider = capability_provider
        self.task_lookup = task_lookup
        self.followup_enabled = configs.Reminder.FollowupEnabled if followup_enabled is None else followup_enabled
        self.followup_delay = followup_delay or timedelta(seconds=configs.Reminder.FollowupDelaySecs)

        self._backends: dict[Channel, DeliveryBackend] = {}
        for backend in backends:
            self.register_backend(backend)

        self._entries: dict[ReminderKey, ReminderEntry] = {}
        self._payloads: dict[str, ReminderPayload] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Handles whose disarm raised; retried before the task is armed again
        self._unconfirmed: dict[str, list[tuple[Channel, Any]]] = {}

    # ------------------------------------------------------------------
    # Channel resolution
    # ------------------------------------------------------------------

    def register_backend(self, backend: DeliveryBackend) -> None:
        """Add or replace the backend for its channel."""
        backend.set_fire_listener(self.mark_fired)
        self._backends[backend.channel] = backend

    def current_channel(self) -> Channel:
        """Channel the next reminder would be armed on."""
        return self._resolve_backend(select_channel(self.capability_provider()))[0]

    def _resolve_backend(self, preferred: Channel) -> tuple[Channel, DeliveryBackend]:
        # Walk down the priority list when no backend is wired for the preferred channel
        for channel in CHANNEL_PRIORITY[CHANNEL_PRIORITY.index(preferred) :]:
            backend = self._backends.get(channel)
            if backend is not None:
                return channel, backend
        raise UnsupportedPlatform(f"No delivery backend available for {preferred.value} or weaker channels")

    def _lock(self, task_id: str) -> asyncio.Lock:
        lock = self._locks.get(task_id)
        if lock is None:
            lock = self._locks[task_id] = asyncio.Lock()
        return lock

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def schedule_reminder(self, task: TaskRecord) -> ReminderHandle | None:
        """Replace the task's reminders with ones for its current due time.

        Existing entries are always cancelled first, so editing a task into
        the past or removing its due time leaves no stale reminder.  Returns
        ``None`` when nothing was armed.

        Raises :class:`DeliveryFailed` when the backend cannot arm the
        primary reminder.
        """
        async with self._lock(task.id):
            await self._cancel_locked(task.id)
            self._payloads[task.id] = reminder_payload(task)

            try:
                trigger_at = self._trigger_for(task)
            except SchedulingSkipped as e:
                logger.info(str(e))
                return None

            return await self._arm_locked(
                task.id,
                trigger_at,
                self._payloads[task.id],
                followup=followup_payload(task),
            )

    async def cancel_reminder(self, task_id: str) -> None:
        async with self._lock(task_id):
            await self._cancel_locked(task_id)

    async def reschedule_reminder(self, task_id: str, new_trigger_at: datetime) -> ReminderHandle:
        """Cancel the task's reminders and arm one at *new_trigger_at*."""
        async with self._lock(task_id):
            payload = await self._known_payload(task_id)
            return await self._reschedule_locked(task_id, new_trigger_at, payload)

    async def snooze(self, task_id: str, minutes: int | None = None) -> ReminderHandle:
        """Re-arm the task's reminder *minutes* from now (config default when ``None``)."""
        if minutes is None:
            minutes = configs.Reminder.SnoozeMinutes
        async with self._lock(task_id):
            base = await self._known_payload(task_id)
            trigger_at = self.clock.now() + timedelta(minutes=minutes)
            handle = await self._reschedule_locked(
                task_id,
                trigger_at,
                snoozed_payload(task_id, base.task_title, base.description),
            )
        logger.info(f"Reminder for task {task_id} snoozed for {minutes} minutes")
        return handle

    async def forget_task(self, task_id: str) -> None:
        """Cancel the task's reminders and drop everything remembered about it."""
        async with self._lock(task_id):
            await self._cancel_locked(task_id)
            self._payloads.pop(task_id, None)
            for key in task_keys(task_id):
                self._entries.pop(key, None)
        if task_id not in self._unconfirmed:
            self._locks.pop(task_id, None)

    def mark_fired(self, key: ReminderKey | str) -> bool:
        """Move a pending entry to ``fired``. Returns False if it was not pending."""
        if isinstance(key, str):
            key = ReminderKey.parse(key)
        entry = self._entries.get(key)
        if entry is None or not entry.is_pending:
            return False
        entry.state = ReminderState.fired
        self._unstore(key)
        logger.info(f"Reminder {key} fired via {entry.channel.value}")
        return True

    def expire_elapsed(self) -> int:
        """Mark elapsed entries on out-of-process channels as fired."""
        now = self.clock.now()
        expired = 0
        for entry in self._entries.values():
            if entry.is_pending and entry.channel in FIRE_AND_FORGET_CHANNELS and entry.trigger_at <= now:
                entry.state = ReminderState.fired
                self._unstore(entry.key)
                expired += 1
        if expired:
            logger.debug(f"Expired {expired} elapsed reminders")
        return expired

    async def restore_pending(self) -> int:
        """Re-register reminders persisted by an earlier session.

        Elapsed records are dropped.  Countdown channels lost their timers
        with the old process and are armed again; OS, relay and calendar
        reminders still exist outside it and are only tracked again, with
        their stored handle.  Returns the number of entries restored.
        """
        if self.store is None:
            return 0
        try:
            records = self.store.load()
        except Exception:
            logger.exception("Failed to load stored reminders")
            return 0

        now = self.clock.now()
        restored = 0
        for record in records:
            task_id = record.key.task_id
            async with self._lock(task_id):
                current = self._entries.get(record.key)
                if current is not None and current.is_pending:
                    continue
                if record.trigger_at <= now:
                    self._unstore(record.key)
                    continue
                try:
                    entry = await self._restore_locked(record)
                except Exception as e:
                    logger.warning(f"Stored reminder {record.key} not restored: {e}")
                    self._unstore(record.key)
                    continue
                if record.key.kind is ReminderKind.primary:
                    self._payloads.setdefault(task_id, record.payload)
                self._remember(entry)
                restored += 1
        if restored:
            logger.info(f"Restored {restored} stored reminders")
        return restored

    async def retry_unconfirmed_cancels(self) -> int:
        """Disarm again every handle whose cancel failed. Returns how many still fail."""
        remaining = 0
        for task_id in list(self._unconfirmed):
            async with self._lock(task_id):
                await self._retry_unconfirmed_locked(task_id)
                remaining += len(self._unconfirmed.get(task_id, ()))
        return remaining

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_entry(self, key: ReminderKey | str) -> ReminderEntry | None:
        if isinstance(key, str):
            key = ReminderKey.parse(key)
        return self._entries.get(key)

    def pending_entries(self, task_id: str | None = None) -> list[ReminderEntry]:
        entries = [
            e for e in self._entries.values() if e.is_pending and (task_id is None or e.task_id == task_id)
        ]
        return sorted(entries, key=lambda e: (e.trigger_at, e.key.kind.value))

    def unconfirmed_cancels(self, task_id: str | None = None) -> int:
        """Number of cancelled reminders whose backend never confirmed the disarm."""
        if task_id is not None:
            return len(self._unconfirmed.get(task_id, ()))
        return sum(len(v) for v in self._unconfirmed.values())

    # ------------------------------------------------------------------
    # Internals (caller holds the task lock)
    # ------------------------------------------------------------------

    def _trigger_for(self, task: TaskRecord) -> datetime:
        if task.completed:
            raise SchedulingSkipped(task.id, "task is completed")
        now = self.clock.now()
        try:
            # The clock's zone carries DST rules, so a date past the next transition gets that date's offset
            trigger_at = compute_trigger_at(task.due_date, task.due_time, now.tzinfo)
        except ValueError as e:
            raise SchedulingSkipped(task.id, str(e)) from e
        if trigger_at is None:
            raise SchedulingSkipped(task.id, "task has no due time")
        if trigger_at <= now:
            raise SchedulingSkipped(task.id, f"trigger {trigger_at.isoformat()} is not in the future")
        return trigger_at

    async def _known_payload(self, task_id: str) -> ReminderPayload:
        payload = self._payloads.get(task_id)
        if payload is None and self.task_lookup is not None:
            task = await self.task_lookup(task_id)
            if task is not None:
                payload = self._payloads[task_id] = reminder_payload(task)
        if payload is None:
            raise ReminderNotFound(task_id)
        return payload

    async def _reschedule_locked(self, task_id: str, trigger_at: datetime, payload: ReminderPayload) -> ReminderHandle:
        if trigger_at <= self.clock.now():
            raise SchedulingSkipped(task_id, f"trigger {trigger_at.isoformat()} is not in the future")
        await self._cancel_locked(task_id)
        return await self._arm_locked(task_id, trigger_at, payload, followup=None)

    async def _arm_locked(
        self,
        task_id: str,
        trigger_at: datetime,
        payload: ReminderPayload,
        *,
        followup: ReminderPayload | None,
    ) -> ReminderHandle:
        channel, backend = self._resolve_backend(select_channel(self.capability_provider()))
        key = ReminderKey.primary_for(task_id)

        try:
            handle = await backend.arm(key, trigger_at, payload)
        except ReminderError:
            raise
        except Exception as e:
            raise DeliveryFailed(channel, f"failed to arm {key}: {e}") from e

        entry = ReminderEntry(key=key, trigger_at=trigger_at, channel=channel, payload=payload, handle=handle)
        self._remember(entry)
        logger.info(f"Reminder {key} scheduled at {trigger_at.isoformat()} via {channel.value}")

        # A calendar export is one event; a second one would only duplicate it
        if followup is not None and self.followup_enabled and channel is not Channel.calendar_fallback:
            await self._arm_followup(task_id, channel, backend, trigger_at + self.followup_delay, followup)

        return entry.as_handle()

    async def _arm_followup(
        self,
        task_id: str,
        channel: Channel,
        backend: DeliveryBackend,
        trigger_at: datetime,
        payload: ReminderPayload,
    ) -> None:
        key = ReminderKey.followup_for(task_id)
        try:
            handle = await backend.arm(key, trigger_at, payload)
        except Exception as e:
            logger.warning(f"Follow-up reminder {key} not armed: {e}")
            return
        self._remember(ReminderEntry(key=key, trigger_at=trigger_at, channel=channel, payload=payload, handle=handle))

    async def _restore_locked(self, record: StoredReminder) -> ReminderEntry:
        if record.channel in FIRE_AND_FORGET_CHANNELS:
            channel, handle = record.channel, record.handle
        else:
            channel, backend = self._resolve_backend(record.channel)
            handle = await backend.arm(record.key, record.trigger_at, record.payload)
        return ReminderEntry(
            key=record.key, trigger_at=record.trigger_at, channel=channel, payload=record.payload, handle=handle
        )

    async def _cancel_locked(self, task_id: str) -> None:
        await self._retry_unconfirmed_locked(task_id)
        for key in task_keys(task_id):
            entry = self._entries.get(key)
            if entry is None or not entry.is_pending:
                continue
            backend = self._backends.get(entry.channel)
            if backend is None:
                logger.warning(f"No {entry.channel.value} backend to disarm reminder {key}, will retry")
                self._unconfirmed.setdefault(task_id, []).append((entry.channel, entry.handle))
            else:
                try:
                    await backend.disarm(entry.handle)
                except Exception as e:
                    logger.warning(f"Failed to disarm reminder {key} on {entry.channel.value}, will retry: {e}")
                    self._unconfirmed.setdefault(task_id, []).append((entry.channel, entry.handle))
            entry.state = ReminderState.cancelled
            self._unstore(key)
            logger.debug(f"Reminder {key} cancelled")

    async def _retry_unconfirmed_locked(self, task_id: str) -> None:
        pending = self._unconfirmed.pop(task_id, None)
        if not pending:
            return
        still_failing: list[tuple[Channel, Any]] = []
        for channel, handle in pending:
            backend = self._backends.get(channel)
            if backend is None:
                still_failing.append((channel, handle))
                continue
            try:
                await backend.disarm(handle)
            except Exception as e:
                logger.warning(f"Retried disarm for task {task_id} on {channel.value} failed: {e}")
                still_failing.append((channel, handle))
            else:
                logger.info(f"Stale {channel.value} reminder for task {task_id} disarmed on retry")
        if still_failing:
            self._unconfirmed[task_id] = still_failing

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _remember(self, entry: ReminderEntry) -> None:
        self._entries[entry.key] = entry
        if self.store is None:
            return
        try:
            self.store.save(StoredReminder.from_entry(entry))
        except Exception:
            logger.exception(f"Failed to persist reminder {entry.key}")

    def _unstore(self, key: ReminderKey) -> None:
        if self.store is None:
            return
        try:
            self.store.delete(key)
        except Exception:
            logger.exception(f"Failed to remove stored reminder {key}")
