"""
Public client API for task reminders.

``NotificationManager`` is an explicit state object: build one per client
session (or per test) from injected ports.  None of its methods raise;
every failure is logged and reported as ``False`` so reminder problems
never block task CRUD.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from dayfuse.configs import configs
from dayfuse.reminder.backends import (
    CalendarFallbackBackend,
    DeliveryBackend,
    LocalTimerBackend,
    NativeOSBackend,
    ServerDurableBackend,
    ServiceWorkerBackend,
)
from dayfuse.reminder.channels import DeviceCapability
from dayfuse.reminder.clock import AsyncioTimerService, Clock, SystemClock, TimerService
from dayfuse.reminder.exceptions import (
    PermissionDenied,
    ReminderError,
    SubscriptionRegistrationFailed,
    UnsupportedPlatform,
)
from dayfuse.reminder.fallbacks import FallbackNotice, fallback_notices
from dayfuse.reminder.models import Channel, PermissionState, TaskRecord
from dayfuse.reminder.ports import (
    CalendarSink,
    NativeNotificationScheduler,
    Notifier,
    PermissionPort,
    PushSubscriber,
    ReminderStore,
    ServiceWorkerPort,
)
from dayfuse.reminder.push_client import PushClient
from dayfuse.reminder.scheduler import ReminderScheduler, TaskLookup
from dayfuse.reminder.store import JsonFileReminderStore

logger = logging.getLogger(__name__)

TEST_NOTIFICATION_TITLE = "DayFuse Test Notification"
TEST_NOTIFICATION_BODY = "Notifications are working correctly!"


@dataclass
class ManagerPorts:
    """Platform implementations available to this client. Missing ports disable their channel."""

    permission: PermissionPort | None = None
    notifier: Notifier | None = None
    service_worker: ServiceWorkerPort | None = None
    native_scheduler: NativeNotificationScheduler | None = None
    push_subscriber: PushSubscriber | None = None
    push_client: PushClient | None = None
    calendar_sink: CalendarSink | None = None
    reminder_store: ReminderStore | None = None
    user_agent: str = ""
    extra_backends: list[DeliveryBackend] = field(default_factory=list)


class NotificationManager:
    def __init__(
        self,
        capability: DeviceCapability,
        ports: ManagerPorts,
        *,
        clock: Clock | None = None,
        timers: TimerService | None = None,
        task_lookup: TaskLookup | None = None,
    ) -> None:
        self.ports = ports
        self.clock = clock or SystemClock()
        self.timers = timers or AsyncioTimerService()
        self.capability = capability
        self._current_capability()

        self.user_id: str | None = None
        self.subscription_id: str | None = None
        self.notices: list[FallbackNotice] = []

        self._server_backend: ServerDurableBackend | None = None
        self.scheduler = ReminderScheduler(
            self.clock,
            self._build_backends(),
            self._current_capability,
            task_lookup=task_lookup,
            store=self._build_store(),
        )

    def _current_capability(self) -> DeviceCapability:
        # Permission can change in browser settings between calls
        if self.ports.permission is not None:
            state = self.ports.permission.current()
            if state is not self.capability.permission:
                logger.info(f"Notification permission is now {state.value}")
                self.capability = self.capability.with_permission(state)
        return self.capability

    def _build_store(self) -> ReminderStore | None:
        if self.ports.reminder_store is not None:
            return self.ports.reminder_store
        if configs.Reminder.StorePath:
            return JsonFileReminderStore(configs.Reminder.StorePath)
        return None

    def _build_backends(self) -> list[DeliveryBackend]:
        backends: list[DeliveryBackend] = [
            CalendarFallbackBackend(self.clock, self._current_capability, sink=self.ports.calendar_sink),
        ]
        if self.ports.notifier is not None:
            backends.append(LocalTimerBackend(self.clock, self.timers, self.ports.notifier))
        if self.ports.service_worker is not None:
            backends.append(ServiceWorkerBackend(self.clock, self.timers, self.ports.service_worker))
        if self.ports.native_scheduler is not None:
            backends.append(NativeOSBackend(self.ports.native_scheduler))
        backends.extend(self.ports.extra_backends)
        return backends

    # ------------------------------------------------------------------
    # Permission and push registration
    # ------------------------------------------------------------------

    async def request_permission(self) -> bool:
        try:
            return await self._ensure_permission()
        except ReminderError as e:
            logger.warning(f"Notification permission not granted: {e}")
            self._collect_notices()
            return False
        except Exception:
            logger.exception("Notification permission request failed")
            return False

    async def _ensure_permission(self) -> bool:
        port = self.ports.permission
        if port is None:
            raise UnsupportedPlatform("No notification permission API on this platform")

        state = port.current()
        if state is not PermissionState.granted:
            if state is PermissionState.denied:
                self.capability = self.capability.with_permission(state)
                raise PermissionDenied("Notifications are blocked for this site")
            state = await port.request()

        self.capability = self.capability.with_permission(state)
        if state is not PermissionState.granted:
            raise PermissionDenied(f"Notification permission is {state.value}")
        return True

    async def initialize_push(self, user_id: str) -> bool:
        """Subscribe this device to Web Push and register it with the relay."""
        self.user_id = user_id
        try:
            await self._register_push(user_id)
        except ReminderError as e:
            logger.warning(f"Push initialization failed for user {user_id}: {e}")
            self._collect_notices()
            return False
        except Exception:
            logger.exception(f"Unexpected error initializing push for user {user_id}")
            self._collect_notices()
            return False
        return True

    async def _register_push(self, user_id: str) -> None:
        if not self.capability.supports_push:
            raise UnsupportedPlatform("Web Push is not supported on this device")
        client, subscriber = self.ports.push_client, self.ports.push_subscriber
        if client is None or subscriber is None:
            raise UnsupportedPlatform("No push client or subscriber configured")

        await self._ensure_permission()

        try:
            public_key = await client.get_vapid_public_key()
            subscription = await subscriber.subscribe(public_key)
            self.subscription_id = await client.register_subscription(user_id, subscription, self.ports.user_agent)
        except Exception as e:
            raise SubscriptionRegistrationFailed(str(e)) from e

        if self._server_backend is None:
            self._server_backend = ServerDurableBackend(client, user_id)
            self.scheduler.register_backend(self._server_backend)
        else:
            self._server_backend.user_id = user_id

        self.capability = self.capability.with_push_subscription(True)
        logger.info(f"Push notifications initialized for user {user_id}")

    async def unsubscribe_push(self) -> bool:
        """Drop this device's push subscription on the relay.

        Reminders fall back to on-device channels afterwards.  Relay-stored
        reminders already armed stay cancellable, since the backend stays
        registered.
        """
        client, subscription_id = self.ports.push_client, self.subscription_id
        if client is None or subscription_id is None:
            return False
        try:
            removed = await client.unregister_subscription(subscription_id)
        except Exception as e:
            logger.warning(f"Failed to unregister push subscription {subscription_id}: {e}")
            return False
        if not removed:
            logger.info(f"Push subscription {subscription_id} was already gone on the relay")

        self.subscription_id = None
        self.capability = self.capability.with_push_subscription(False)
        logger.info("Push notifications disabled for this device")
        return True

    async def resume(self) -> int:
        """Pick up reminders persisted by an earlier session.

        Call after :meth:`initialize_push` when push is in use, so relay
        reminders can be cancelled again.  Returns how many were restored.
        """
        try:
            restored = await self.scheduler.restore_pending()
            await self.scheduler.retry_unconfirmed_cancels()
        except Exception:
            logger.exception("Failed to resume stored reminders")
            return 0
        self.scheduler.expire_elapsed()
        return restored

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def current_channel(self) -> Channel:
        try:
            return self.scheduler.current_channel()
        except UnsupportedPlatform:
            return Channel.calendar_fallback

    async def schedule_task_reminder(self, task: TaskRecord) -> bool:
        """Arm reminders for *task*. ``True`` only when something was armed."""
        try:
            self.scheduler.expire_elapsed()
            handle = await self.scheduler.schedule_reminder(task)
        except ReminderError as e:
            logger.warning(f"Could not schedule reminder for task {task.id}: {e}")
            return False
        except Exception:
            logger.exception(f"Unexpected error scheduling reminder for task {task.id}")
            return False

        if handle is None:
            return False
        if handle.channel is Channel.calendar_fallback:
            self._collect_notices(handle.channel)
        return True

    async def cancel_notification(self, task_id: str) -> None:
        try:
            await self.scheduler.cancel_reminder(task_id)
        except Exception:
            logger.exception(f"Error cancelling reminders for task {task_id}")

    async def snooze(self, task_id: str, minutes: int | None = None) -> bool:
        try:
            await self.scheduler.snooze(task_id, minutes)
        except ReminderError as e:
            logger.warning(f"Could not snooze task {task_id}: {e}")
            return False
        except Exception:
            logger.exception(f"Unexpected error snoozing task {task_id}")
            return False
        return True

    async def send_test_notification(self) -> bool:
        """Show a notification now through the best available path."""
        try:
            if self._current_capability().push_subscribed and self.ports.push_client is not None and self.user_id:
                result = await self.ports.push_client.send_test(
                    self.user_id, TEST_NOTIFICATION_TITLE, TEST_NOTIFICATION_BODY
                )
                return result.get("sent", 0) > 0

            if not await self.request_permission():
                return False

            options = {"body": TEST_NOTIFICATION_BODY, "icon": configs.Push.Icon, "tag": "test-notification"}
            if self.ports.service_worker is not None:
                self.ports.service_worker.post_message(
                    {"type": "SHOW_NOTIFICATION", "title": TEST_NOTIFICATION_TITLE, "options": options}
                )
                return True
            if self.ports.notifier is not None:
                self.ports.notifier.show(TEST_NOTIFICATION_TITLE, options)
                return True
        except Exception as e:
            logger.warning(f"Test notification failed: {e}")
            return False

        logger.info("No notification display available for a test notification")
        return False

    # ------------------------------------------------------------------
    # Task lifecycle hooks
    # ------------------------------------------------------------------

    async def on_task_saved(self, task: TaskRecord) -> bool:
        if task.completed:
            await self.on_task_completed(task.id)
            return False
        return await self.schedule_task_reminder(task)

    async def on_task_completed(self, task_id: str) -> None:
        await self.cancel_notification(task_id)

    async def on_task_deleted(self, task_id: str) -> None:
        try:
            await self.scheduler.forget_task(task_id)
        except Exception:
            logger.exception(f"Error dropping reminders for deleted task {task_id}")

    async def handle_notification_action(self, action: str, task_id: str) -> bool:
        """React to a button on a shown reminder (``complete``, ``snooze``, ``view``)."""
        if action == "complete":
            await self.on_task_completed(task_id)
            return True
        if action == "snooze":
            return await self.snooze(task_id)
        if action in ("view", ""):
            return True
        logger.warning(f"Unknown notification action {action!r} for task {task_id}")
        return False

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------

    def _collect_notices(self, channel: Channel | None = None) -> None:
        for notice in fallback_notices(self.capability, channel):
            if notice not in self.notices:
                self.notices.append(notice)

    def drain_notices(self) -> list[FallbackNotice]:
        notices, self.notices = self.notices, []
        return notices
