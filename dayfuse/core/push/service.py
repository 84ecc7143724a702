"""Durable reminder delivery: scheduled rows swept out to Web Push."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pywebpush import WebPushException
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.configs import configs
from dayfuse.core.push.payload import PushPayload, build_reminder_payload, reminder_text
from dayfuse.core.push.vapid import send_push
from dayfuse.models.push_subscription import PushSubscription
from dayfuse.models.scheduled_notification import ScheduledNotification, ScheduledNotificationCreate
from dayfuse.models.task import Task
from dayfuse.repos.push_subscription import PushSubscriptionRepository
from dayfuse.repos.scheduled_notification import ScheduledNotificationRepository
from dayfuse.utils.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)

# Push service responses meaning the subscription will never work again
GONE_STATUS_CODES = frozenset({404, 410})

PushSender = Callable[[dict[str, Any], dict[str, Any]], bool]


class DeliveryOutcome(StrEnum):
    SENT = "sent"
    GONE = "gone"
    FAILED = "failed"


@dataclass
class DeliveryReport:
    sent: int = 0
    failed: int = 0
    deactivated: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class SweepReport:
    processed: int = 0
    sent: int = 0
    failed: int = 0
    abandoned: int = 0


class PushNotificationService:
    """Server-side durable scheduler.

    Rows in ``scheduled_notifications`` are the authoritative record of a
    reminder.  Each sweep dispatches the due ones to every active subscription
    of the owning user; a row is marked sent once at least one device accepted
    it and otherwise stays pending for the next sweep.

    The caller owns the transaction: methods flush, the sweeper or handler commits.
    """

    def __init__(self, db: AsyncSession, sender: PushSender | None = None) -> None:
        self.db = db
        self.sender = sender or send_push
        self.subscriptions = PushSubscriptionRepository(db)
        self.notifications = ScheduledNotificationRepository(db)

    # --- Scheduling -------------------------------------------------------------

    async def schedule_notification(
        self,
        user_id: str,
        task_id: UUID,
        title: str,
        body: str,
        scheduled_time: datetime,
    ) -> ScheduledNotification:
        notification = await self.notifications.create(
            ScheduledNotificationCreate(
                task_id=task_id,
                user_id=user_id,
                title=title,
                body=body,
                scheduled_time=scheduled_time,
            )
        )
        logger.info("Scheduled notification %s for user %s at %s", notification.id, user_id, scheduled_time)
        return notification

    async def schedule_for_task(
        self,
        task: Task,
        now: datetime | None = None,
        *,
        title: str | None = None,
        body: str | None = None,
    ) -> ScheduledNotification | None:
        """Schedule the durable reminder for an open task whose due time is still ahead.

        *title* and *body* replace the default reminder text when given.
        """
        if task.completed or task.due_time is None:
            return None
        due = ensure_utc(task.due_time)
        if due <= (now or utc_now()):
            logger.info("Task %s due time %s already passed, no reminder scheduled", task.id, due)
            return None
        default_title, default_body = reminder_text(task.title)
        return await self.schedule_notification(
            task.user_id, task.id, title or default_title, body or default_body, due
        )

    async def cancel_scheduled_notifications(self, task_id: UUID) -> int:
        """Drop every pending row for *task_id*; already-sent rows are kept."""
        cancelled = await self.notifications.delete_pending_by_task_id(task_id)
        logger.info("Cancelled %d scheduled notifications for task %s", cancelled, task_id)
        return cancelled

    # --- Delivery ---------------------------------------------------------------

    async def send_notification(self, subscription: PushSubscription, payload: PushPayload) -> DeliveryOutcome:
        subscription_info: dict[str, Any] = {
            "endpoint": subscription.endpoint,
            "keys": {"p256dh": subscription.p256dh, "auth": subscription.auth},
        }
        try:
            delivered = await asyncio.to_thread(self.sender, subscription_info, dict(payload))
        except WebPushException as e:
            response = getattr(e, "response", None)
            status_code = getattr(response, "status_code", None)
            if status_code in GONE_STATUS_CODES:
                logger.info("Push subscription gone (%s): %s", status_code, subscription.endpoint[:60])
                return DeliveryOutcome.GONE
            logger.warning("Web push failed for %s: %s", subscription.endpoint[:60], e)
            return DeliveryOutcome.FAILED
        except Exception:
            logger.exception("Unexpected error sending web push to %s", subscription.endpoint[:60])
            return DeliveryOutcome.FAILED

        return DeliveryOutcome.SENT if delivered else DeliveryOutcome.FAILED

    async def send_notification_to_user(self, user_id: str, payload: PushPayload) -> DeliveryReport:
        """Send *payload* to each active subscription of *user_id*.

        Failures are isolated per subscription: a gone endpoint is deactivated
        and the remaining devices are still tried.
        """
        report = DeliveryReport()
        subs = await self.subscriptions.get_active_by_user_id(user_id)

        if not subs:
            logger.debug("No active subscriptions found for user: %s", user_id)
            report.errors.append("no active subscriptions")
            return report

        for sub in subs:
            outcome = await self.send_notification(sub, payload)
            if outcome is DeliveryOutcome.SENT:
                report.sent += 1
                continue

            report.failed += 1
            if outcome is DeliveryOutcome.GONE:
                await self.subscriptions.set_active(sub.id, False)
                report.deactivated += 1
                report.errors.append(f"subscription {sub.id} gone")
            else:
                report.errors.append(f"subscription {sub.id} failed")

        logger.info(
            "Notification sent to user %s: %d sent, %d failed, %d deactivated",
            user_id,
            report.sent,
            report.failed,
            report.deactivated,
        )
        return report

    # --- Sweep ------------------------------------------------------------------

    async def process_pending_notifications(self, now: datetime | None = None) -> SweepReport:
        """Dispatch every due, unsent notification once.

        Delivery is at-least-once: two overlapping sweeps may both send the same
        row before either marks it sent.
        """
        now = now or utc_now()
        result = SweepReport()
        pending = await self.notifications.get_due(now, limit=configs.Push.SweepBatchSize)

        if not pending:
            return result

        logger.info("Processing %d pending notifications", len(pending))

        for notification in pending:
            result.processed += 1
            payload = build_reminder_payload(
                notification.title,
                notification.body,
                task_id=str(notification.task_id),
                notification_id=str(notification.id),
            )
            report = await self.send_notification_to_user(notification.user_id, payload)

            if report.sent > 0:
                await self.notifications.mark_sent(notification.id, utc_now())
                result.sent += 1
                logger.info("Notification sent successfully: %s", notification.title)
                continue

            result.failed += 1
            abandoned = await self.notifications.record_failure(
                notification.id,
                "; ".join(report.errors) or "delivery failed",
                max_attempts=configs.Push.MaxDeliveryAttempts,
            )
            if abandoned:
                result.abandoned += 1
                logger.warning("Notification %s abandoned after repeated failures", notification.id)
            else:
                logger.info("Failed to send notification %s, will retry next sweep", notification.id)

        return result
