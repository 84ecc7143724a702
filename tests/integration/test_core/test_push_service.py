from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any

import pytest
from pywebpush import WebPushException
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.configs import configs
from dayfuse.core.push.payload import build_simple_payload
from dayfuse.core.push.service import DeliveryOutcome, PushNotificationService
from dayfuse.core.push.sweeper import run_sweep_once
from dayfuse.models.task import TaskCreate
from dayfuse.repos.push_subscription import PushSubscriptionRepository
from dayfuse.repos.scheduled_notification import ScheduledNotificationRepository
from dayfuse.repos.task import TaskRepository
from tests.factories.push_subscription import PushSubscriptionCreateFactory

NOW = datetime(2025, 6, 1, 7, 0, tzinfo=timezone.utc)


class FakePushService:
    """Stand-in for pywebpush keyed by endpoint; records every payload."""

    def __init__(self, statuses: dict[str, int] | None = None) -> None:
        self.statuses = statuses or {}
        self.sent: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, subscription_info: dict[str, Any], payload: dict[str, Any]) -> bool:
        endpoint = subscription_info["endpoint"]
        status = self.statuses.get(endpoint, 201)
        if status >= 400:
            raise WebPushException(f"Push failed: {status}", response=SimpleNamespace(status_code=status))
        self.sent.append((endpoint, payload))
        return True


async def _subscribe(db: AsyncSession, user_id: str, endpoint: str):
    repo = PushSubscriptionRepository(db)
    return await repo.upsert(PushSubscriptionCreateFactory.build(user_id=user_id, endpoint=endpoint))


async def _due_task(db: AsyncSession, user_id: str = "user-1", title: str = "Water plants"):
    """Task with a reminder row that is already due at NOW."""
    task = await TaskRepository(db).create(TaskCreate(user_id=user_id, title=title, due_time=NOW))
    service = PushNotificationService(db)
    row = await service.schedule_for_task(task, now=NOW - timedelta(hours=1))
    assert row is not None
    return task, row


@pytest.mark.integration
class TestScheduling:
    async def test_schedule_for_task_uses_reminder_text(self, db_session: AsyncSession):
        task, row = await _due_task(db_session)
        assert row.task_id == task.id
        assert row.user_id == "user-1"
        assert row.title == "DayFuse Task Reminder"
        assert row.body == "Time to work on: Water plants"

    async def test_past_completed_and_untimed_tasks_are_not_scheduled(self, db_session: AsyncSession):
        repo = TaskRepository(db_session)
        service = PushNotificationService(db_session)

        past = await repo.create(TaskCreate(user_id="u", title="Past", due_time=NOW - timedelta(minutes=1)))
        untimed = await repo.create(TaskCreate(user_id="u", title="Untimed"))
        done = await repo.create(TaskCreate(user_id="u", title="Done", due_time=NOW + timedelta(hours=1)))
        done.completed = True

        for task in (past, untimed, done):
            assert await service.schedule_for_task(task, now=NOW) is None

    async def test_cancel_drops_pending_rows(self, db_session: AsyncSession):
        task, _ = await _due_task(db_session)
        service = PushNotificationService(db_session)

        assert await service.cancel_scheduled_notifications(task.id) == 1
        assert await ScheduledNotificationRepository(db_session).get_by_task_id(task.id) == []


@pytest.mark.integration
class TestDelivery:
    async def test_gone_subscription_is_deactivated_and_others_still_tried(self, db_session: AsyncSession):
        await _subscribe(db_session, "user-1", "https://push.example/gone")
        await _subscribe(db_session, "user-1", "https://push.example/flaky")
        await _subscribe(db_session, "user-1", "https://push.example/ok")
        sender = FakePushService({"https://push.example/gone": 410, "https://push.example/flaky": 500})
        service = PushNotificationService(db_session, sender=sender)

        report = await service.send_notification_to_user("user-1", build_simple_payload("Hi", "There"))

        assert (report.sent, report.failed, report.deactivated) == (1, 2, 1)
        active = await PushSubscriptionRepository(db_session).get_active_by_user_id("user-1")
        assert sorted(s.endpoint for s in active) == ["https://push.example/flaky", "https://push.example/ok"]

    async def test_not_found_counts_as_gone(self, db_session: AsyncSession):
        sub = await _subscribe(db_session, "user-1", "https://push.example/404")
        service = PushNotificationService(db_session, sender=FakePushService({sub.endpoint: 404}))
        assert await service.send_notification(sub, build_simple_payload("a", "b")) is DeliveryOutcome.GONE

    async def test_disabled_sender_is_a_failure(self, db_session: AsyncSession):
        sub = await _subscribe(db_session, "user-1", "https://push.example/x")
        service = PushNotificationService(db_session, sender=lambda info, payload: False)
        assert await service.send_notification(sub, build_simple_payload("a", "b")) is DeliveryOutcome.FAILED

    async def test_user_without_subscriptions(self, db_session: AsyncSession):
        service = PushNotificationService(db_session, sender=FakePushService())
        report = await service.send_notification_to_user("nobody", build_simple_payload("a", "b"))
        assert report.sent == 0
        assert report.errors == ["no active subscriptions"]


@pytest.mark.integration
class TestSweep:
    async def test_due_row_is_sent_once(self, db_session: AsyncSession):
        await _subscribe(db_session, "user-1", "https://push.example/phone")
        await _subscribe(db_session, "user-1", "https://push.example/laptop")
        task, row = await _due_task(db_session)
        sender = FakePushService()
        service = PushNotificationService(db_session, sender=sender)

        report = await service.process_pending_notifications(now=NOW)
        assert (report.processed, report.sent, report.failed) == (1, 1, 0)
        assert len(sender.sent) == 2

        payload = sender.sent[0][1]
        assert payload["tag"] == f"task-{task.id}"
        assert payload["data"]["notificationId"] == str(row.id)
        assert [a["action"] for a in payload["actions"]] == ["complete", "snooze", "view"]

        again = await service.process_pending_notifications(now=NOW + timedelta(minutes=1))
        assert again.processed == 0
        assert len(sender.sent) == 2

    async def test_future_rows_are_left_alone(self, db_session: AsyncSession):
        await _subscribe(db_session, "user-1", "https://push.example/phone")
        await _due_task(db_session)
        service = PushNotificationService(db_session, sender=FakePushService())

        report = await service.process_pending_notifications(now=NOW - timedelta(seconds=1))
        assert report.processed == 0

    async def test_failed_row_stays_pending(self, db_session: AsyncSession):
        _, row = await _due_task(db_session)
        service = PushNotificationService(db_session, sender=FakePushService())

        report = await service.process_pending_notifications(now=NOW)
        assert (report.processed, report.failed, report.abandoned) == (1, 1, 0)

        fetched = await ScheduledNotificationRepository(db_session).get_by_id(row.id)
        assert fetched.sent is False
        assert fetched.attempt_count == 1
        assert fetched.last_error == "no active subscriptions"

    async def test_retry_ceiling_abandons_row(self, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(configs.Push, "MaxDeliveryAttempts", 2)
        _, row = await _due_task(db_session)
        service = PushNotificationService(db_session, sender=FakePushService())

        first = await service.process_pending_notifications(now=NOW)
        second = await service.process_pending_notifications(now=NOW)
        third = await service.process_pending_notifications(now=NOW)

        assert (first.abandoned, second.abandoned, third.processed) == (0, 1, 0)
        fetched = await ScheduledNotificationRepository(db_session).get_by_id(row.id)
        assert fetched.abandoned is True

    async def test_run_sweep_once_commits(self, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch):
        @asynccontextmanager
        async def _session():
            yield db_session

        monkeypatch.setattr("dayfuse.infra.database.get_task_db_session", _session)
        sender = FakePushService()
        monkeypatch.setattr("dayfuse.core.push.service.send_push", sender)

        await _subscribe(db_session, "user-1", "https://push.example/phone")
        _, row = await _due_task(db_session)

        report = await run_sweep_once()
        assert report.sent == 1
        assert len(sender.sent) == 1
        fetched = await ScheduledNotificationRepository(db_session).get_by_id(row.id)
        assert fetched.sent is True
