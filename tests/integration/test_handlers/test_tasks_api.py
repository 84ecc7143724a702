from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.repos.scheduled_notification import ScheduledNotificationRepository
from dayfuse.utils.time import ensure_utc


def _future(hours: int = 24) -> datetime:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).replace(microsecond=0)


async def _pending(db: AsyncSession, task_id: str) -> list:
    rows = await ScheduledNotificationRepository(db).get_by_task_id(UUID(task_id))
    return [r for r in rows if not r.sent]


@pytest.mark.integration
class TestTasksAPI:
    """Task CRUD and the durable reminder rows it keeps in step."""

    async def _create(self, client: AsyncClient, **overrides) -> dict:
        body = {"userId": "user-1", "title": "Water plants", "dueTime": _future().isoformat()}
        body.update(overrides)
        response = await client.post("/api/tasks", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    async def test_create_schedules_reminder(self, async_client: AsyncClient, db_session: AsyncSession):
        due = _future()
        data = await self._create(async_client, dueTime=due.isoformat())

        assert data["notificationScheduled"] is True
        assert data["task"]["userId"] == "user-1"
        assert data["task"]["completed"] is False

        rows = await _pending(db_session, data["task"]["id"])
        assert len(rows) == 1
        assert ensure_utc(rows[0].scheduled_time) == due
        assert rows[0].body == "Time to work on: Water plants"

    async def test_create_with_custom_reminder_text(self, async_client: AsyncClient, db_session: AsyncSession):
        data = await self._create(
            async_client, reminderTitle="Snoozed Task Reminder", reminderBody="Your snoozed task is ready: Water plants"
        )

        [row] = await _pending(db_session, data["task"]["id"])
        assert row.title == "Snoozed Task Reminder"
        assert row.body == "Your snoozed task is ready: Water plants"
        assert data["task"]["title"] == "Water plants"

    async def test_create_with_offset_due_time_is_stored_in_utc(self, async_client: AsyncClient):
        due = _future().astimezone(timezone(timedelta(hours=2)))
        data = await self._create(async_client, dueTime=due.isoformat())
        assert datetime.fromisoformat(data["task"]["dueTime"]) == due
        assert data["task"]["dueTime"].endswith("+00:00")

    async def test_past_or_untimed_task_is_not_scheduled(self, async_client: AsyncClient):
        past = await self._create(async_client, dueTime=(datetime.now(timezone.utc) - timedelta(hours=1)).isoformat())
        untimed = await self._create(async_client, dueTime=None)

        assert past["notificationScheduled"] is False
        assert untimed["notificationScheduled"] is False
        assert untimed["task"]["dueTime"] is None

    @pytest.mark.parametrize(
        "body",
        [
            {"userId": "user-1", "title": ""},
            {"userId": "", "title": "x"},
            {"userId": "user-1", "title": "x" * 501},
            {"userId": "user-1", "title": "x", "dueTime": "tomorrow"},
        ],
        ids=["empty-title", "empty-user", "long-title", "bad-due-time"],
    )
    async def test_create_validation(self, async_client: AsyncClient, body: dict):
        response = await async_client.post("/api/tasks", json=body)
        assert response.status_code == 422

    async def test_list_tasks(self, async_client: AsyncClient):
        await self._create(async_client, title="One")
        await self._create(async_client, title="Two")
        await self._create(async_client, userId="user-2", title="Other")

        response = await async_client.get("/api/tasks/user-1")
        assert response.status_code == 200
        assert sorted(t["title"] for t in response.json()["tasks"]) == ["One", "Two"]

    async def test_completing_cancels_reminder(self, async_client: AsyncClient, db_session: AsyncSession):
        task_id = (await self._create(async_client))["task"]["id"]

        response = await async_client.patch(f"/api/tasks/{task_id}", json={"completed": True})
        assert response.status_code == 200
        assert response.json()["task"]["completed"] is True
        assert response.json()["notificationScheduled"] is False
        assert await _pending(db_session, task_id) == []

    async def test_moving_due_time_replaces_reminder(self, async_client: AsyncClient, db_session: AsyncSession):
        task_id = (await self._create(async_client))["task"]["id"]
        new_due = _future(hours=48)

        response = await async_client.patch(f"/api/tasks/{task_id}", json={"dueTime": new_due.isoformat()})
        assert response.status_code == 200
        assert response.json()["notificationScheduled"] is True

        rows = await _pending(db_session, task_id)
        assert len(rows) == 1
        assert ensure_utc(rows[0].scheduled_time) == new_due

    async def test_reopening_reschedules(self, async_client: AsyncClient, db_session: AsyncSession):
        task_id = (await self._create(async_client))["task"]["id"]
        await async_client.patch(f"/api/tasks/{task_id}", json={"completed": True})

        response = await async_client.patch(f"/api/tasks/{task_id}", json={"completed": False})
        assert response.json()["notificationScheduled"] is True
        assert len(await _pending(db_session, task_id)) == 1

    async def test_description_edit_keeps_reminder(self, async_client: AsyncClient, db_session: AsyncSession):
        task_id = (await self._create(async_client))["task"]["id"]
        before = await _pending(db_session, task_id)

        response = await async_client.patch(f"/api/tasks/{task_id}", json={"description": "use rain water"})
        assert response.status_code == 200
        after = await _pending(db_session, task_id)
        assert [r.id for r in after] == [r.id for r in before]

    async def test_update_unknown_task(self, async_client: AsyncClient):
        response = await async_client.patch(f"/api/tasks/{uuid4()}", json={"title": "x"})
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == 2000

    async def test_delete_task(self, async_client: AsyncClient, db_session: AsyncSession):
        task_id = (await self._create(async_client))["task"]["id"]

        response = await async_client.delete(f"/api/tasks/{task_id}")
        assert response.status_code == 204
        assert await _pending(db_session, task_id) == []

        again = await async_client.delete(f"/api/tasks/{task_id}")
        assert again.status_code == 404
