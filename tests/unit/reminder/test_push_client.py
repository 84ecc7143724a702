"""Unit tests for the relay HTTP client."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from dayfuse.reminder.ports import PushSubscriptionInfo
from dayfuse.reminder.push_client import PushClient


def _client(handler) -> PushClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://relay")
    return PushClient("http://relay", http=http)


async def test_get_vapid_public_key() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/push/vapid-public-key"
        return httpx.Response(200, json={"publicKey": "BKey"})

    async with _client(handler) as client:
        assert await client.get_vapid_public_key() == "BKey"


async def test_register_subscription_sends_camel_case_body() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "subscriptionId": "sub-9"})

    client = _client(handler)
    sub = PushSubscriptionInfo(endpoint="https://push.example/1", p256dh="pk", auth="au")
    assert await client.register_subscription("u1", sub, "UA") == "sub-9"
    assert seen == {"userId": "u1", "endpoint": "https://push.example/1", "p256dh": "pk", "auth": "au", "userAgent": "UA"}


async def test_create_task_normalises_due_time_to_utc() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        return httpx.Response(201, json={"task": {"id": "t1"}, "notificationScheduled": True})

    due = datetime(2025, 6, 1, 9, 0, tzinfo=timezone(timedelta(hours=2)))
    envelope = await _client(handler).create_task("u1", "Title", due)
    assert envelope["notificationScheduled"] is True
    assert seen["dueTime"] == "2025-06-01T07:00:00+00:00"


async def test_delete_missing_task_returns_false() -> None:
    client = _client(lambda request: httpx.Response(404, json={"detail": "missing"}))
    assert await client.delete_task("t1") is False
    assert await client.unregister_subscription("s1") is False


async def test_server_errors_propagate() -> None:
    client = _client(lambda request: httpx.Response(500))
    with pytest.raises(httpx.HTTPStatusError):
        await client.delete_task("t1")
    with pytest.raises(httpx.HTTPStatusError):
        await client.send_test("u1")


async def test_create_task_sends_reminder_text_only_when_given() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"task": {"id": "t1"}, "notificationScheduled": True})

    client = _client(handler)
    await client.create_task("u1", "Title", None)
    await client.create_task("u1", "Title", None, reminder_title="Snoozed", reminder_body="Ready: Title")

    assert "reminderTitle" not in bodies[0] and "reminderBody" not in bodies[0]
    assert bodies[1]["reminderTitle"] == "Snoozed"
    assert bodies[1]["reminderBody"] == "Ready: Title"
