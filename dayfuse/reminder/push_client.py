"""HTTP client for the DayFuse relay API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from dayfuse.configs import configs
from dayfuse.reminder.ports import PushSubscriptionInfo

logger = logging.getLogger(__name__)


class PushClient:
    """Async client for ``/api/push`` and ``/api/tasks``.

    Non-2xx responses raise :class:`httpx.HTTPStatusError`; callers decide
    how to degrade.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = (base_url or configs.Reminder.ApiBaseUrl).rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=self._base_url, timeout=timeout)

    async def __aenter__(self) -> PushClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> httpx.Response:
        resp = await self._http.request(method, f"/api{path}", json=json)
        resp.raise_for_status()
        return resp

    # ------------------------------------------------------------------
    # Push subscriptions
    # ------------------------------------------------------------------

    async def get_vapid_public_key(self) -> str:
        resp = await self._request("GET", "/push/vapid-public-key")
        return resp.json()["publicKey"]

    async def register_subscription(
        self,
        user_id: str,
        subscription: PushSubscriptionInfo,
        user_agent: str = "",
    ) -> str:
        resp = await self._request(
            "POST",
            "/push/subscribe",
            json={
                "userId": user_id,
                "endpoint": subscription.endpoint,
                "p256dh": subscription.p256dh,
                "auth": subscription.auth,
                "userAgent": user_agent,
            },
        )
        subscription_id = resp.json()["subscriptionId"]
        logger.info(f"Push subscription {subscription_id} registered for user {user_id}")
        return subscription_id

    async def unregister_subscription(self, subscription_id: str) -> bool:
        try:
            await self._request("DELETE", f"/push/unsubscribe/{subscription_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return False
            raise
        return True

    async def send_test(self, user_id: str, title: str | None = None, body: str | None = None) -> dict[str, int]:
        payload = {k: v for k, v in {"title": title, "body": body}.items() if v is not None}
        resp = await self._request("POST", f"/push/test/{user_id}", json=payload)
        return resp.json()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def create_task(
        self,
        user_id: str,
        title: str,
        due_time: datetime | None,
        description: str | None = None,
        reminder_title: str | None = None,
        reminder_body: str | None = None,
    ) -> dict[str, Any]:
        """Create a server task; returns ``{"task": {...}, "notificationScheduled": bool}``.

        *reminder_title* and *reminder_body* override the text of the pushed
        reminder, which otherwise is derived from *title*.
        """
        body: dict[str, Any] = {"userId": user_id, "title": title, "description": description}
        if reminder_title is not None:
            body["reminderTitle"] = reminder_title
        if reminder_body is not None:
            body["reminderBody"] = reminder_body
        if due_time is not None:
            body["dueTime"] = due_time.astimezone(timezone.utc).isoformat()
        resp = await self._request("POST", "/tasks", json=body)
        return resp.json()

    async def delete_task(self, task_id: str) -> bool:
        """Delete a server task. ``False`` when it was already gone."""
        try:
            await self._request("DELETE", f"/tasks/{task_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return False
            raise
        return True
