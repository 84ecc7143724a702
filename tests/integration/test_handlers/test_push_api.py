from uuid import uuid4

import pytest
from httpx import AsyncClient

from dayfuse.configs import configs
from tests.factories.push_subscription import PushSubscriptionCreateFactory


def _subscribe_body(user_id: str, endpoint: str | None = None) -> dict:
    data = PushSubscriptionCreateFactory.build(user_id=user_id)
    return {
        "userId": user_id,
        "endpoint": endpoint or data.endpoint,
        "p256dh": data.p256dh or "p256",
        "auth": data.auth or "auth",
        "userAgent": data.user_agent,
    }


@pytest.mark.integration
class TestSystemAPI:
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


@pytest.mark.integration
class TestPushAPI:
    """Subscription lifecycle and test push endpoints."""

    async def test_vapid_public_key(self, async_client: AsyncClient):
        response = await async_client.get("/api/push/vapid-public-key")
        assert response.status_code == 200
        assert response.json() == {"publicKey": configs.Push.VapidPublicKey}

    async def test_vapid_public_key_when_disabled(self, async_client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(configs.Push, "Enable", False)
        response = await async_client.get("/api/push/vapid-public-key")
        assert response.status_code == 503
        assert response.json()["detail"]["code"] == 3001

    async def test_subscribe_is_upsert_by_endpoint(self, async_client: AsyncClient):
        body = _subscribe_body("user-1", "https://push.example/device-1")

        first = await async_client.post("/api/push/subscribe", json=body)
        second = await async_client.post("/api/push/subscribe", json={**body, "auth": "rotated"})

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["subscriptionId"] == second.json()["subscriptionId"]

    async def test_subscribe_validation(self, async_client: AsyncClient):
        body = _subscribe_body("user-1")
        body["endpoint"] = ""
        response = await async_client.post("/api/push/subscribe", json=body)
        assert response.status_code == 422

    async def test_unsubscribe(self, async_client: AsyncClient):
        created = await async_client.post("/api/push/subscribe", json=_subscribe_body("user-1"))
        subscription_id = created.json()["subscriptionId"]

        response = await async_client.delete(f"/api/push/unsubscribe/{subscription_id}")
        assert response.status_code == 200
        assert response.json() == {"success": True}

        again = await async_client.delete(f"/api/push/unsubscribe/{subscription_id}")
        assert again.status_code == 404
        assert again.json()["detail"]["code"] == 3000

    async def test_unsubscribe_unknown(self, async_client: AsyncClient):
        response = await async_client.delete(f"/api/push/unsubscribe/{uuid4()}")
        assert response.status_code == 404

    async def test_send_test_push(self, async_client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
        payloads: list[dict] = []

        def _fake_send(subscription_info: dict, payload: dict) -> bool:
            payloads.append(payload)
            return True

        monkeypatch.setattr("dayfuse.core.push.service.send_push", _fake_send)
        await async_client.post("/api/push/subscribe", json=_subscribe_body("user-1"))

        response = await async_client.post("/api/push/test/user-1", json={"title": "Hello"})
        assert response.status_code == 200
        assert response.json() == {"sent": 1, "failed": 0}
        assert payloads[0]["title"] == "Hello"

    async def test_send_test_push_without_devices(self, async_client: AsyncClient):
        response = await async_client.post("/api/push/test/nobody", json={})
        assert response.status_code == 200
        assert response.json() == {"sent": 0, "failed": 0}
