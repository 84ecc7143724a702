"""Web Push REST API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.common.code import ErrCode, ErrCodeError, handle_err_code
from dayfuse.configs import configs
from dayfuse.core.push.payload import build_simple_payload
from dayfuse.core.push.service import PushNotificationService
from dayfuse.core.push.vapid import get_vapid_public_key
from dayfuse.infra.database import get_session
from dayfuse.models.push_subscription import PushSubscriptionCreate
from dayfuse.repos.push_subscription import PushSubscriptionRepository
from dayfuse.schemas.base import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["push"])


# --- Response / Request models -----------------------------------------------


class VapidPublicKeyResponse(CamelModel):
    public_key: str


class SubscribeRequest(CamelModel):
    user_id: str = Field(min_length=1)
    endpoint: str = Field(min_length=1)
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)
    user_agent: str = ""


class SubscribeResponse(CamelModel):
    subscription_id: UUID


class UnsubscribeResponse(CamelModel):
    success: bool


class TestPushRequest(CamelModel):
    title: str = "DayFuse Test Notification"
    body: str = (
        "Your push notifications are working perfectly! "
        "This notification was sent from the server and works even when the app is closed."
    )


class TestPushResponse(CamelModel):
    sent: int
    failed: int


# --- Endpoints ----------------------------------------------------------------


@router.get("/vapid-public-key", response_model=VapidPublicKeyResponse)
async def vapid_public_key() -> VapidPublicKeyResponse:
    """Public key the browser passes to ``pushManager.subscribe``."""
    try:
        if not configs.Push.Enable:
            raise ErrCode.PUSH_DISABLED.with_messages("Web Push is disabled")
        key = get_vapid_public_key()
        if not key:
            raise ErrCode.VAPID_NOT_CONFIGURED.with_messages("VAPID public key not configured")
        return VapidPublicKeyResponse(public_key=key)
    except ErrCodeError as e:
        raise handle_err_code(e)


@router.post("/subscribe", response_model=SubscribeResponse, status_code=status.HTTP_201_CREATED)
async def subscribe(
    body: SubscribeRequest,
    db: AsyncSession = Depends(get_session),
) -> SubscribeResponse:
    """Register (or re-activate) a browser push subscription for a user."""
    try:
        repo = PushSubscriptionRepository(db)
        sub = await repo.upsert(
            PushSubscriptionCreate(
                user_id=body.user_id,
                endpoint=body.endpoint,
                p256dh=body.p256dh,
                auth=body.auth,
                user_agent=body.user_agent,
            )
        )
        await db.commit()
        logger.info(f"Push subscription {sub.id} registered for user {body.user_id}")
        return SubscribeResponse(subscription_id=sub.id)
    except Exception as e:
        logger.error(f"Failed to register push subscription: {e}")
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.delete("/unsubscribe/{subscription_id}", response_model=UnsubscribeResponse)
async def unsubscribe(
    subscription_id: UUID,
    db: AsyncSession = Depends(get_session),
) -> UnsubscribeResponse:
    try:
        repo = PushSubscriptionRepository(db)
        if not await repo.delete_by_id(subscription_id):
            raise ErrCode.PUSH_SUBSCRIPTION_NOT_FOUND.with_messages(f"Subscription {subscription_id} not found")
        await db.commit()
        return UnsubscribeResponse(success=True)
    except ErrCodeError as e:
        raise handle_err_code(e)


@router.post("/test/{user_id}", response_model=TestPushResponse)
async def send_test_push(
    user_id: str,
    body: TestPushRequest | None = None,
    db: AsyncSession = Depends(get_session),
) -> TestPushResponse:
    """Push a test message to every active subscription of *user_id*."""
    body = body or TestPushRequest()
    service = PushNotificationService(db)
    report = await service.send_notification_to_user(user_id, build_simple_payload(body.title, body.body))
    await db.commit()
    return TestPushResponse(sent=report.sent, failed=report.failed)
