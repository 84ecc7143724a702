"""Repository for Web Push subscriptions."""

import logging
from uuid import UUID

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.models.push_subscription import PushSubscription, PushSubscriptionCreate

logger = logging.getLogger(__name__)


class PushSubscriptionRepository:
    """CRUD operations for PushSubscription."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, subscription_id: UUID) -> PushSubscription | None:
        return await self.db.get(PushSubscription, subscription_id)

    async def get_by_user_id(self, user_id: str) -> list[PushSubscription]:
        stmt = select(PushSubscription).where(col(PushSubscription.user_id) == user_id)
        result = await self.db.exec(stmt)
        return list(result.all())

    async def get_active_by_user_id(self, user_id: str) -> list[PushSubscription]:
        stmt = select(PushSubscription).where(
            col(PushSubscription.user_id) == user_id,
            col(PushSubscription.is_active).is_(True),
        )
        result = await self.db.exec(stmt)
        return list(result.all())

    async def upsert(self, data: PushSubscriptionCreate) -> PushSubscription:
        """Insert or update by endpoint (unique). Re-registering reactivates the row."""
        stmt = select(PushSubscription).where(col(PushSubscription.endpoint) == data.endpoint)
        result = await self.db.exec(stmt)
        existing = result.first()

        if existing:
            existing.user_id = data.user_id
            existing.p256dh = data.p256dh
            existing.auth = data.auth
            existing.user_agent = data.user_agent
            existing.is_active = True
            self.db.add(existing)
            await self.db.flush()
            await self.db.refresh(existing)
            return existing

        sub = PushSubscription(**data.model_dump())
        self.db.add(sub)
        await self.db.flush()
        await self.db.refresh(sub)
        return sub

    async def set_active(self, subscription_id: UUID, is_active: bool) -> None:
        sub = await self.db.get(PushSubscription, subscription_id)
        if sub:
            sub.is_active = is_active
            self.db.add(sub)
            await self.db.flush()

    async def delete_by_id(self, subscription_id: UUID) -> bool:
        existing = await self.db.get(PushSubscription, subscription_id)
        if existing:
            await self.db.delete(existing)
            await self.db.flush()
            return True
        return False
