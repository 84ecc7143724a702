from uuid import uuid4

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.repos.push_subscription import PushSubscriptionRepository
from tests.factories.push_subscription import PushSubscriptionCreateFactory


@pytest.mark.integration
class TestPushSubscriptionRepository:
    """Integration tests for PushSubscriptionRepository."""

    @pytest.fixture
    def sub_repo(self, db_session: AsyncSession) -> PushSubscriptionRepository:
        return PushSubscriptionRepository(db_session)

    async def test_upsert_inserts_new_endpoint(self, sub_repo: PushSubscriptionRepository):
        sub = await sub_repo.upsert(PushSubscriptionCreateFactory.build(user_id="user-a"))
        assert sub.id is not None
        assert sub.is_active is True
        assert await sub_repo.get_by_user_id("user-a") == [sub]

    async def test_upsert_same_endpoint_updates_and_reactivates(self, sub_repo: PushSubscriptionRepository):
        data = PushSubscriptionCreateFactory.build(user_id="user-a")
        first = await sub_repo.upsert(data)
        await sub_repo.set_active(first.id, False)

        moved = data.model_copy(update={"user_id": "user-b", "auth": "new-auth"})
        second = await sub_repo.upsert(moved)

        assert second.id == first.id
        assert second.user_id == "user-b"
        assert second.auth == "new-auth"
        assert second.is_active is True
        assert await sub_repo.get_by_user_id("user-a") == []

    async def test_active_filter(self, sub_repo: PushSubscriptionRepository):
        live = await sub_repo.upsert(PushSubscriptionCreateFactory.build(user_id="user-c"))
        dead = await sub_repo.upsert(PushSubscriptionCreateFactory.build(user_id="user-c"))
        await sub_repo.set_active(dead.id, False)

        active = await sub_repo.get_active_by_user_id("user-c")
        assert [s.id for s in active] == [live.id]
        assert len(await sub_repo.get_by_user_id("user-c")) == 2

    async def test_delete_by_id(self, sub_repo: PushSubscriptionRepository):
        sub = await sub_repo.upsert(PushSubscriptionCreateFactory.build())
        assert await sub_repo.delete_by_id(sub.id) is True
        assert await sub_repo.get_by_id(sub.id) is None
        assert await sub_repo.delete_by_id(uuid4()) is False
