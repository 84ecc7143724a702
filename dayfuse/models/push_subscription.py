"""Web Push subscription model."""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import TIMESTAMP, Index
from sqlmodel import Column, Field, SQLModel


class PushSubscriptionBase(SQLModel):
    user_id: str = Field(index=True, description="Logical user reference (no FK)")
    endpoint: str = Field(description="Browser Push Service URL")
    p256dh: str = Field(description="P-256 ECDH public key")
    auth: str = Field(description="Authentication secret")
    user_agent: str = Field(default="", description="Optional device identifier")


class PushSubscription(PushSubscriptionBase, table=True):
    """Browser Push API subscription, one per browser per user.

    Rows are deactivated rather than deleted when the push service reports the
    endpoint as gone, so a dead browser is never retried.
    """

    __tablename__ = "push_subscriptions"  # type: ignore
    __table_args__ = (Index("idx_push_sub_endpoint", "endpoint", unique=True),)

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
    )


class PushSubscriptionCreate(PushSubscriptionBase):
    pass
