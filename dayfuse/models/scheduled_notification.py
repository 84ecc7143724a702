"""Durable reminder rows swept by the push relay."""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import TIMESTAMP, Index
from sqlmodel import Column, Field, SQLModel


class ScheduledNotificationBase(SQLModel):
    task_id: UUID = Field(index=True, description="Logical task reference (no FK, sent rows outlive the task)")
    user_id: str = Field(index=True)
    title: str = Field(max_length=500)
    body: str = Field(max_length=5000)
    scheduled_time: datetime = Field(
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
    )


class ScheduledNotification(ScheduledNotificationBase, table=True):
    __tablename__ = "scheduled_notifications"  # type: ignore
    __table_args__ = (Index("ix_scheduled_notifications_sent_time", "sent", "scheduled_time"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    sent: bool = Field(default=False)
    sent_at: datetime | None = Field(
        default=None,
        sa_column=Column(TIMESTAMP(timezone=True), nullable=True),
    )
    attempt_count: int = Field(default=0)
    last_error: str | None = Field(default=None)
    abandoned: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
    )


class ScheduledNotificationCreate(ScheduledNotificationBase):
    pass
