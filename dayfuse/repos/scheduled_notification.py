import logging
from datetime import datetime
from uuid import UUID

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.models.scheduled_notification import ScheduledNotification, ScheduledNotificationCreate
from dayfuse.utils.time import ensure_utc

logger = logging.getLogger(__name__)


class ScheduledNotificationRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, data: ScheduledNotificationCreate) -> ScheduledNotification:
        notification = ScheduledNotification(
            task_id=data.task_id,
            user_id=data.user_id,
            title=data.title,
            body=data.body,
            scheduled_time=ensure_utc(data.scheduled_time),
        )
        self.db.add(notification)
        await self.db.flush()
        await self.db.refresh(notification)
        return notification

    async def get_by_id(self, notification_id: UUID) -> ScheduledNotification | None:
        return await self.db.get(ScheduledNotification, notification_id)

    async def get_by_task_id(self, task_id: UUID) -> list[ScheduledNotification]:
        statement = select(ScheduledNotification).where(col(ScheduledNotification.task_id) == task_id)
        result = await self.db.exec(statement)
        return list(result.all())

    async def get_due(self, now: datetime, limit: int | None = None) -> list[ScheduledNotification]:
        """Unsent, non-abandoned rows whose scheduled time has passed, oldest first."""
        statement = (
            select(ScheduledNotification)
            .where(
                col(ScheduledNotification.sent).is_(False),
                col(ScheduledNotification.abandoned).is_(False),
                col(ScheduledNotification.scheduled_time) <= ensure_utc(now),
            )
            .order_by(col(ScheduledNotification.scheduled_time))
        )
        if limit:
            statement = statement.limit(limit)
        result = await self.db.exec(statement)
        return list(result.all())

    async def mark_sent(self, notification_id: UUID, sent_at: datetime) -> None:
        notification = await self.db.get(ScheduledNotification, notification_id)
        if notification:
            notification.sent = True
            notification.sent_at = ensure_utc(sent_at)
            notification.attempt_count += 1
            notification.last_error = None
            self.db.add(notification)
            await self.db.flush()

    async def record_failure(self, notification_id: UUID, error: str, max_attempts: int | None = None) -> bool:
        """Count a failed sweep. Returns True when the row was abandoned."""
        notification = await self.db.get(ScheduledNotification, notification_id)
        if not notification:
            return False
        notification.attempt_count += 1
        notification.last_error = error[:500]
        if max_attempts is not None and notification.attempt_count >= max_attempts:
            notification.abandoned = True
        self.db.add(notification)
        await self.db.flush()
        return notification.abandoned

    async def delete_pending_by_task_id(self, task_id: UUID) -> int:
        """Delete unsent rows for *task_id*. Sent rows stay as an audit trail."""
        statement = select(ScheduledNotification).where(
            col(ScheduledNotification.task_id) == task_id,
            col(ScheduledNotification.sent).is_(False),
        )
        result = await self.db.exec(statement)
        pending = list(result.all())
        for row in pending:
            await self.db.delete(row)
        if pending:
            await self.db.flush()
        return len(pending)
