from datetime import datetime
from uuid import UUID

from pydantic import field_serializer

from dayfuse.schemas.base import CamelModel
from dayfuse.utils.time import ensure_utc


class TaskResponse(CamelModel):
    id: UUID
    user_id: str
    title: str
    description: str | None = None
    due_time: datetime | None = None
    completed: bool
    created_at: datetime

    @field_serializer("due_time", "created_at")
    def _serialize_utc(self, value: datetime | None) -> str | None:
        return ensure_utc(value).isoformat() if value else None


class TaskEnvelope(CamelModel):
    task: TaskResponse
    notification_scheduled: bool = False


class TaskListResponse(CamelModel):
    tasks: list[TaskResponse]
