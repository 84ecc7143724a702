import logging
from uuid import UUID

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.models.task import Task, TaskCreate, TaskUpdate
from dayfuse.utils.time import ensure_utc

logger = logging.getLogger(__name__)


class TaskRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, data: TaskCreate) -> Task:
        task = Task(
            user_id=data.user_id,
            title=data.title,
            description=data.description,
            due_time=ensure_utc(data.due_time) if data.due_time else None,
        )
        self.db.add(task)
        await self.db.flush()
        await self.db.refresh(task)
        return task

    async def get_by_id(self, task_id: UUID) -> Task | None:
        return await self.db.get(Task, task_id)

    async def get_by_user(self, user_id: str) -> list[Task]:
        statement = select(Task).where(col(Task.user_id) == user_id).order_by(col(Task.created_at).desc())
        result = await self.db.exec(statement)
        return list(result.all())

    async def update(self, task_id: UUID, update: TaskUpdate) -> Task | None:
        task = await self.db.get(Task, task_id)
        if not task:
            return None
        update_data = update.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if field == "due_time" and value is not None:
                value = ensure_utc(value)
            if field in ("title", "completed") and value is None:
                continue
            setattr(task, field, value)
        self.db.add(task)
        await self.db.flush()
        await self.db.refresh(task)
        return task

    async def delete(self, task_id: UUID) -> bool:
        task = await self.db.get(Task, task_id)
        if not task:
            return False
        await self.db.delete(task)
        await self.db.flush()
        return True
