import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field
from sqlmodel.ext.asyncio.session import AsyncSession

from dayfuse.common.code import ErrCode, ErrCodeError, handle_err_code
from dayfuse.core.push.service import PushNotificationService
from dayfuse.infra.database import get_session
from dayfuse.models.task import Task, TaskCreate, TaskUpdate
from dayfuse.repos.task import TaskRepository
from dayfuse.schemas.base import CamelModel
from dayfuse.schemas.task import TaskEnvelope, TaskListResponse, TaskResponse
from dayfuse.utils.time import ensure_utc

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])


class CreateTaskRequest(CamelModel):
    user_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=5000)
    due_time: datetime | None = Field(default=None, description="ISO 8601; naive values are read as UTC")
    reminder_title: str | None = Field(default=None, min_length=1, max_length=500, description="Pushed reminder title")
    reminder_body: str | None = Field(
        default=None, min_length=1, max_length=5000, description="Pushed reminder body"
    )


class UpdateTaskRequest(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    due_time: datetime | None = None
    completed: bool | None = None


def _envelope(task: Task, scheduled: bool) -> TaskEnvelope:
    return TaskEnvelope(task=TaskResponse.model_validate(task), notification_scheduled=scheduled)


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    req: CreateTaskRequest,
    db: AsyncSession = Depends(get_session),
) -> TaskEnvelope:
    """Create a task and book its durable reminder when the due time is ahead."""
    repo = TaskRepository(db)
    task = await repo.create(
        TaskCreate(
            user_id=req.user_id,
            title=req.title,
            description=req.description,
            due_time=ensure_utc(req.due_time) if req.due_time else None,
        )
    )

    service = PushNotificationService(db)
    notification = await service.schedule_for_task(task, title=req.reminder_title, body=req.reminder_body)
    await db.commit()
    await db.refresh(task)

    logger.info(f"Task {task.id} created for user {task.user_id}, reminder scheduled: {notification is not None}")
    return _envelope(task, notification is not None)


@router.get("/{user_id}", response_model=TaskListResponse)
async def list_tasks(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> TaskListResponse:
    repo = TaskRepository(db)
    tasks = await repo.get_by_user(user_id)
    return TaskListResponse(tasks=[TaskResponse.model_validate(t) for t in tasks])


@router.patch("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: UUID,
    req: UpdateTaskRequest,
    db: AsyncSession = Depends(get_session),
) -> TaskEnvelope:
    """Update a task and keep its pending server reminder in step.

    Completing a task drops its pending reminders.  Changing the title or due
    time of an open task, or reopening one, replaces them.
    """
    try:
        repo = TaskRepository(db)
        existing = await repo.get_by_id(task_id)
        if not existing:
            raise ErrCode.TASK_NOT_FOUND.with_messages(f"Task {task_id} not found")

        was_completed = existing.completed
        changes = req.model_dump(exclude_unset=True)
        task = await repo.update(task_id, TaskUpdate(**changes))
        if task is None:
            raise ErrCode.TASK_NOT_FOUND.with_messages(f"Task {task_id} not found")

        service = PushNotificationService(db)
        scheduled = False
        if task.completed:
            await service.cancel_scheduled_notifications(task.id)
        elif was_completed or "due_time" in changes or "title" in changes:
            await service.cancel_scheduled_notifications(task.id)
            scheduled = await service.schedule_for_task(task) is not None

        await db.commit()
        await db.refresh(task)
        return _envelope(task, scheduled)
    except ErrCodeError as e:
        raise handle_err_code(e)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_session),
) -> Response:
    try:
        service = PushNotificationService(db)
        await service.cancel_scheduled_notifications(task_id)

        repo = TaskRepository(db)
        if not await repo.delete(task_id):
            raise ErrCode.TASK_NOT_FOUND.with_messages(f"Task {task_id} not found")

        await db.commit()
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except ErrCodeError as e:
        await db.rollback()
        raise handle_err_code(e)
