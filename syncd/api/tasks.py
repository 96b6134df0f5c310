from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from loguru import logger
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from syncd.api.deps import get_current_user, get_reminders
from syncd.db.database import get_db
from syncd.models import (
    EmailNotification,
    NotificationKind,
    NotificationStatus,
    Task,
    TaskTag,
    User,
)
from syncd.models.task import TASK_PRIORITIES, TASK_STATUSES
from syncd.scheduler.reminders import NotificationScheduler

router = APIRouter(prefix="/api", tags=["tasks"])


class TaskRequest(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: str = "medium"
    status: str = "todo"
    tags: Optional[List[str]] = None


class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    due_date: Optional[datetime]
    priority: str
    status: str
    tags: List[str]


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive server-local time."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _validate(body: TaskRequest) -> None:
    if not body.title or not body.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if body.priority not in TASK_PRIORITIES:
        raise HTTPException(status_code=400, detail=f"priority must be one of {TASK_PRIORITIES}")
    if body.status not in TASK_STATUSES:
        raise HTTPException(status_code=400, detail=f"status must be one of {TASK_STATUSES}")


def _unique_tags(tags: Optional[List[str]]) -> List[str]:
    seen: List[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def _task_response(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        title=task.title,
        description=task.description,
        due_date=task.due_date,
        priority=task.priority,
        status=task.status,
        tags=task.tag_names,
    )


async def _get_owned_task(db: AsyncSession, task_id: int, user: User) -> Task:
    result = await db.execute(
        select(Task)
        .options(selectinload(Task.tags))
        .where(Task.id == task_id, Task.user_id == user.id)
    )
    task = result.scalar_one_or_none()
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found or unauthorized")
    return task


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error {action}: {e}")
        raise


async def _schedule_reminder(
    db: AsyncSession, reminders: NotificationScheduler, task: Task
) -> None:
    # a rollback in here expires the task, so read it first and never again
    task_id, user_id, due_date = task.id, task.user_id, task.due_date
    try:
        await db.run_sync(reminders.schedule_task_reminder, task_id, user_id, due_date)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error scheduling reminder for task {task_id}: {e}")


@router.get("/tasks")
async def list_tasks(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Task)
        .options(selectinload(Task.tags))
        .where(Task.user_id == user.id)
        .order_by(Task.due_date.is_(None), Task.due_date.asc())
    )
    return {"items": [_task_response(task) for task in result.scalars().all()]}


@router.post("/tasks", status_code=201)
async def create_task(
    body: TaskRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    reminders: NotificationScheduler = Depends(get_reminders),
):
    _validate(body)

    task = Task(
        user_id=user.id,
        title=body.title.strip(),
        description=body.description,
        due_date=to_local_naive(body.due_date),
        priority=body.priority,
        status=body.status,
    )
    task.tags = [TaskTag(tag_name=name) for name in _unique_tags(body.tags)]
    db.add(task)
    await _commit(db, "creating task")
    response = _task_response(task)

    if task.due_date:
        await _schedule_reminder(db, reminders, task)

    return response


@router.put("/tasks/{task_id}")
async def update_task(
    task_id: int,
    body: TaskRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    reminders: NotificationScheduler = Depends(get_reminders),
):
    _validate(body)
    task = await _get_owned_task(db, task_id, user)

    task.title = body.title.strip()
    task.description = body.description
    task.due_date = to_local_naive(body.due_date)
    task.priority = body.priority
    task.status = body.status

    if body.tags is not None:
        wanted = _unique_tags(body.tags)
        kept = [tag for tag in task.tags if tag.tag_name in wanted]
        kept_names = {tag.tag_name for tag in kept}
        task.tags = kept + [TaskTag(tag_name=name) for name in wanted if name not in kept_names]

    await _commit(db, "updating task")
    response = _task_response(task)

    if task.due_date:
        await _schedule_reminder(db, reminders, task)

    return response


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_owned_task(db, task_id, user)

    await db.delete(task)
    await db.execute(
        delete(EmailNotification).where(
            EmailNotification.kind == NotificationKind.task_due,
            EmailNotification.subject_id == task_id,
            EmailNotification.status == NotificationStatus.pending,
        )
    )
    await _commit(db, "deleting task")
    return Response(status_code=204)
