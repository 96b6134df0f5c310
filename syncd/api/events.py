from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from loguru import logger
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from syncd.api.deps import get_current_user, get_reminders
from syncd.db.database import get_db
from syncd.models import (
    CampusEvent,
    EmailNotification,
    EventCategory,
    EventSubscription,
    NotificationKind,
    NotificationStatus,
    User,
)
from syncd.scheduler.reminders import NotificationScheduler

router = APIRouter(prefix="/api", tags=["events"])


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    event_date: datetime
    location: Optional[str]
    category: str
    link: Optional[str]
    tags: List[str]
    attendees: int
    is_subscribed: bool


def _event_response(event: CampusEvent, user_id: Optional[int]) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        event_date=event.event_date,
        location=event.location,
        category=event.category.value,
        link=event.link,
        tags=event.tag_names,
        attendees=len(event.subscriptions),
        is_subscribed=any(sub.user_id == user_id for sub in event.subscriptions),
    )


@router.get("/events")
async def list_events(
    category: Optional[str] = Query(None),
    x_user_id: Optional[int] = Header(None),
    db: AsyncSession = Depends(get_db),
):
    today = datetime.combine(datetime.now().date(), datetime.min.time())
    stmt = (
        select(CampusEvent)
        .options(selectinload(CampusEvent.tags), selectinload(CampusEvent.subscriptions))
        .where(CampusEvent.event_date >= today)
        .order_by(CampusEvent.event_date.asc())
    )
    if category:
        try:
            stmt = stmt.where(CampusEvent.category == EventCategory(category.upper()))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown category: {category}")

    result = await db.execute(stmt)
    return [_event_response(event, x_user_id) for event in result.scalars().all()]


@router.get("/events/subscribed")
async def list_subscribed_events(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(CampusEvent)
        .options(selectinload(CampusEvent.tags), selectinload(CampusEvent.subscriptions))
        .join(EventSubscription, EventSubscription.event_id == CampusEvent.id)
        .where(EventSubscription.user_id == user.id)
        .order_by(CampusEvent.event_date.asc())
    )
    return [_event_response(event, user.id) for event in result.scalars().all()]


@router.post("/events/{event_id}/subscribe")
async def subscribe_to_event(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    reminders: NotificationScheduler = Depends(get_reminders),
):
    event = await db.get(CampusEvent, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")

    existing = await db.execute(
        select(EventSubscription).where(
            EventSubscription.user_id == user.id,
            EventSubscription.event_id == event_id,
        )
    )
    if existing.scalar_one_or_none():
        return {"message": "Already subscribed to event"}

    db.add(EventSubscription(user_id=user.id, event_id=event_id))
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error subscribing user {user.id} to event {event_id}: {e}")
        raise

    if event.event_date > datetime.now():
        try:
            await db.run_sync(
                reminders.schedule_event_reminder, event.id, user.id, event.event_date
            )
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error scheduling reminder for event {event_id}: {e}")

    return {"message": "Successfully subscribed to event"}


@router.delete("/events/{event_id}/subscribe")
async def unsubscribe_from_event(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.execute(
        delete(EventSubscription).where(
            EventSubscription.user_id == user.id,
            EventSubscription.event_id == event_id,
        )
    )
    await db.execute(
        delete(EmailNotification).where(
            EmailNotification.user_id == user.id,
            EmailNotification.kind == NotificationKind.event_reminder,
            EmailNotification.subject_id == event_id,
            EmailNotification.status == NotificationStatus.pending,
        )
    )
    await db.commit()
    return {"message": "Successfully unsubscribed from event"}
