from __future__ import annotations

from datetime import time
from typing import Optional

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from syncd.api.deps import get_current_user
from syncd.db.database import get_db
from syncd.models import User, UserPreference
from syncd.models.user import DEFAULT_DIGEST_TIME, DEFAULT_REMINDER_HOURS

router = APIRouter(prefix="/api/users", tags=["users"])


class PreferencesRequest(BaseModel):
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    theme: Optional[str] = None
    email_notifications: Optional[bool] = None
    reminder_hours: Optional[int] = Field(None, ge=1, le=24 * 14)
    daily_digest_time: Optional[time] = None


class PreferencesResponse(BaseModel):
    name: str
    email: str
    avatar_url: Optional[str]
    theme: str
    email_notifications: bool
    reminder_hours: int
    daily_digest_time: str


def _preferences_response(user: User) -> PreferencesResponse:
    pref = user.preference
    digest_time = pref.daily_digest_time if pref and pref.daily_digest_time else DEFAULT_DIGEST_TIME
    return PreferencesResponse(
        name=user.name,
        email=user.email,
        avatar_url=user.avatar_url,
        theme=pref.theme if pref else "light",
        email_notifications=pref.email_notifications if pref else True,
        reminder_hours=(pref.reminder_hours if pref else None) or DEFAULT_REMINDER_HOURS,
        daily_digest_time=digest_time.strftime("%H:%M"),
    )


@router.get("/me/preferences")
async def get_preferences(user: User = Depends(get_current_user)):
    return _preferences_response(user)


@router.put("/me/preferences")
async def update_preferences(
    body: PreferencesRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if body.name:
        user.name = body.name.strip()
    if body.avatar_url is not None:
        user.avatar_url = body.avatar_url or None

    pref = user.preference
    if pref is None:
        pref = UserPreference(
            user_id=user.id,
            theme="light",
            email_notifications=True,
            reminder_hours=DEFAULT_REMINDER_HOURS,
            daily_digest_time=DEFAULT_DIGEST_TIME,
        )
        user.preference = pref

    for field in ("theme", "email_notifications", "reminder_hours", "daily_digest_time"):
        value = getattr(body, field)
        if value is not None:
            setattr(pref, field, value)

    # profile and preferences are committed together or not at all
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating preferences for user {user.id}: {e}")
        raise

    return _preferences_response(user)
