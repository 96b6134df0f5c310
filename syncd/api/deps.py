from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from syncd.db.database import get_db
from syncd.models import User
from syncd.scheduler.reminders import NotificationScheduler


async def get_current_user(
    x_user_id: Optional[int] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    # Authentication lives in front of this service; it forwards the user id.
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    user = await db.get(User, x_user_id, options=[selectinload(User.preference)])
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def get_reminders(request: Request) -> NotificationScheduler:
    reminders = getattr(request.app.state, "reminders", None)
    if reminders is None:
        reminders = NotificationScheduler()
        request.app.state.reminders = reminders
    return reminders
