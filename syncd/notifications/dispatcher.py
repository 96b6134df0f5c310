from __future__ import annotations

from datetime import timedelta
from typing import Callable, Dict, Optional

from loguru import logger
from sqlalchemy.orm import Session

from syncd.models import (
    CampusEvent,
    EmailNotification,
    EventSubscription,
    NotificationKind,
    Task,
    User,
)
from syncd.notifications.formatter import (
    format_daily_digest,
    format_event_reminder,
    format_task_due_reminder,
)
from syncd.notifications.mailer import EmailSender

DIGEST_WINDOW = timedelta(days=1)

Message = Dict[str, str]


class DispatchError(Exception):
    """Raised when a notification could not be delivered."""


class NotificationDispatcher:
    """Builds the email for a notification record and hands it to the sender."""

    def __init__(self, session: Session, sender: Optional[EmailSender] = None):
        self.session = session
        self.sender = sender or EmailSender()
        self._builders: Dict[NotificationKind, Callable[[User, EmailNotification], Message]] = {
            NotificationKind.task_due: self._build_task_due,
            NotificationKind.event_reminder: self._build_event_reminder,
            NotificationKind.daily_digest: self._build_daily_digest,
        }

    def dispatch(self, notification: EmailNotification) -> None:
        """Send one notification.

        Raises:
            DispatchError: if the user or subject is gone or the send fails.
        """
        user = self.session.get(User, notification.user_id)
        if user is None:
            raise DispatchError(f"user {notification.user_id} no longer exists")

        builder = self._builders.get(notification.kind)
        if builder is None:
            raise DispatchError(f"no message builder for {notification.kind}")

        message = builder(user, notification)
        if not self.sender.send(user.email, message["subject"], message["html"]):
            raise DispatchError(
                f"email delivery failed for {notification.kind.value} "
                f"notification {notification.id}"
            )

        logger.info(
            f"Dispatched {notification.kind.value} notification {notification.id} "
            f"to {user.email}"
        )

    def _build_task_due(self, user: User, notification: EmailNotification) -> Message:
        task = self.session.get(Task, notification.subject_id)
        if task is None:
            raise DispatchError(f"task {notification.subject_id} no longer exists")
        return format_task_due_reminder(user, task)

    def _build_event_reminder(self, user: User, notification: EmailNotification) -> Message:
        event = self.session.get(CampusEvent, notification.subject_id)
        if event is None:
            raise DispatchError(f"event {notification.subject_id} no longer exists")
        return format_event_reminder(user, event)

    def _build_daily_digest(self, user: User, notification: EmailNotification) -> Message:
        start = notification.scheduled_time
        end = start + DIGEST_WINDOW

        tasks = (
            self.session.query(Task)
            .filter(
                Task.user_id == user.id,
                Task.due_date >= start,
                Task.due_date <= end,
            )
            .order_by(Task.due_date.asc())
            .all()
        )
        events = (
            self.session.query(CampusEvent)
            .join(EventSubscription, EventSubscription.event_id == CampusEvent.id)
            .filter(
                EventSubscription.user_id == user.id,
                CampusEvent.event_date >= start,
                CampusEvent.event_date <= end,
            )
            .order_by(CampusEvent.event_date.asc())
            .all()
        )
        return format_daily_digest(user, tasks, events, start.date())

