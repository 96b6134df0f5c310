from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from syncd.config import get_settings
from syncd.db.database import get_sync_session
from syncd.models import (
    EmailNotification,
    NotificationKind,
    NotificationStatus,
    User,
    UserPreference,
)
from syncd.models.user import DEFAULT_DIGEST_TIME
from syncd.notifications.dispatcher import NotificationDispatcher


class NotificationScheduler:
    """Enqueues pending email notifications and sweeps the due ones.

    One instance is built at process start and shared by the HTTP write path
    and the periodic jobs. A notification is unique per (user, kind, subject,
    scheduled time); repeated scheduling calls are no-ops.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = get_sync_session,
        dispatcher_factory: Callable[[Session], NotificationDispatcher] = NotificationDispatcher,
    ):
        self.session_factory = session_factory
        self.dispatcher_factory = dispatcher_factory
        self.settings = get_settings()

    def reminder_hours_for(self, session: Session, user_id: int) -> int:
        hours = (
            session.query(UserPreference.reminder_hours)
            .filter_by(user_id=user_id)
            .scalar()
        )
        return hours or self.settings.default_reminder_hours

    def schedule_reminder(
        self,
        session: Session,
        kind: NotificationKind,
        subject_id: int,
        user_id: int,
        event_time: datetime,
    ) -> Optional[EmailNotification]:
        """Queue a reminder ``reminder_hours`` before ``event_time``.

        Returns the new record, or None when an identical one already exists.
        """
        reminder_time = event_time - timedelta(hours=self.reminder_hours_for(session, user_id))
        return self._enqueue(session, user_id, kind, subject_id, reminder_time)

    def schedule_task_reminder(
        self, session: Session, task_id: int, user_id: int, due_date: datetime
    ) -> Optional[EmailNotification]:
        return self.schedule_reminder(session, NotificationKind.task_due, task_id, user_id, due_date)

    def schedule_event_reminder(
        self, session: Session, event_id: int, user_id: int, event_date: datetime
    ) -> Optional[EmailNotification]:
        return self.schedule_reminder(
            session, NotificationKind.event_reminder, event_id, user_id, event_date
        )

    def schedule_daily_digests(self, now: Optional[datetime] = None) -> int:
        """Queue the next daily digest for every user with email notifications on."""
        now = now or datetime.now()
        created = 0

        with self.session_factory() as session:
            rows = (
                session.query(User.id, UserPreference.daily_digest_time)
                .join(UserPreference, UserPreference.user_id == User.id)
                .filter(UserPreference.email_notifications.is_(True))
                .all()
            )

            for user_id, digest_time in rows:
                scheduled = datetime.combine(now.date(), digest_time or DEFAULT_DIGEST_TIME)
                if scheduled < now:
                    scheduled += timedelta(days=1)
                try:
                    if self._enqueue(session, user_id, NotificationKind.daily_digest, None, scheduled):
                        created += 1
                except Exception as e:
                    session.rollback()
                    logger.error(f"Error scheduling daily digest for user {user_id}: {e}")

        logger.info(f"Scheduled {created} daily digests ({len(rows)} opted-in users)")
        return created

    def process_due_notifications(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Send every pending notification whose scheduled time has passed.

        A failed dispatch is logged and left pending for the next sweep.
        """
        now = now or datetime.now()
        results = {"sent": 0, "failed": 0}

        with self.session_factory() as session:
            due = (
                session.query(EmailNotification)
                .filter(
                    EmailNotification.status == NotificationStatus.pending,
                    EmailNotification.scheduled_time <= now,
                )
                .order_by(EmailNotification.scheduled_time.asc())
                .all()
            )
            if not due:
                return results

            logger.info(f"Processing {len(due)} due notifications")
            dispatcher = self.dispatcher_factory(session)
            due_ids = [notification.id for notification in due]

            for notification_id in due_ids:
                notification = session.get(EmailNotification, notification_id)
                try:
                    dispatcher.dispatch(notification)
                    notification.status = NotificationStatus.sent
                    notification.sent_at = datetime.now()
                    session.commit()
                    results["sent"] += 1
                except Exception as e:
                    session.rollback()
                    results["failed"] += 1
                    logger.error(f"Error sending notification {notification_id}: {e}")
                    self._record_failure(session, notification_id)

        logger.info(f"Notification sweep results: {results}")
        return results

    def _enqueue(
        self,
        session: Session,
        user_id: int,
        kind: NotificationKind,
        subject_id: Optional[int],
        scheduled_time: datetime,
    ) -> Optional[EmailNotification]:
        if self._find_queued(session, user_id, kind, subject_id, scheduled_time) is not None:
            logger.debug(f"{kind.value} for user {user_id} at {scheduled_time} already queued")
            return None

        notification = EmailNotification(
            user_id=user_id,
            kind=kind,
            subject_id=subject_id,
            scheduled_time=scheduled_time,
            status=NotificationStatus.pending,
        )
        session.add(notification)
        try:
            session.commit()
        except IntegrityError:
            # lost a race with a concurrent identical insert
            session.rollback()
            return None

        logger.info(f"Scheduled {kind.value} for user {user_id} at {scheduled_time}")
        return notification

    def _find_queued(
        self,
        session: Session,
        user_id: int,
        kind: NotificationKind,
        subject_id: Optional[int],
        scheduled_time: datetime,
    ) -> Optional[int]:
        subject_filter = (
            EmailNotification.subject_id.is_(None)
            if subject_id is None
            else EmailNotification.subject_id == subject_id
        )
        return (
            session.query(EmailNotification.id)
            .filter(
                EmailNotification.user_id == user_id,
                EmailNotification.kind == kind,
                subject_filter,
                EmailNotification.scheduled_time == scheduled_time,
            )
            .limit(1)
            .scalar()
        )

    def _record_failure(self, session: Session, notification_id: int) -> None:
        try:
            notification = session.get(EmailNotification, notification_id)
            if notification is not None:
                notification.attempts += 1
                session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Could not record failed attempt for notification {notification_id}: {e}")
