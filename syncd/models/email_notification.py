from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column

from syncd.db.database import Base


class NotificationKind(enum.Enum):
    task_due = "task_due"
    event_reminder = "event_reminder"
    daily_digest = "daily_digest"


class NotificationStatus(enum.Enum):
    pending = "pending"
    sent = "sent"


class EmailNotification(Base):
    __tablename__ = "email_notifications"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "kind",
            "subject_id",
            "scheduled_time",
            name="uq_email_notification_dedup",
        ),
        # NULLs never collide in the constraint above, so digests get their own index
        Index(
            "uq_email_notification_digest",
            "user_id",
            "kind",
            "scheduled_time",
            unique=True,
            sqlite_where=text("subject_id IS NULL"),
            postgresql_where=text("subject_id IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[NotificationKind] = mapped_column(Enum(NotificationKind), nullable=False)
    # task id or event id; NULL for daily digests
    subject_id: Mapped[Optional[int]] = mapped_column(Integer)
    scheduled_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[NotificationStatus] = mapped_column(
        Enum(NotificationStatus), default=NotificationStatus.pending, nullable=False
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<EmailNotification {self.kind.value} "
            f"user={self.user_id} ref={self.subject_id} "
            f"at={self.scheduled_time} [{self.status.value}]>"
        )
