from __future__ import annotations

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from syncd.db.database import Base
from syncd.models.base import TimestampMixin


class EventCategory(enum.Enum):
    SPORTS = "SPORTS"
    CLUBS = "CLUBS"
    ACADEMIC = "ACADEMIC"
    ARTS = "ARTS"
    CAREER = "CAREER"
    GENERAL = "GENERAL"


class CampusEvent(Base, TimestampMixin):
    __tablename__ = "campus_events"
    __table_args__ = (
        UniqueConstraint("title", "event_date", name="uq_campus_event_title_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    event_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255))
    category: Mapped[EventCategory] = mapped_column(
        Enum(EventCategory), default=EventCategory.GENERAL, nullable=False
    )
    link: Mapped[Optional[str]] = mapped_column(String(500))

    tags: Mapped[List["EventTag"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    subscriptions: Mapped[List["EventSubscription"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )

    @property
    def tag_names(self) -> List[str]:
        return [tag.tag_name for tag in self.tags]

    def __repr__(self) -> str:
        return f"<CampusEvent {self.title} @ {self.event_date}>"


class EventTag(Base):
    __tablename__ = "event_tags"
    __table_args__ = (
        UniqueConstraint("event_id", "tag_name", name="uq_event_tag"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(
        ForeignKey("campus_events.id", ondelete="CASCADE"), nullable=False
    )
    tag_name: Mapped[str] = mapped_column(String(50), nullable=False)

    event: Mapped["CampusEvent"] = relationship(back_populates="tags")


class EventSubscription(Base):
    __tablename__ = "event_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_event_subscription"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    event_id: Mapped[int] = mapped_column(
        ForeignKey("campus_events.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)

    event: Mapped["CampusEvent"] = relationship(back_populates="subscriptions")
