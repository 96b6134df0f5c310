from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from syncd.models import CampusEvent, EventCategory, EventTag


@dataclass
class ScrapedEvent:
    title: str
    description: str
    raw_date_text: str
    parsed_date: Optional[datetime]
    link: str
    location: Optional[str] = None
    category: EventCategory = EventCategory.GENERAL
    tags: List[str] = field(default_factory=list)


class BaseScraper(ABC):
    source_name: str
    base_url: str

    def __init__(self, db_session: Session):
        self.db = db_session

    @abstractmethod
    def fetch_events(self) -> List[ScrapedEvent]:
        """Scrape every listing page and return the events with a usable date."""
        pass

    def run(self) -> dict:
        """Scrape the source and upsert every event, isolating storage failures."""
        logger.info(f"Starting scraper for {self.source_name}")

        events = self.fetch_events()
        logger.info(f"Found {len(events)} valid events from {self.source_name}")

        saved = 0
        failed = 0
        for event in events:
            try:
                self.save_event(event)
                saved += 1
            except SQLAlchemyError as e:
                self.db.rollback()
                failed += 1
                logger.error(
                    f"Error storing event '{event.title}' ({event.raw_date_text}): {e}"
                )

        return {
            "source": self.source_name,
            "events_count": len(events),
            "saved_count": saved,
            "failed_count": failed,
        }

    def save_event(self, event: ScrapedEvent) -> CampusEvent:
        """Insert or update an event keyed by (title, event date), then merge its tags."""
        campus_event = (
            self.db.query(CampusEvent)
            .filter_by(title=event.title, event_date=event.parsed_date)
            .first()
        )

        if campus_event:
            campus_event.description = event.description
            campus_event.location = event.location
            campus_event.category = event.category
            campus_event.link = event.link
        else:
            campus_event = CampusEvent(
                title=event.title,
                description=event.description,
                event_date=event.parsed_date,
                location=event.location,
                category=event.category,
                link=event.link,
            )
            self.db.add(campus_event)
            self.db.flush()

        existing_tags = {
            tag_name
            for (tag_name,) in self.db.query(EventTag.tag_name).filter(
                EventTag.event_id == campus_event.id
            )
        }
        for tag in event.tags:
            if tag not in existing_tags:
                self.db.add(EventTag(event_id=campus_event.id, tag_name=tag))
                existing_tags.add(tag)

        self.db.commit()
        return campus_event
