from __future__ import annotations

from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from loguru import logger
from sqlalchemy.orm import Session

from syncd.config import get_settings
from syncd.models import EventCategory
from syncd.scrapers.base import BaseScraper, ScrapedEvent
from syncd.scrapers.dates import parse_event_date
from syncd.scrapers.utils import clean_text, contains_keyword, courtesy_delay, fetch_page

# Evaluated in order; the first rule whose card class or card text matches wins.
CATEGORY_RULES = [
    (EventCategory.SPORTS, "athletics", ["fitness"]),
    (EventCategory.CLUBS, "student-life", ["student life"]),
    (EventCategory.ACADEMIC, "academic", ["lab", "class"]),
    (EventCategory.ARTS, "arts", ["art", "entertainment"]),
    (EventCategory.CAREER, "career", ["career", "job"]),
]

TAG_KEYWORDS = ["lab", "class", "fitness", "recreation"]


class CampusCalendarScraper(BaseScraper):
    source_name = "UNT Calendar"

    def __init__(
        self,
        db_session: Session,
        base_url: Optional[str] = None,
        pages: Optional[int] = None,
        page_delay: Optional[float] = None,
    ):
        super().__init__(db_session)
        settings = get_settings()
        self.base_url = (base_url or settings.calendar_base_url).rstrip("/")
        self.pages = pages if pages is not None else settings.scraper_pages
        self.page_delay = page_delay if page_delay is not None else settings.scraper_page_delay

    def page_url(self, page: int) -> str:
        if page == 1:
            return f"{self.base_url}/calendar"
        return f"{self.base_url}/calendar/{page}"

    def fetch_events(self) -> List[ScrapedEvent]:
        events: List[ScrapedEvent] = []

        for page in range(1, self.pages + 1):
            url = self.page_url(page)
            logger.info(f"Scraping page {page}: {url}")

            # FetchError propagates and abandons the remaining pages
            soup = fetch_page(url)
            page_events = self.parse_page(soup)
            logger.info(f"Found {len(page_events)} valid events on page {page}")
            events.extend(page_events)

            if page < self.pages:
                courtesy_delay(self.page_delay)

        return events

    def parse_page(self, soup: BeautifulSoup) -> List[ScrapedEvent]:
        events = []
        for card in soup.select("#event_results .em-card"):
            event = self.parse_card(card)
            if event.parsed_date is None:
                logger.warning(
                    f"Skipping event with invalid date: '{event.title}' ({event.raw_date_text!r})"
                )
                continue
            logger.debug(f"Found valid event: {event.title} @ {event.parsed_date.isoformat()}")
            events.append(event)
        return events

    def parse_card(self, card: Tag) -> ScrapedEvent:
        title_link = card.select_one(".em-card_text h3 a")
        title = clean_text(title_link.get_text()) if title_link else ""
        href = title_link.get("href") if title_link else None

        date_el = card.select_one(".em-card_event-text")
        date_text = clean_text(date_el.get_text()) if date_el else ""

        location_link = card.select_one('a[href*="/location/"]')
        location = clean_text(location_link.get_text()) if location_link else ""

        paragraphs = card.select(".em-card_text p:not(.em-card_event-text)")
        description = " ".join(clean_text(p.get_text()) for p in paragraphs).strip()

        card_classes = " ".join(card.get("class", []))
        card_text = clean_text(card.get_text(" "))
        category = self._detect_category(card_classes, card_text)

        return ScrapedEvent(
            title=title,
            description=description,
            raw_date_text=date_text,
            parsed_date=parse_event_date(date_text),
            location=location or None,
            category=category,
            tags=self._extract_tags(category, title, location),
            link=urljoin(f"{self.base_url}/", href) if href else "",
        )

    def _detect_category(self, card_classes: str, card_text: str) -> EventCategory:
        for category, class_marker, keywords in CATEGORY_RULES:
            if class_marker in card_classes:
                return category
            if any(contains_keyword(card_text, kw) for kw in keywords):
                return category
        return EventCategory.GENERAL

    def _extract_tags(self, category: EventCategory, title: str, location: str) -> List[str]:
        tags = [category.value.lower()]
        # plain substrings, so "Biolab" still earns "lab"
        haystack = f"{title} {location}".lower()
        for keyword in TAG_KEYWORDS:
            if keyword not in tags and keyword in haystack:
                tags.append(keyword)
        return tags
