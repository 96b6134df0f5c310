from __future__ import annotations

from datetime import datetime
from typing import Optional

from loguru import logger

from syncd.config import get_settings
from syncd.db.database import get_sync_session
from syncd.scheduler.reminders import NotificationScheduler
from syncd.scrapers.campus import CampusCalendarScraper
from syncd.scrapers.utils import FetchError


def run_calendar_scrape() -> Optional[dict]:
    """Hourly campus calendar scrape. Returns the run summary, or None if it failed."""
    logger.info(f"Starting calendar scrape at {datetime.now()}")

    with get_sync_session() as session:
        scraper = CampusCalendarScraper(session)
        try:
            result = scraper.run()
            logger.info(f"Calendar scrape completed: {result}")
            return result
        except FetchError as e:
            logger.error(f"Calendar scrape aborted, retrying next run: {e}")
        except Exception as e:
            logger.error(f"Error scraping {scraper.source_name}: {e}")
    return None


def process_due_notifications(reminders: NotificationScheduler):
    """Every minute: send pending notifications that are due."""
    if not get_settings().notification_enabled:
        logger.debug("Notifications are disabled, skipping sweep")
        return

    try:
        reminders.process_due_notifications()
    except Exception as e:
        logger.error(f"Error processing notifications: {e}")


def schedule_daily_digests(reminders: NotificationScheduler):
    """Midnight: queue the coming day's digests."""
    logger.info("Scheduling daily digests")
    try:
        reminders.schedule_daily_digests()
    except Exception as e:
        logger.error(f"Error scheduling daily digests: {e}")
