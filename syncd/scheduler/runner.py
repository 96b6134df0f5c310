from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from syncd.config import get_settings
from syncd.scheduler.jobs import (
    process_due_notifications,
    run_calendar_scrape,
    schedule_daily_digests,
)
from syncd.scheduler.reminders import NotificationScheduler


def create_scheduler(reminders: NotificationScheduler) -> BackgroundScheduler:
    settings = get_settings()
    scheduler = BackgroundScheduler()

    # Scrape at startup, then every hour
    scheduler.add_job(
        run_calendar_scrape,
        "interval",
        minutes=settings.scrape_interval_minutes,
        next_run_time=datetime.now(),
        id="calendar_scrape",
        name="Calendar Scrape",
    )

    # Sweep due notifications every minute
    scheduler.add_job(
        process_due_notifications,
        "interval",
        seconds=settings.notification_sweep_seconds,
        args=[reminders],
        id="notification_sweep",
        name="Notification Sweep",
        max_instances=1,
        coalesce=True,
    )

    # Queue the coming day's digests at midnight
    scheduler.add_job(
        schedule_daily_digests,
        CronTrigger(hour=0, minute=0),
        args=[reminders],
        id="daily_digests",
        name="Daily Digests",
    )

    logger.info("Scheduler configured with jobs")
    return scheduler


def start_scheduler(reminders: Optional[NotificationScheduler] = None) -> BackgroundScheduler:
    scheduler = create_scheduler(reminders or NotificationScheduler())
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
