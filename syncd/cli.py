import argparse

from loguru import logger

from syncd.config import get_settings
from syncd.db.database import Base, get_sync_engine, get_sync_session
from syncd.scheduler.reminders import NotificationScheduler
from syncd.scrapers.campus import CampusCalendarScraper

settings = get_settings()


def init_database():
    """Create all tables."""
    import syncd.models  # noqa: F401

    Base.metadata.create_all(get_sync_engine())
    logger.info("Database initialized")


def run_scraper(pages: int = None):
    """Run one calendar scrape pass."""
    with get_sync_session() as session:
        scraper = CampusCalendarScraper(session, pages=pages)
        result = scraper.run()
        logger.info(f"Result: {result}")


def run_digests():
    created = NotificationScheduler().schedule_daily_digests()
    logger.info(f"Queued {created} daily digests")


def run_sweep():
    results = NotificationScheduler().process_due_notifications()
    logger.info(f"Sweep results: {results}")


def main():
    parser = argparse.ArgumentParser(description="Syncd backend CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # scrape command
    scrape_parser = subparsers.add_parser("scrape", help="Scrape the campus calendar")
    scrape_parser.add_argument("--pages", "-p", type=int, help="Number of listing pages")

    # notification commands
    subparsers.add_parser("digests", help="Queue the next daily digests")
    subparsers.add_parser("sweep", help="Send due notifications now")

    # serve command
    subparsers.add_parser("serve", help="Start API server")

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "scrape":
        run_scraper(args.pages)
    elif args.command == "digests":
        run_digests()
    elif args.command == "sweep":
        run_sweep()
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "syncd.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
