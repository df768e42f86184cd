"""
Form Engine Scheduler - Background Maintenance Service

Runs APScheduler for the periodic store maintenance jobs:
- Stale auto-saved draft cleanup (daily)

This process MUST run as a single instance because the jobs should not run
in parallel across multiple instances.
"""

import asyncio
import logging
import signal
import sys

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from formengine.config import get_settings
from formengine.core.database import close_db, init_db
from formengine.jobs.schedulers.draft_cleanup import cleanup_stale_drafts

logger = logging.getLogger(__name__)


class Scheduler:
    """Background scheduler service."""

    def __init__(self):
        self.settings = get_settings()
        self.running = False
        self._shutdown_event = asyncio.Event()
        self._scheduler: AsyncIOScheduler | None = None

    async def start(self) -> None:
        """Start the scheduler and block until shutdown."""
        self.running = True
        logger.info("Starting Form Engine Scheduler...")
        logger.info(f"Environment: {self.settings.environment}")

        logger.info("Initializing database connection...")
        await init_db()
        logger.info("Database connection established")

        self._start_scheduler()

        logger.info("Form Engine Scheduler started")
        logger.info("Running... (Ctrl+C to stop)")

        await self._shutdown_event.wait()

    def _start_scheduler(self) -> None:
        """Start APScheduler with all scheduled jobs."""
        scheduler = AsyncIOScheduler()

        misfire_options = {
            "misfire_grace_time": 60 * 10,  # 10 minute grace period
            "coalesce": True,  # Combine missed runs into one
        }

        scheduler.add_job(
            cleanup_stale_drafts,
            CronTrigger(hour=self.settings.draft_cleanup_hour, minute=0),
            id="draft_cleanup",
            name="Cleanup stale auto-saved drafts",
            replace_existing=True,
            **misfire_options,
        )
        logger.info(
            f"Draft cleanup scheduled daily at {self.settings.draft_cleanup_hour:02d}:00 UTC "
            f"(retention {self.settings.draft_retention_days} days)"
        )

        scheduler.start()
        self._scheduler = scheduler

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        logger.info("Stopping Form Engine Scheduler...")
        self.running = False

        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            logger.info("APScheduler stopped")

        await close_db()
        logger.info("Database connections closed")

        self._shutdown_event.set()
        logger.info("Form Engine Scheduler stopped")

    def handle_signal(self, signum: int, frame) -> None:
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, initiating shutdown...")
        asyncio.create_task(self.stop())


async def main() -> None:
    """Main entry point."""
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Suppress noisy third-party loggers
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    scheduler = Scheduler()

    def make_handler(s: signal.Signals) -> None:
        scheduler.handle_signal(int(s), None)

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, make_handler, signal.SIGINT)
    loop.add_signal_handler(signal.SIGTERM, make_handler, signal.SIGTERM)

    try:
        await scheduler.start()
    except Exception as e:
        logger.error(f"Scheduler error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
