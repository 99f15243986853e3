"""
Background worker with scheduled jobs.
Handles payment housekeeping for the workshop backend.
"""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from worker.config import settings
from worker.jobs.overdue_payment_job import mark_overdue_payments

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()

    # Schedule overdue payment job
    scheduler.add_job(
        mark_overdue_payments,
        trigger=CronTrigger.from_crontab(settings.OVERDUE_CRON_SCHEDULE),
        id="overdue_payments",
        name="Mark overdue payments",
        replace_existing=True,
    )
    return scheduler


async def main():
    """Initialize and run the worker scheduler."""
    logger.info("Starting workshop worker...")

    scheduler = build_scheduler()

    # Start scheduler
    scheduler.start()
    logger.info(f"Scheduler started. Jobs: {[job.id for job in scheduler.get_jobs()]}")

    # Keep the worker running
    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down worker...")
        scheduler.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
