"""
Background scheduler for the daily habit reset.
The job runs every minute and does work only once per effective day.
"""
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from levelup.database import SessionLocal
from levelup.services.reset_service import ResetService

logger = logging.getLogger("levelup.scheduler")

scheduler = AsyncIOScheduler()


async def run_daily_reset():
    """Job: reset daily habits once the day start time has passed"""
    db = SessionLocal()
    try:
        ResetService(db).reset_daily_habits()
    except Exception as e:
        logger.error(f"Scheduler Error (Daily Reset): {e}")
    finally:
        db.close()


def start_scheduler():
    """Start the scheduler"""
    if not scheduler.running:
        scheduler.add_job(
            run_daily_reset,
            CronTrigger(minute='*'),
            id='daily_reset',
            replace_existing=True
        )
        scheduler.start()
        logger.info(f"Scheduler started. Jobs: {[job.id for job in scheduler.get_jobs()]}")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
