"""Task scheduler for automated jobs."""

from datetime import datetime
from typing import Callable, Dict, Any
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .config import settings
from .database import AsyncSessionLocal
from .logging import get_logger

logger = get_logger(__name__)


class TaskScheduler:
    """Scheduler for automated background tasks."""

    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self.jobs: Dict[str, Any] = {}

    def start(self):
        """Start the scheduler."""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")

    def add_interval_job(
        self,
        func: Callable,
        job_id: str,
        hours: int = 1,
        minutes: int = 0,
        **kwargs
    ):
        """Add a job that runs at fixed intervals."""
        trigger = IntervalTrigger(hours=hours, minutes=minutes)
        job = self.scheduler.add_job(
            func,
            trigger=trigger,
            id=job_id,
            replace_existing=True,
            **kwargs
        )
        self.jobs[job_id] = job
        logger.info("Added interval job: %s (every %sh %sm)", job_id, hours, minutes)
        return job

    def get_jobs(self) -> list:
        """Get all scheduled jobs."""
        return self.scheduler.get_jobs()


# Task implementations

async def task_purge_expired_sessions(session_factory=AsyncSessionLocal) -> int:
    """Delete expired sign-in sessions and used or stale reset codes."""
    from ..services.auth_service import AuthService

    logger.info("Purging expired sessions...")

    async with session_factory() as db:
        removed = await AuthService(db).purge_expired()
        await db.commit()

    logger.info("[%s] Session purge complete. Removed %d expired sessions.", datetime.now(), removed)
    return removed


def setup_scheduled_tasks(scheduler: TaskScheduler):
    """Setup all scheduled tasks based on configuration."""

    scheduler.add_interval_job(
        task_purge_expired_sessions,
        job_id="session_purge",
        hours=settings.auth.purge_interval_hours
    )

    logger.info("All scheduled tasks configured")


# Global scheduler instance
task_scheduler = TaskScheduler()
