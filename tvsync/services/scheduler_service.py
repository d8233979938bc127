import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from tvsync.config import settings
from tvsync.services.sync_types import SyncResult


logger = logging.getLogger(__name__)

class SyncScheduler:
    """Scheduler for periodic channel/category refresh"""

    def __init__(self, sync_job: Callable[[], Awaitable[list[SyncResult]]]):
        self.scheduler: AsyncIOScheduler | None = None
        self._sync_job = sync_job

    async def _run_sync_job(self) -> None:
        """Background job that refreshes every kind with the active credential"""
        logger.info("Scheduled sync triggered")
        try:
            results = await self._sync_job()
            for result in results:
                if result.status == "failed":
                    logger.error(f"Scheduled {result.kind.value} sync failed: {result.error}")
        except Exception as e:
            logger.error(f"Exception in scheduled sync: {e}", exc_info=True)

    def start(self, cron: str | None = None) -> None:
        """Start the scheduler with the sync job"""
        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        cron = cron or settings.sync_cron
        try:
            trigger = CronTrigger.from_crontab(cron)
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", cron, exc)
            raise

        self.scheduler = AsyncIOScheduler(timezone='UTC')
        self.scheduler.add_job(
            self._run_sync_job,
            trigger=trigger,
            id='channel_sync',
            max_instances=1,
            coalesce=True,
            misfire_grace_time=settings.sync_misfire_grace_sec
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next sync: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")
            self.scheduler = None

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled sync time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job('channel_sync')
        return job.next_run_time if job else None
