"""APScheduler job that polls the gateway for changes made elsewhere."""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from dietsync.services.sync_engine import SyncEngine

logger = logging.getLogger(__name__)

POLL_JOB_ID = "sync_poll"


class SyncPoller:
    """Runs ``engine.poll()`` on a fixed interval while sessions are open."""

    def __init__(self, engine: SyncEngine, interval: Optional[float] = None):
        self.engine = engine
        self.interval = interval or engine.poll_interval
        self.scheduler = AsyncIOScheduler()

    def start(self) -> None:
        """Start polling. Must be called with an event loop running."""
        self.scheduler.add_job(
            self._poll,
            IntervalTrigger(seconds=self.interval),
            id=POLL_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Sync poller started ({self.interval}s interval)")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Sync poller stopped")

    @property
    def running(self) -> bool:
        return self.scheduler.running

    async def _poll(self) -> None:
        if not self.engine.active_users():
            return
        await self.engine.poll()
