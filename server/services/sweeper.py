"""
Expiry sweeper - periodically drops expired entries from an ExpiringStore.
Uses APScheduler to run the sweep on an interval.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from server.services.cache import ExpiringStore
from server.utils import safe_func_wrapper


class ExpirySweeper:
    """Interval job that runs ExpiringStore.cleanup_expired."""

    def __init__(self, store: ExpiringStore, interval_minutes: int = 5):
        self.store = store
        self.interval_minutes = interval_minutes
        self.scheduler: AsyncIOScheduler | None = None
        self._is_running = False

    @safe_func_wrapper
    async def sweep_job(self) -> int:
        """Sweep task"""
        removed = await self.store.cleanup_expired()
        if removed:
            logger.info(f"Expiry sweep removed {removed} entries")
        return removed

    def start(self) -> None:
        """Start the scheduler. Must be called with a running event loop."""
        if self._is_running:
            logger.warning("Expiry sweeper is already running")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.sweep_job,
            trigger="interval",
            minutes=self.interval_minutes,
            id="expiry_sweep_job",
            name="Confirmation Code Sweeper",
            replace_existing=True,
        )
        self.scheduler.start()
        self._is_running = True

        logger.info(
            f"Expiry sweeper started: sweeping every {self.interval_minutes} minutes"
        )

    def stop(self) -> None:
        """Stop the scheduler."""
        if not self._is_running or self.scheduler is None:
            logger.warning("Expiry sweeper is not running")
            return

        self.scheduler.shutdown(wait=False)
        self.scheduler = None
        self._is_running = False
        logger.info("Expiry sweeper stopped")

    def is_running(self) -> bool:
        return self._is_running

    async def sweep_now(self) -> int:
        """Run one sweep immediately (manual trigger)."""
        removed = await self.store.cleanup_expired()
        logger.info(f"Manual expiry sweep removed {removed} entries")
        return removed
