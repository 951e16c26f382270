"""Polling Stake for new bets with APScheduler."""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from betstreak.config import Settings
from betstreak.services.stake import StakeError
from betstreak.storage import StorageUnavailable
from betstreak.tracker import BetStreakTracker, CheckResult, open_tracker

logger = logging.getLogger(__name__)

JOB_ID = "bet-check"


async def run_check(settings: Settings) -> CheckResult:
    """Run one new-bet check against the configured state file."""
    async with open_tracker(settings) as tracker:
        return await tracker.check_for_new_bet()


class BetCheckPoller:
    """Runs the new-bet check on an interval against one tracker.

    The job runs in the caller's event loop, so it shares the tracker's lock
    with any API requests served by the same process.
    """

    def __init__(self, tracker: BetStreakTracker, interval_seconds: int):
        self.tracker = tracker
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
            },
        )

    @property
    def running(self) -> bool:
        return self.scheduler.running

    async def check_once(self) -> CheckResult | None:
        """Scheduled job: one check, failures logged and left for the next tick."""
        try:
            result = await self.tracker.check_for_new_bet()
        except (StorageUnavailable, StakeError) as e:
            logger.error(f"Scheduled bet check failed: {e}")
            return None

        if result.new_bet and result.bet is not None:
            logger.info(f"Scheduled check recorded bet {result.bet.id}")
        else:
            logger.debug(f"Scheduled check: {result.message}")
        return result

    def start(self) -> None:
        """Register the job and start the scheduler. Needs a running event loop."""
        self.scheduler.add_job(
            self.check_once,
            IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            name="Stake: New Bet Check",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(f"Registered job: New Bet Check (every {self.interval_seconds}s)")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("✓ Scheduler stopped")


async def watch(settings: Settings) -> None:
    """Poll until cancelled."""
    async with open_tracker(settings) as tracker:
        poller = BetCheckPoller(tracker, settings.scheduler.check_interval_seconds)
        poller.start()
        logger.info("✓ Scheduler started. Press Ctrl+C to stop")
        try:
            await asyncio.Event().wait()
        finally:
            poller.stop()
