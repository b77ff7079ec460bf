"""Background profile fetcher.

Uses APScheduler to run one fetch cycle across all tracked accounts on a
fixed interval. This job is the only writer to the profile history: accounts
are processed one at a time, and a failure for one account is logged and
skipped without affecting the others.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from exceptions import SourceFetchError, StorageError
from models.account import Account
from services.account_registry import AccountRegistry
from services.ncore_client import NcoreClient
from services.profile_parser import parse_profile
from services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

JOB_ID = "ncore_profile_fetch"


@dataclass
class CycleReport:
    """Outcome of one fetch cycle."""

    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    cancelled: bool = False


class IngestionScheduler:
    """Runs fetch cycles on an interval until stopped.

    Cancellation is checked while waiting for the next cycle (the APScheduler
    timer is shut down) and between accounts inside a running cycle. A fetch
    that is already in flight is allowed to finish.
    """

    def __init__(
        self,
        registry: AccountRegistry,
        client: NcoreClient,
        store: SnapshotStore,
        interval_hours: float = 24,
        pause_seconds: float = 2,
        grace_seconds: float = 5,
    ):
        self.registry = registry
        self.client = client
        self.store = store
        self.interval_hours = interval_hours
        self.pause_seconds = pause_seconds
        self.grace_seconds = grace_seconds

        self._scheduler: AsyncIOScheduler | None = None
        self._stopping = asyncio.Event()
        self._cycle_task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Start the scheduler; the first cycle runs immediately."""
        if self.running:
            logger.info("Profile fetcher already running")
            return

        self._stopping.clear()
        self._scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
        self._scheduler.add_job(
            self._run_scheduled_cycle,
            trigger=IntervalTrigger(hours=self.interval_hours),
            id=JOB_ID,
            name="Fetch nCore profile stats",
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(f"Starting background profile fetcher (every {self.interval_hours}h)...")

    async def stop(self) -> None:
        """Stop scheduling cycles and wait a bounded time for the current one."""
        self._stopping.set()
        if self.running:
            # No new cycles from here on
            self._scheduler.pause()

        task = self._cycle_task
        if task is not None and not task.done():
            done, _ = await asyncio.wait({task}, timeout=self.grace_seconds)
            if not done:
                logger.warning(
                    f"Fetch cycle did not finish within {self.grace_seconds}s, cancelling it"
                )

        if self._scheduler is not None:
            # Runs on a later loop turn and cancels a job that is still pending
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})

        logger.info("Stopping background profile fetcher.")

    async def _run_scheduled_cycle(self) -> None:
        self._cycle_task = asyncio.current_task()
        try:
            await self.run_cycle()
        finally:
            self._cycle_task = None

    async def _pause(self) -> bool:
        """Sleep between accounts. Returns True if cancelled while sleeping."""
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=self.pause_seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def fetch_and_log(self, account: Account) -> None:
        """Fetch, parse and store one account's profile."""
        doc = await self.client.fetch_profile(account)
        profile = parse_profile(doc, account.display_name)
        await self.store.append(profile, account.id)

    async def run_cycle(self) -> CycleReport:
        """Fetch every tracked account once, in registry order."""
        report = CycleReport()

        try:
            accounts = await self.registry.list()
        except StorageError as e:
            logger.error(f"Could not get users to fetch: {e}")
            return report

        if not accounts:
            logger.info("No users in database to fetch. Use the --add-user flag to add one.")
            return report

        logger.info(f"Starting profile fetch for {len(accounts)} user(s).")
        for i, account in enumerate(accounts):
            if self._stopping.is_set() or (i > 0 and await self._pause()):
                logger.info("Fetch cycle interrupted by shutdown.")
                report.cancelled = True
                break

            try:
                await self.fetch_and_log(account)
            except SourceFetchError as e:
                logger.error(f"Error fetching profile for {account.display_name}: {e}")
                report.failed.append(account.display_name)
            except StorageError as e:
                logger.error(f"Error logging profile to DB for {account.display_name}: {e}")
                report.failed.append(account.display_name)
            except Exception as e:
                logger.exception(f"Unexpected error processing {account.display_name}: {e}")
                report.failed.append(account.display_name)
            else:
                report.succeeded.append(account.display_name)

        logger.info(
            f"Profile fetch cycle complete: {len(report.succeeded)} ok, {len(report.failed)} failed."
        )
        return report
