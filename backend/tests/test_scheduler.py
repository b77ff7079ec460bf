"""Tests for the background profile fetcher."""

import asyncio

import pytest

from exceptions import StorageError
from services.scheduler import IngestionScheduler


@pytest.fixture
def scheduler(registry, ncore_client, store):
    return IngestionScheduler(registry, ncore_client, store, pause_seconds=0, grace_seconds=1)


class FlakyStore:
    """Store that fails appends for one owner."""

    def __init__(self, store, failing_owner):
        self.store = store
        self.failing_owner = failing_owner

    async def append(self, profile, account_id):
        if profile.owner == self.failing_owner:
            raise StorageError("database is locked")
        await self.store.append(profile, account_id)


class TestRunCycle:
    async def test_fetches_every_account(self, scheduler, registry, store, pages, profile_page):
        await registry.add("Alice", "1")
        await registry.add("Bob", "2")
        pages["1"] = profile_page(points="1 000", rank="5.")
        pages["2"] = profile_page(points="2 000", rank="3.")

        report = await scheduler.run_cycle()

        assert report.succeeded == ["Alice", "Bob"]
        assert report.failed == []
        assert not report.cancelled
        latest = {p.owner: p for p in await store.latest_per_account()}
        assert latest["Alice"].points == 1000
        assert latest["Bob"].rank == 3

    async def test_empty_registry(self, scheduler, store):
        report = await scheduler.run_cycle()

        assert report.succeeded == []
        assert report.failed == []
        assert await store.latest_per_account() == []

    async def test_fetch_error_does_not_stop_cycle(self, scheduler, registry, store, pages, profile_page):
        await registry.add("Alice", "1")
        await registry.add("Bob", "2")
        await registry.add("Carol", "3")
        pages["1"] = profile_page()
        pages["2"] = 500
        pages["3"] = profile_page()

        report = await scheduler.run_cycle()

        assert report.succeeded == ["Alice", "Carol"]
        assert report.failed == ["Bob"]
        assert [p.owner for p in await store.latest_per_account()] == ["Alice", "Carol"]
        # No placeholder row for the failed fetch
        assert await store.history_for("Bob") == []

    async def test_storage_error_does_not_stop_cycle(self, registry, ncore_client, store, pages, profile_page):
        await registry.add("Alice", "1")
        await registry.add("Bob", "2")
        pages["1"] = profile_page()
        pages["2"] = profile_page()
        scheduler = IngestionScheduler(registry, ncore_client, FlakyStore(store, "Alice"), pause_seconds=0)

        report = await scheduler.run_cycle()

        assert report.failed == ["Alice"]
        assert report.succeeded == ["Bob"]
        assert [p.owner for p in await store.latest_per_account()] == ["Bob"]

    async def test_second_cycle_appends_history(self, scheduler, registry, store, pages, profile_page):
        await registry.add("Alice", "1")
        pages["1"] = profile_page(points="1 000")
        await scheduler.run_cycle()
        pages["1"] = profile_page(points="1 500")
        await scheduler.run_cycle()

        history = await store.history_for("Alice")

        assert [p.points for p in history] == [1000, 1500]


class TestCancellation:
    async def test_stop_between_accounts(self, registry, ncore_client, store, pages, profile_page):
        await registry.add("Alice", "1")
        await registry.add("Bob", "2")
        pages["1"] = profile_page()
        pages["2"] = profile_page()

        class StoppingClient:
            """Requests shutdown while the first fetch is in flight."""

            def __init__(self, inner):
                self.inner = inner
                self.scheduler = None

            async def fetch_profile(self, account):
                await self.scheduler.stop()
                return await self.inner.fetch_profile(account)

        client = StoppingClient(ncore_client)
        scheduler = IngestionScheduler(registry, client, store, pause_seconds=0)
        client.scheduler = scheduler

        report = await scheduler.run_cycle()

        # In-flight fetch completes, the next account is skipped
        assert report.succeeded == ["Alice"]
        assert report.cancelled
        assert [p.owner for p in await store.latest_per_account()] == ["Alice"]

    async def test_stop_interrupts_pause(self, registry, ncore_client, store, pages, profile_page):
        await registry.add("Alice", "1")
        await registry.add("Bob", "2")
        pages["1"] = profile_page()
        pages["2"] = profile_page()
        scheduler = IngestionScheduler(registry, ncore_client, store, pause_seconds=60)

        async def stop_soon():
            await asyncio.sleep(0.2)
            await scheduler.stop()

        stopper = asyncio.create_task(stop_soon())
        report = await asyncio.wait_for(scheduler.run_cycle(), timeout=5)
        await stopper

        assert report.succeeded == ["Alice"]
        assert report.cancelled


class TestLifecycle:
    async def test_start_runs_first_cycle_immediately(self, scheduler, registry, store, pages, profile_page):
        await registry.add("Alice", "1")
        pages["1"] = profile_page(points="1 000")

        scheduler.start()
        try:
            assert scheduler.running
            for _ in range(100):
                if await store.latest_per_account():
                    break
                await asyncio.sleep(0.05)
        finally:
            await scheduler.stop()

        assert not scheduler.running
        [latest] = await store.latest_per_account()
        assert latest.points == 1000

    async def test_restart_after_stop_runs_again(self, scheduler, registry, store, pages, profile_page):
        await registry.add("Alice", "1")
        pages["1"] = profile_page()

        async def wait_for_rows(count):
            for _ in range(100):
                if len(await store.history_for("Alice")) >= count:
                    return
                await asyncio.sleep(0.05)

        scheduler.start()
        await wait_for_rows(1)
        await scheduler.stop()
        assert not scheduler.running

        scheduler.start()
        try:
            assert scheduler.running
            await wait_for_rows(2)
        finally:
            await scheduler.stop()

        assert len(await store.history_for("Alice")) == 2

    async def test_no_cycles_after_stop(self, scheduler, registry, store, pages, profile_page):
        await registry.add("Alice", "1")
        pages["1"] = profile_page()

        await scheduler.stop()
        report = await scheduler.run_cycle()

        assert report.cancelled
        assert report.succeeded == []
        assert await store.history_for("Alice") == []

    async def test_stop_without_start(self, scheduler):
        await scheduler.stop()

        assert not scheduler.running
