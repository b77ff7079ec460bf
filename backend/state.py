"""Runtime context shared by the fetcher, the admin command and the HTTP handlers.

Built once at startup and passed around explicitly instead of living in
module globals.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from config import Settings
from database import create_engine, create_session_factory, init_schema
from services.account_registry import AccountRegistry
from services.ncore_client import NcoreClient
from services.scheduler import IngestionScheduler
from services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    registry: AccountRegistry
    store: SnapshotStore
    client: NcoreClient
    scheduler: IngestionScheduler

    async def close(self) -> None:
        """Stop the fetcher and release network and database resources."""
        await self.scheduler.stop()
        await self.client.aclose()
        await self.engine.dispose()


async def build_state(settings: Settings, client: NcoreClient | None = None) -> AppState:
    """Open the database, create the schema and wire up the services."""
    engine = create_engine(settings.database_url)
    await init_schema(engine)
    session_factory = create_session_factory(engine)

    registry = AccountRegistry(session_factory)
    store = SnapshotStore(session_factory)
    if client is None:
        client = NcoreClient(
            settings.ncore_nick,
            settings.ncore_pass,
            timeout=settings.request_timeout,
        )
    scheduler = IngestionScheduler(
        registry,
        client,
        store,
        interval_hours=settings.fetch_interval_hours,
        pause_seconds=settings.fetch_pause_seconds,
        grace_seconds=settings.shutdown_grace_seconds,
    )

    return AppState(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        registry=registry,
        store=store,
        client=client,
        scheduler=scheduler,
    )
