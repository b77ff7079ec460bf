"""Append-only profile history storage.

Every fetch inserts a new row; nothing is ever updated. The "latest per
account" view is derived from the history on read, so there is no separate
current-state table that could drift out of sync with it.
"""

import logging

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from exceptions import StorageError
from models.account import Account
from models.profile_data import ProfileData
from models.profile_snapshot import ProfileSnapshot

logger = logging.getLogger(__name__)


def _to_profile_data(display_name: str, row: ProfileSnapshot) -> ProfileData:
    return ProfileData(
        owner=display_name,
        timestamp=row.timestamp,
        rank=row.rank or 0,
        upload=row.upload or "",
        current_upload=row.current_upload or "",
        current_download=row.current_download or "",
        points=row.points or 0,
        seeding_count=row.seeding_count or 0,
    )


class SnapshotStore:
    """Persistence and queries for profile snapshots."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append(self, profile: ProfileData, account_id: int) -> None:
        """Insert one snapshot row for the given account.

        Raises:
            StorageError: If the account doesn't exist or the insert fails
        """
        async with self._session_factory() as db:
            db.add(
                ProfileSnapshot(
                    user_id=account_id,
                    timestamp=profile.timestamp,
                    rank=profile.rank,
                    upload=profile.upload,
                    current_upload=profile.current_upload,
                    current_download=profile.current_download,
                    points=profile.points,
                    seeding_count=profile.seeding_count,
                )
            )
            try:
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                raise StorageError(f"Error executing insert for {profile.owner}: {e}") from e

        logger.info(f"Profile for {profile.owner} logged successfully to database.")

    async def latest_per_account(self) -> list[ProfileData]:
        """Return the most recent snapshot of every account that has one.

        Picks the max timestamp per account; if two rows share that timestamp
        the one inserted last wins, so there is always exactly one row each.
        """
        latest_ts = (
            select(
                ProfileSnapshot.user_id,
                func.max(ProfileSnapshot.timestamp).label("max_ts"),
            )
            .group_by(ProfileSnapshot.user_id)
            .subquery()
        )
        latest_id = (
            select(func.max(ProfileSnapshot.id).label("id"))
            .select_from(ProfileSnapshot)
            .join(
                latest_ts,
                and_(
                    ProfileSnapshot.user_id == latest_ts.c.user_id,
                    ProfileSnapshot.timestamp == latest_ts.c.max_ts,
                ),
            )
            .group_by(ProfileSnapshot.user_id)
            .subquery()
        )
        query = (
            select(Account.display_name, ProfileSnapshot)
            .select_from(ProfileSnapshot)
            .join(latest_id, ProfileSnapshot.id == latest_id.c.id)
            .join(Account, ProfileSnapshot.user_id == Account.id)
            .order_by(Account.display_name)
        )

        try:
            async with self._session_factory() as db:
                result = await db.execute(query)
                return [_to_profile_data(name, row) for name, row in result.all()]
        except SQLAlchemyError as e:
            logger.error(f"Error querying latest profiles: {e}")
            raise StorageError("Could not read latest profiles from database") from e

    async def history_for(self, display_name: str) -> list[ProfileData]:
        """Return all snapshots for one account, oldest first.

        Unknown accounts and accounts without data both yield an empty list.
        """
        query = (
            select(Account.display_name, ProfileSnapshot)
            .select_from(ProfileSnapshot)
            .join(Account, ProfileSnapshot.user_id == Account.id)
            .where(Account.display_name == display_name)
            .order_by(ProfileSnapshot.timestamp.asc(), ProfileSnapshot.id.asc())
        )

        try:
            async with self._session_factory() as db:
                result = await db.execute(query)
                return [_to_profile_data(name, row) for name, row in result.all()]
        except SQLAlchemyError as e:
            logger.error(f"Error querying history for {display_name}: {e}")
            raise StorageError("Could not read history from database") from e
