"""Catalog of tracked accounts."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from exceptions import ConflictError, StorageError
from models.account import Account

logger = logging.getLogger(__name__)


class AccountRegistry:
    """Adds and lists tracked accounts.

    Accounts are only ever created from the admin command, never by the fetcher.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def add(self, display_name: str, profile_id: str) -> Account:
        """Insert a new account.

        Raises:
            ConflictError: If the display name is already tracked
            StorageError: If the insert fails for any other reason
        """
        async with self._session_factory() as db:
            account = Account(display_name=display_name, profile_id=profile_id)
            db.add(account)
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise ConflictError(f"User '{display_name}' already exists") from e
            except SQLAlchemyError as e:
                await db.rollback()
                raise StorageError(f"Failed to add user {display_name}: {e}") from e

        logger.info(f"User '{display_name}' with profile ID '{profile_id}' added successfully.")
        return account

    async def list(self) -> list[Account]:
        """Return all tracked accounts in insertion order."""
        try:
            async with self._session_factory() as db:
                result = await db.execute(select(Account).order_by(Account.id))
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Error querying users: {e}") from e
