#!/usr/bin/env python3
"""Import tracked users and history from the old JSON data files.

Reads profiles.json ({"DisplayName": "profileId", ...}) and data.json (list of
profile snapshots) and inserts everything in a single transaction. If any
insert fails, nothing is imported.

Usage:
    python scripts/import_legacy_json.py [--profiles ./data/profiles.json]
        [--history ./data/data.json] [--database-path ./data]
"""

import argparse
import asyncio
import json
import logging
import re
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import DB_FILENAME, setup_logging
from database import create_engine, create_session_factory, init_schema
from models import Account, ProfileData, ProfileSnapshot

logger = logging.getLogger("import_legacy_json")

PROGRESS_EVERY = 100

# Go writes nanosecond timestamps; Python keeps microseconds
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


def load_history_record(record: dict) -> ProfileData:
    timestamp = record.get("timestamp")
    if isinstance(timestamp, str):
        record = {**record, "timestamp": _EXTRA_FRACTION.sub(r"\1", timestamp)}
    return ProfileData.model_validate(record)


async def import_legacy(
    session_factory: async_sessionmaker[AsyncSession],
    profiles: dict[str, str],
    history: list[dict],
) -> tuple[int, int]:
    """Insert users and their history in one transaction.

    History records whose owner is not in profiles are skipped.

    Returns:
        (users imported, history records imported)
    """
    imported = 0
    async with session_factory() as db:
        async with db.begin():
            display_name_to_id: dict[str, int] = {}

            logger.info("Migrating users to the database...")
            for name, profile_id in profiles.items():
                account = Account(display_name=name, profile_id=str(profile_id))
                db.add(account)
                await db.flush()
                display_name_to_id[name] = account.id
                logger.info(f"  > Migrated user: {name} (New DB ID: {account.id})")

            logger.info("Migrating profile history to the database...")
            for i, record in enumerate(history):
                data = load_history_record(record)
                user_id = display_name_to_id.get(data.owner)
                if user_id is None:
                    logger.warning(
                        f"Skipping history record for '{data.owner}' as they were not found in profiles.json."
                    )
                    continue

                db.add(
                    ProfileSnapshot(
                        user_id=user_id,
                        timestamp=data.timestamp,
                        rank=data.rank,
                        upload=data.upload,
                        current_upload=data.current_upload,
                        current_download=data.current_download,
                        points=data.points,
                        seeding_count=data.seeding_count,
                    )
                )
                imported += 1
                if (i + 1) % PROGRESS_EVERY == 0:
                    await db.flush()
                    logger.info(f"  > Migrated {i + 1} history records...")

    return len(display_name_to_id), imported


async def run(profiles_file: Path, history_file: Path, database_path: Path) -> tuple[int, int]:
    profiles = json.loads(profiles_file.read_text(encoding="utf-8"))
    history = json.loads(history_file.read_text(encoding="utf-8"))

    engine = create_engine(f"sqlite+aiosqlite:///{database_path / DB_FILENAME}")
    try:
        await init_schema(engine)
        return await import_legacy(create_session_factory(engine), profiles, history)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--profiles", type=Path, default=Path("./data/profiles.json"),
                        help="JSON object mapping display name to profile id")
    parser.add_argument("--history", type=Path, default=Path("./data/data.json"),
                        help="JSON array of profile snapshots")
    parser.add_argument("--database-path", type=Path, default=Path("./data"),
                        help=f"Folder of the {DB_FILENAME} database")
    args = parser.parse_args(argv)

    setup_logging("info")
    logger.info("Starting data migration...")
    users, records = asyncio.run(run(args.profiles, args.history, args.database_path))
    print(f"\nMigration completed: {users} users, {records} history records.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
