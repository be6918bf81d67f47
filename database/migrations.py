"""Database initialization and migrations."""

import logging
from pathlib import Path
from typing import Optional

import aiosqlite

import config
from database.models import ALL_TABLES, CREATE_INDEXES

logger = logging.getLogger(__name__)


async def initialize_database(db_path: Optional[str] = None):
    """Initialize database with all tables and indexes."""
    db_path = db_path or config.DATABASE_PATH

    # Create data directory if it doesn't exist
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async with aiosqlite.connect(db_path) as db:
        for table_sql in ALL_TABLES:
            await db.execute(table_sql)

        for index_sql in CREATE_INDEXES:
            await db.execute(index_sql)

        await db.commit()
    logger.info("Database initialized at %s", db_path)
