"""
Database Connection Manager

Scoped connection for a migration run. The runner is handed the open
Database and never connects or disconnects it itself.
"""
import logging
import os
from typing import Optional

from databases import Database
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger("schemaledger.database.connection")


class ConnectionManager:
    """
    ``async with ConnectionManager(url) as database:`` opens the database
    for the block and closes it afterwards, also on error.
    """

    def __init__(self, database_url: Optional[str] = None):
        """
        Args:
            database_url: Database URL. Falls back to the DATABASE_URL env var.
        """
        database_url = database_url or os.getenv("DATABASE_URL")
        if not database_url:
            raise ValueError("DATABASE_URL must be set either as parameter or environment variable")

        self.database = Database(database_url)

    async def __aenter__(self) -> Database:
        await self.database.connect()
        logger.info(f"Connected to {self.database.url.dialect} database for migrations")
        return self.database

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.database.disconnect()
        logger.info("Migration database connection closed")
