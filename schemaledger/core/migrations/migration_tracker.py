"""
Migration Tracker

Persists the schema ledger and the migration history log through a
``databases.Database`` connection.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from databases import Database

from schemaledger.core.migrations.exceptions import LedgerError
from schemaledger.core.migrations.migration_models import (
    ExecutionStatus,
    Migration,
    MigrationAction,
    MigrationBody,
    MigrationHistoryEntry,
    MigrationRecord,
    MigrationStatus,
)
from schemaledger.core.migrations.migration_store import MigrationStore
from schemaledger.modules.config import MigrationConfig

logger = logging.getLogger("schemaledger.migrations.tracker")

RECORD_COLUMNS = list(MigrationRecord.model_fields)
HISTORY_COLUMNS = list(MigrationHistoryEntry.model_fields)
RECORD_SELECT = ", ".join(RECORD_COLUMNS)
HISTORY_SELECT = ", ".join(HISTORY_COLUMNS)

# PostgreSQL and SQLite only: the ledger upsert uses ON CONFLICT ... EXCLUDED.
AUTO_ID_COLUMNS = {
    "postgresql": "id SERIAL PRIMARY KEY",
    "sqlite": "id INTEGER PRIMARY KEY AUTOINCREMENT",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_values(row, columns: List[str]) -> dict:
    # Positional access works across databases/SQLAlchemy record types.
    return {column: row[i] for i, column in enumerate(columns)}


class MigrationTracker(MigrationStore):
    """
    Ledger and history tables backed by a connected Database.
    """

    def __init__(self, database: Database, config: Optional[MigrationConfig] = None):
        """
        Initialize migration tracker.

        Args:
            database: Connected Database instance
            config: Table names and executed_by default
        """
        self.database = database
        self.config = config or MigrationConfig()
        self.table = self.config.table_name
        self.history_table = self.config.history_table_name

    def _id_column(self) -> str:
        dialect = self.database.url.dialect
        if dialect not in AUTO_ID_COLUMNS:
            raise LedgerError(f"Unsupported database dialect for migration tables: {dialect}")
        return AUTO_ID_COLUMNS[dialect]

    async def ensure_tables(self) -> None:
        """
        Create the ledger and history tables if they don't exist.
        """
        statements = [
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                version VARCHAR(255) PRIMARY KEY,
                name VARCHAR(255) NOT NULL,
                applied_at TEXT DEFAULT CURRENT_TIMESTAMP,
                execution_time_ms INTEGER NOT NULL,
                checksum VARCHAR(64) NOT NULL,
                status VARCHAR(20) NOT NULL
                    CHECK (status IN ('pending', 'applied', 'failed', 'rolled_back')),
                error_message TEXT
            )
            """,
            f"""
            CREATE TABLE IF NOT EXISTS {self.history_table} (
                {self._id_column()},
                version VARCHAR(255) NOT NULL,
                name VARCHAR(255) NOT NULL,
                action VARCHAR(10) NOT NULL CHECK (action IN ('up', 'down')),
                status VARCHAR(10) NOT NULL CHECK (status IN ('success', 'failed')),
                execution_time_ms INTEGER NOT NULL,
                error_message TEXT,
                executed_at TEXT DEFAULT CURRENT_TIMESTAMP,
                executed_by VARCHAR(255) DEFAULT 'system'
            )
            """,
        ]

        try:
            for stmt in statements:
                await self.database.execute(stmt)
            logger.debug(f"Migration tables {self.table}, {self.history_table} created/verified")
        except Exception as e:
            logger.error(f"Failed to create migration tracking tables: {e}")
            raise LedgerError(f"Failed to create migration tracking tables: {e}") from e

    async def execute_body(self, body: MigrationBody) -> None:
        async with self.database.transaction():
            await body.execute(self.database)

    async def get_applied(self) -> List[MigrationRecord]:
        query = f"""
        SELECT {RECORD_SELECT} FROM {self.table}
        WHERE status = :status
        ORDER BY version ASC
        """
        rows = await self.database.fetch_all(query, {"status": MigrationStatus.APPLIED.value})
        return [self._to_record(row) for row in rows]

    async def get_record(self, version: str) -> Optional[MigrationRecord]:
        query = f"SELECT {RECORD_SELECT} FROM {self.table} WHERE version = :version"
        row = await self.database.fetch_one(query, {"version": version})
        return self._to_record(row) if row is not None else None

    async def _upsert(self, migration: Migration, checksum: str, execution_time_ms: int,
                      status: MigrationStatus, error_message: Optional[str]) -> None:
        query = f"""
        INSERT INTO {self.table}
            (version, name, applied_at, execution_time_ms, checksum, status, error_message)
        VALUES (:version, :name, :applied_at, :execution_time_ms, :checksum, :status, :error_message)
        ON CONFLICT (version)
        DO UPDATE SET
            name = EXCLUDED.name,
            applied_at = EXCLUDED.applied_at,
            execution_time_ms = EXCLUDED.execution_time_ms,
            checksum = EXCLUDED.checksum,
            status = EXCLUDED.status,
            error_message = EXCLUDED.error_message
        """
        await self.database.execute(query, {
            "version": migration.version,
            "name": migration.name,
            "applied_at": _now(),
            "execution_time_ms": execution_time_ms,
            "checksum": checksum,
            "status": status.value,
            "error_message": error_message,
        })

    async def record_applied(self, migration: Migration, checksum: str, execution_time_ms: int) -> None:
        await self._upsert(migration, checksum, execution_time_ms, MigrationStatus.APPLIED, None)
        logger.debug(f"Ledger: {migration.version} -> applied")

    async def record_failed(self, migration: Migration, checksum: str, execution_time_ms: int,
                            error_message: str) -> None:
        await self._upsert(migration, checksum, execution_time_ms, MigrationStatus.FAILED, error_message)
        logger.debug(f"Ledger: {migration.version} -> failed")

    async def record_rolled_back(self, version: str) -> None:
        query = f"UPDATE {self.table} SET status = :status WHERE version = :version"
        await self.database.execute(query, {
            "status": MigrationStatus.ROLLED_BACK.value,
            "version": version,
        })
        logger.debug(f"Ledger: {version} -> rolled_back")

    async def append_history(self, migration: Migration, action: MigrationAction, status: ExecutionStatus,
                             execution_time_ms: int, error_message: Optional[str] = None) -> None:
        query = f"""
        INSERT INTO {self.history_table}
            (version, name, action, status, execution_time_ms, error_message, executed_at, executed_by)
        VALUES (:version, :name, :action, :status, :execution_time_ms, :error_message, :executed_at, :executed_by)
        """
        await self.database.execute(query, {
            "version": migration.version,
            "name": migration.name,
            "action": action.value,
            "status": status.value,
            "execution_time_ms": execution_time_ms,
            "error_message": error_message,
            "executed_at": _now(),
            "executed_by": self.config.executed_by,
        })

    async def get_history(self, limit: int = 50) -> List[MigrationHistoryEntry]:
        query = f"""
        SELECT {HISTORY_SELECT} FROM {self.history_table}
        ORDER BY executed_at DESC, id DESC
        LIMIT :limit
        """
        rows = await self.database.fetch_all(query, {"limit": limit})
        return [MigrationHistoryEntry(**_row_values(row, HISTORY_COLUMNS)) for row in rows]

    @staticmethod
    def _to_record(row) -> MigrationRecord:
        return MigrationRecord(**_row_values(row, RECORD_COLUMNS))
