"""
Migration Store

Storage contract for the schema ledger and history log. The runner only
talks to this interface, so alternate storage engines can plug in.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from schemaledger.core.migrations.migration_models import (
    ExecutionStatus,
    Migration,
    MigrationAction,
    MigrationBody,
    MigrationHistoryEntry,
    MigrationRecord,
)


class MigrationStore(ABC):
    """
    Ledger (one row per version) plus append-only history log.
    """

    @abstractmethod
    async def ensure_tables(self) -> None:
        """Create the ledger and history tables if they don't exist."""

    @abstractmethod
    async def execute_body(self, body: MigrationBody) -> None:
        """
        Run a migration body inside a single transaction.

        Any exception aborts the transaction and propagates.
        """

    @abstractmethod
    async def get_applied(self) -> List[MigrationRecord]:
        """Ledger rows with status ``applied``, ascending by version."""

    @abstractmethod
    async def get_record(self, version: str) -> Optional[MigrationRecord]:
        """
        Ledger row for a version, regardless of status.

        Not used by the runner itself; lets callers and tests inspect
        failed or rolled-back rows, which get_applied() filters out.
        """

    @abstractmethod
    async def record_applied(self, migration: Migration, checksum: str, execution_time_ms: int) -> None:
        """Upsert the ledger row as ``applied``."""

    @abstractmethod
    async def record_failed(self, migration: Migration, checksum: str, execution_time_ms: int,
                            error_message: str) -> None:
        """Upsert the ledger row as ``failed``."""

    @abstractmethod
    async def record_rolled_back(self, version: str) -> None:
        """Set an existing ledger row's status to ``rolled_back``."""

    @abstractmethod
    async def append_history(self, migration: Migration, action: MigrationAction, status: ExecutionStatus,
                             execution_time_ms: int, error_message: Optional[str] = None) -> None:
        """Append one history entry."""

    @abstractmethod
    async def get_history(self, limit: int = 50) -> List[MigrationHistoryEntry]:
        """Most recent history entries first."""
