"""
schemaledger

Versioned, reversible schema migrations with a checksummed ledger and an
append-only execution history.
"""

from schemaledger.core.migrations import (
    ChecksumMismatch,
    Migration,
    MigrationAction,
    MigrationHistoryEntry,
    MigrationRecord,
    MigrationRegistry,
    MigrationResult,
    MigrationStatus,
    MigrationStatusReport,
    MigrationStore,
    MigrationTracker,
    Procedure,
    Script,
    define_migration,
    generate_migration_version,
)
from schemaledger.modules.config import MigrationConfig
from schemaledger.modules.migration_service import MigrationService
from schemaledger.services.database import ConnectionManager, MigrationRunner

__all__ = [
    "ChecksumMismatch",
    "ConnectionManager",
    "Migration",
    "MigrationAction",
    "MigrationConfig",
    "MigrationHistoryEntry",
    "MigrationRecord",
    "MigrationRegistry",
    "MigrationResult",
    "MigrationRunner",
    "MigrationService",
    "MigrationStatus",
    "MigrationStatusReport",
    "MigrationStore",
    "MigrationTracker",
    "Procedure",
    "Script",
    "define_migration",
    "generate_migration_version",
]
