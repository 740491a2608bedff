"""
Migration core: definitions, registry, checksums and ledger storage.
"""

from schemaledger.core.migrations.exceptions import (
    LedgerError,
    MigrationBodyError,
    MigrationDiscoveryError,
    MigrationError,
)
from schemaledger.core.migrations.migration_models import (
    ChecksumMismatch,
    ExecutionStatus,
    Migration,
    MigrationAction,
    MigrationHistoryEntry,
    MigrationRecord,
    MigrationResult,
    MigrationStatus,
    MigrationStatusReport,
    Procedure,
    Script,
)
from schemaledger.core.migrations.migration_registry import (
    MigrationRegistry,
    define_migration,
    generate_migration_version,
)
from schemaledger.core.migrations.migration_store import MigrationStore
from schemaledger.core.migrations.migration_tracker import MigrationTracker

__all__ = [
    "ChecksumMismatch",
    "ExecutionStatus",
    "LedgerError",
    "Migration",
    "MigrationAction",
    "MigrationBodyError",
    "MigrationDiscoveryError",
    "MigrationError",
    "MigrationHistoryEntry",
    "MigrationRecord",
    "MigrationRegistry",
    "MigrationResult",
    "MigrationStatus",
    "MigrationStatusReport",
    "MigrationStore",
    "MigrationTracker",
    "Procedure",
    "Script",
    "define_migration",
    "generate_migration_version",
]
