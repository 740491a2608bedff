"""
Migration Runner

Executes registered migrations forward and in reverse, tracking state in
the schema ledger and every attempt in the history log.
"""
import logging
import time
from typing import List, Optional

from databases import Database

from schemaledger.core.migrations.checksum import compute_checksum
from schemaledger.core.migrations.migration_models import (
    AppliedMigrationSummary,
    ChecksumMismatch,
    ExecutionStatus,
    Migration,
    MigrationAction,
    MigrationHistoryEntry,
    MigrationRecord,
    MigrationResult,
    MigrationStatusReport,
    PendingMigrationSummary,
)
from schemaledger.core.migrations.migration_registry import MigrationRegistry
from schemaledger.core.migrations.migration_store import MigrationStore
from schemaledger.core.migrations.migration_tracker import MigrationTracker
from schemaledger.modules.config import MigrationConfig

_PYTHON_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class MigrationRunner:
    """
    Applies and rolls back versioned migrations.

    The runner never opens or closes connections and does no locking; run
    one instance at a time per ledger.
    """

    def __init__(self, store: MigrationStore, config: Optional[MigrationConfig] = None):
        """
        Initialize migration runner.

        Tables are not created here; use ``create()`` or await
        ``ensure_tables()`` before running.

        Args:
            store: Ledger/history storage
            config: Runner configuration
        """
        self.store = store
        self.config = config or MigrationConfig()
        self.registry = MigrationRegistry()
        self.logger = self.config.logger or logging.getLogger("schemaledger.migrations.runner")

    @classmethod
    async def create(cls, database: Database, config: Optional[MigrationConfig] = None,
                     migrations: Optional[List[Migration]] = None) -> "MigrationRunner":
        """
        Build a runner on a connected Database and create its tables.

        Args:
            database: Connected, transaction-capable Database
            config: Runner configuration
            migrations: Optional initial registry contents
        """
        config = config or MigrationConfig()
        runner = cls(MigrationTracker(database, config), config)
        await runner.ensure_tables()
        if migrations:
            runner.register_migrations(migrations)
        return runner

    async def ensure_tables(self) -> None:
        await self.store.ensure_tables()

    def _log(self, level: str, message: str) -> None:
        if self.config.allows(level):
            self.logger.log(_PYTHON_LEVELS[level], f"[migrations] {message}")

    # ========================================================================
    # Registry
    # ========================================================================

    def register_migrations(self, migrations: List[Migration]) -> None:
        """Replace the registered migrations (not additive)."""
        self.registry.register(migrations)
        self._log("debug", f"Registered {len(self.registry)} migration(s)")

    # ========================================================================
    # Status & verification
    # ========================================================================

    async def get_status(self) -> MigrationStatusReport:
        """
        Summarise applied and pending migrations.

        ``current_version`` is the highest applied version, or None.
        """
        applied = await self.store.get_applied()
        applied_versions = {record.version for record in applied}
        pending = self.registry.pending(applied_versions)

        return MigrationStatusReport(
            current_version=applied[-1].version if applied else None,
            pending_count=len(pending),
            applied_count=len(applied),
            pending_migrations=[
                PendingMigrationSummary(version=m.version, name=m.name) for m in pending
            ],
            applied_migrations=[
                AppliedMigrationSummary(version=r.version, name=r.name, applied_at=r.applied_at)
                for r in applied
            ],
        )

    async def verify_checksums(self) -> List[ChecksumMismatch]:
        """
        Compare stored checksums of applied migrations with their current
        definitions.

        Applied versions missing from the registry are skipped; see
        ``find_orphaned()``.
        """
        mismatches = []
        for record in await self.store.get_applied():
            migration = self.registry.find(record.version)
            if migration is None:
                continue

            actual = compute_checksum(migration)
            if actual != record.checksum:
                self._log("warn", f"Checksum mismatch for {record.version}: expected {record.checksum}, got {actual}")
                mismatches.append(ChecksumMismatch(version=record.version, expected=record.checksum, actual=actual))

        return mismatches

    async def find_orphaned(self) -> List[MigrationRecord]:
        """Applied ledger rows whose migration is no longer registered."""
        return [
            record for record in await self.store.get_applied()
            if self.registry.find(record.version) is None
        ]

    async def get_history(self, limit: int = 50) -> List[MigrationHistoryEntry]:
        """Up to ``limit`` history entries, most recent first."""
        return await self.store.get_history(limit)

    # ========================================================================
    # Execution
    # ========================================================================

    async def run_migration(self, migration: Migration, action: MigrationAction,
                            dry_run: bool = False) -> MigrationResult:
        """
        Execute one migration body in its own transaction and record the
        outcome.

        Failures of the body are returned as unsuccessful results. A failed
        ``down`` leaves the ledger row untouched; only history records it.
        """
        start = time.perf_counter()
        applying = action == MigrationAction.UP

        self._log("info", f"{'Applying' if applying else 'Rolling back'} migration: {migration.version} - {migration.name}")

        if dry_run:
            self._log("info", f"[DRY RUN] Would {'apply' if applying else 'rollback'} {migration.version}")
            return MigrationResult(version=migration.version, name=migration.name, success=True, execution_time_ms=0)

        try:
            await self.store.execute_body(migration.body(action))
        except Exception as e:
            execution_time = _elapsed_ms(start)
            error_message = str(e) or type(e).__name__
            self._log("error", f"Migration {migration.version} {action.value} failed: {error_message}")

            await self.store.append_history(migration, action, ExecutionStatus.FAILED, execution_time, error_message)
            if applying:
                await self.store.record_failed(migration, compute_checksum(migration), execution_time, error_message)

            return MigrationResult(
                version=migration.version,
                name=migration.name,
                success=False,
                execution_time_ms=execution_time,
                error=error_message,
            )

        execution_time = _elapsed_ms(start)

        if applying:
            await self.store.record_applied(migration, compute_checksum(migration), execution_time)
        else:
            await self.store.record_rolled_back(migration.version)

        await self.store.append_history(migration, action, ExecutionStatus.SUCCESS, execution_time)

        self._log("info", f"Migration {migration.version} {'applied' if applying else 'rolled back'} in {execution_time}ms")

        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=True,
            execution_time_ms=execution_time,
        )

    async def run_pending(self, target_version: Optional[str] = None, dry_run: bool = False) -> List[MigrationResult]:
        """
        Apply pending migrations in ascending version order.

        Stops at the first failure; later migrations are not attempted.

        Args:
            target_version: Only apply versions <= target_version
            dry_run: Report what would run without executing or recording
        """
        results: List[MigrationResult] = []
        applied_versions = {record.version for record in await self.store.get_applied()}
        pending = self.registry.pending(applied_versions, target_version)

        if not pending:
            self._log("info", "No pending migrations to run")
            return results

        self._log("info", f"Running {len(pending)} pending migration(s)...")

        for migration in pending:
            result = await self.run_migration(migration, MigrationAction.UP, dry_run)
            results.append(result)

            if not result.success:
                self._log("error", f"Migration {migration.version} failed: {result.error}")
                break

        return results

    async def run_up(self, version: str, dry_run: bool = False) -> MigrationResult:
        """
        Apply a single migration by exact version.

        An unknown version returns a failed result without touching storage.
        """
        migration = self.registry.find(version)
        if migration is None:
            self._log("warn", f"Migration {version} not found")
            return MigrationResult(
                version=version,
                name="Unknown",
                success=False,
                execution_time_ms=0,
                error=f"Migration {version} not found",
            )

        return await self.run_migration(migration, MigrationAction.UP, dry_run)

    async def rollback(self, target_version: Optional[str] = None, dry_run: bool = False) -> List[MigrationResult]:
        """
        Roll back applied migrations, most recent first.

        Without ``target_version`` only the latest applied migration is
        rolled back; with it, every applied version > target_version.
        Applied versions missing from the registry are skipped with a
        warning. Stops at the first failure.
        """
        results: List[MigrationResult] = []
        applied = await self.store.get_applied()

        if not applied:
            self._log("info", "No migrations to rollback")
            return results

        if target_version:
            to_rollback = [record for record in applied if record.version > target_version]
        else:
            to_rollback = [applied[-1]]

        to_rollback.reverse()

        self._log("info", f"Rolling back {len(to_rollback)} migration(s)...")

        for record in to_rollback:
            migration = self.registry.find(record.version)
            if migration is None:
                self._log("warn", f"Migration {record.version} not found in registry, skipping")
                continue

            result = await self.run_migration(migration, MigrationAction.DOWN, dry_run)
            results.append(result)

            if not result.success:
                self._log("error", f"Rollback {migration.version} failed: {result.error}")
                break

        return results
