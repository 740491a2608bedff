"""
Migration Registry

Holds the migration definitions supplied by the caller, sorted by version.
"""
import logging
import os
import re
from datetime import datetime
from typing import Collection, Dict, List, Optional, Tuple

from schemaledger.core.migrations.exceptions import MigrationDiscoveryError
from schemaledger.core.migrations.migration_models import Migration, MigrationBody

logger = logging.getLogger("schemaledger.migrations.registry")


def define_migration(version: str, name: str, up, down) -> Migration:
    """
    Create a migration definition.

    Args:
        version: Sortable version string, e.g. "20240101" or "20240101_120000"
        name: Human-readable name
        up: SQL text or callable applying the change
        down: SQL text or callable reverting it
    """
    return Migration(version=version, name=name, up=up, down=down)


def generate_migration_version(now: Optional[datetime] = None) -> str:
    """Timestamp version for a new migration: YYYYMMDD_HHMMSS."""
    now = now or datetime.now()
    return now.strftime("%Y%m%d_%H%M%S")


class MigrationRegistry:
    """
    Sorted set of registered migrations.
    """

    # 20240101_create_users.up.sql or 20240101_120000_create_users.down.sql
    MIGRATION_PATTERN = re.compile(r'^(\d+(?:_\d+)?)_([A-Za-z].*)\.(up|down)\.sql$')

    def __init__(self, migrations: Optional[List[Migration]] = None):
        self._migrations: List[Migration] = []
        if migrations:
            self.register(migrations)

    def register(self, migrations: List[Migration]) -> None:
        """
        Replace the registry with ``migrations`` sorted ascending by version.

        For a duplicated version the first one in sorted order is kept and
        the rest are dropped with a warning.
        """
        self._migrations = []
        seen: Dict[str, Migration] = {}

        for migration in sorted(migrations, key=lambda m: m.version):
            kept = seen.get(migration.version)
            if kept is not None:
                logger.warning(
                    f"Duplicate migration version {migration.version}: "
                    f"keeping {kept.name}, ignoring {migration.name}"
                )
                continue
            seen[migration.version] = migration
            self._migrations.append(migration)

        logger.debug(f"Registered {len(self._migrations)} migrations")

    def all(self) -> List[Migration]:
        return list(self._migrations)

    def find(self, version: str) -> Optional[Migration]:
        for migration in self._migrations:
            if migration.version == version:
                return migration
        return None

    def pending(self, applied_versions: Collection[str], target_version: Optional[str] = None) -> List[Migration]:
        """
        Registered migrations not yet applied, in registry order.

        Args:
            applied_versions: Versions with an ``applied`` ledger row
            target_version: If given, only versions <= target_version
        """
        pending = [m for m in self._migrations if m.version not in applied_versions]
        if target_version:
            pending = [m for m in pending if m.version <= target_version]
        return pending

    def __len__(self) -> int:
        return len(self._migrations)

    def __iter__(self):
        return iter(self._migrations)

    @classmethod
    def discover(cls, migrations_dir: str) -> List[Migration]:
        """
        Load migrations from ``<version>_<name>.up.sql`` / ``.down.sql`` files.

        A missing down file yields an empty down script.

        Args:
            migrations_dir: Directory containing the SQL files

        Returns:
            List of Migration objects, sorted by version

        Raises:
            MigrationDiscoveryError: If the directory does not exist
        """
        if not os.path.isdir(migrations_dir):
            raise MigrationDiscoveryError(f"Migrations directory not found: {migrations_dir}")

        bodies: Dict[Tuple[str, str], Dict[str, MigrationBody]] = {}

        for filename in sorted(os.listdir(migrations_dir)):
            if not filename.endswith('.sql'):
                continue

            match = cls.MIGRATION_PATTERN.match(filename)
            if not match:
                logger.warning(f"Skipping file with invalid migration name format: {filename}")
                continue

            version, name, direction = match.groups()
            with open(os.path.join(migrations_dir, filename), 'r') as f:
                bodies.setdefault((version, name), {})[direction] = f.read()

        migrations = []
        for (version, name), parts in bodies.items():
            if "up" not in parts:
                logger.warning(f"Skipping {version}_{name}: no .up.sql file")
                continue
            migrations.append(Migration(version=version, name=name, up=parts["up"], down=parts.get("down", "")))

        migrations.sort(key=lambda m: m.version)
        logger.info(f"Discovered {len(migrations)} migrations from {migrations_dir}")
        return migrations
