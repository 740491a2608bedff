"""
Shared fixtures: a file-backed SQLite database per test and a runner on it.
"""
import pytest
from databases import Database

from schemaledger.core.migrations.migration_registry import define_migration
from schemaledger.services.database.migration_runner import MigrationRunner


@pytest.fixture
async def database(tmp_path):
    """Connected SQLite database in a temp directory."""
    db = Database(f"sqlite:///{tmp_path / 'migrations.db'}")
    await db.connect()
    yield db
    await db.disconnect()


@pytest.fixture
async def runner(database):
    """Runner with its ledger and history tables created."""
    return await MigrationRunner.create(database)


@pytest.fixture
def sample_migrations():
    """Four simple, independent migrations."""
    return [
        define_migration(
            f"2024010{i}",
            f"create_table_{i}",
            f"CREATE TABLE t{i} (id INTEGER PRIMARY KEY)",
            f"DROP TABLE t{i}",
        )
        for i in range(1, 5)
    ]


async def table_exists(database: Database, table: str) -> bool:
    row = await database.fetch_one(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = :name",
        {"name": table},
    )
    return row is not None


async def count_rows(database: Database, table: str) -> int:
    return await database.fetch_val(f"SELECT COUNT(*) FROM {table}")
