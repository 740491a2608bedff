"""
Apply pending migrations from MIGRATIONS_DIR against DATABASE_URL.
"""
import asyncio
import logging
import os

from dotenv import load_dotenv

from schemaledger.core.migrations.migration_registry import MigrationRegistry
from schemaledger.modules.config import MigrationConfig
from schemaledger.services.database.connection_manager import ConnectionManager
from schemaledger.services.database.migration_runner import MigrationRunner

logger = logging.getLogger("schemaledger.run")


async def main(database_url: str = None, migrations_dir: str = None) -> bool:
    load_dotenv()
    migrations_dir = migrations_dir or os.getenv("MIGRATIONS_DIR", "migrations")

    async with ConnectionManager(database_url) as database:
        runner = await MigrationRunner.create(
            database,
            MigrationConfig.from_env(),
            MigrationRegistry.discover(migrations_dir),
        )
        results = await runner.run_pending()

    failed = [r for r in results if not r.success]
    if failed:
        logger.error(f"Migration {failed[0].version} failed: {failed[0].error}")
        return False

    logger.info(f"Applied {len(results)} migration(s)")
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    ok = asyncio.run(main())
    raise SystemExit(0 if ok else 1)
