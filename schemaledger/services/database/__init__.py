from schemaledger.services.database.connection_manager import ConnectionManager
from schemaledger.services.database.migration_runner import MigrationRunner

__all__ = ["ConnectionManager", "MigrationRunner"]
