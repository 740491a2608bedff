"""
Migration Configuration

Runner settings, optionally loaded from the environment / .env file.
"""
import logging
import os
import re
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

LogLevel = Literal["silent", "error", "warn", "info", "debug"]

LOG_LEVELS = ["silent", "error", "warn", "info", "debug"]

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class MigrationConfig(BaseModel):
    """
    Settings for a MigrationRunner.

    ``logger`` replaces the runner's default logger; ``log_level`` filters
    which runner messages reach it.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    table_name: str = "schema_migrations"
    history_table_name: str = "migration_history"
    log_level: LogLevel = "info"
    executed_by: str = "system"
    logger: Optional[logging.Logger] = None

    @field_validator("table_name", "history_table_name")
    @classmethod
    def _valid_identifier(cls, value: str) -> str:
        # Table names are interpolated into DDL, so only plain identifiers.
        if not IDENTIFIER_PATTERN.match(value):
            raise ValueError(f"Invalid table name: {value!r}")
        return value

    @classmethod
    def from_env(cls, **overrides) -> "MigrationConfig":
        """
        Build a config from MIGRATIONS_* environment variables.

        Keyword overrides win over the environment.
        """
        load_dotenv()

        values = {}
        env_map = {
            "table_name": "MIGRATIONS_TABLE",
            "history_table_name": "MIGRATIONS_HISTORY_TABLE",
            "log_level": "MIGRATIONS_LOG_LEVEL",
            "executed_by": "MIGRATIONS_EXECUTED_BY",
        }
        for field_name, env_var in env_map.items():
            value = os.getenv(env_var)
            if value:
                values[field_name] = value

        values.update(overrides)
        return cls(**values)

    def allows(self, level: str) -> bool:
        """True if a message at ``level`` passes the configured log level."""
        return LOG_LEVELS.index(level) <= LOG_LEVELS.index(self.log_level)
