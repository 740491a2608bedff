"""
Migration Models

Data models for migration definitions, ledger rows, history entries and
execution results.
"""
import inspect
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union

import sqlparse
from databases import Database
from pydantic import BaseModel, Field

from schemaledger.core.migrations.exceptions import MigrationBodyError


# ============================================================================
# Enums
# ============================================================================

class MigrationStatus(str, Enum):
    """Ledger status of a migration version."""
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


class MigrationAction(str, Enum):
    """Direction a migration body is executed in."""
    UP = "up"
    DOWN = "down"


class ExecutionStatus(str, Enum):
    """Outcome of a single execution attempt."""
    SUCCESS = "success"
    FAILED = "failed"


# ============================================================================
# Migration bodies
# ============================================================================

ProcedureCallback = Callable[[Database], Union[Awaitable[None], None]]

PROCEDURE_CHECKSUM_TOKEN = "[function]"


@dataclass(frozen=True)
class Script:
    """Literal SQL script text, executed statement by statement."""
    text: str

    @property
    def checksum_content(self) -> str:
        return self.text

    def statements(self) -> List[str]:
        # sqlparse respects quoting, so 'a;b' stays inside its statement.
        statements = (stmt.strip().rstrip(";").strip() for stmt in sqlparse.split(self.text))
        return [stmt for stmt in statements if stmt]

    async def execute(self, database: Database) -> None:
        for statement in self.statements():
            await database.execute(statement)


@dataclass(frozen=True)
class Procedure:
    """Callable invoked with the database handle inside the transaction."""
    callback: ProcedureCallback

    @property
    def checksum_content(self) -> str:
        return PROCEDURE_CHECKSUM_TOKEN

    async def execute(self, database: Database) -> None:
        result = self.callback(database)
        if inspect.isawaitable(result):
            await result


MigrationBody = Union[Script, Procedure]


def as_body(value: Any) -> MigrationBody:
    """
    Wrap raw script text or a callable into a migration body.

    Raises:
        MigrationBodyError: If value is neither
    """
    if isinstance(value, (Script, Procedure)):
        return value
    if isinstance(value, str):
        return Script(value)
    if callable(value):
        return Procedure(value)
    raise MigrationBodyError(
        f"Migration body must be SQL text or a callable, got {type(value).__name__}"
    )


@dataclass(frozen=True)
class Migration:
    """
    A versioned, reversible schema change.

    ``up`` and ``down`` accept SQL text or a callable and are normalised to
    Script / Procedure on construction.
    """
    version: str
    name: str
    up: MigrationBody
    down: MigrationBody = field(default_factory=lambda: Script(""))

    def __post_init__(self):
        object.__setattr__(self, "up", as_body(self.up))
        object.__setattr__(self, "down", as_body(self.down))

    def body(self, action: MigrationAction) -> MigrationBody:
        return self.up if action == MigrationAction.UP else self.down

    def __str__(self) -> str:
        return f"Migration({self.version}_{self.name})"


# ============================================================================
# Persisted rows
# ============================================================================

class MigrationRecord(BaseModel):
    """One ledger row per migration version."""
    version: str
    name: str
    applied_at: Optional[datetime] = None
    execution_time_ms: int = 0
    checksum: str
    status: MigrationStatus
    error_message: Optional[str] = None


class MigrationHistoryEntry(BaseModel):
    """Append-only record of one execution attempt."""
    id: int
    version: str
    name: str
    action: MigrationAction
    status: ExecutionStatus
    execution_time_ms: int
    error_message: Optional[str] = None
    executed_at: Optional[datetime] = None
    executed_by: str = "system"


# ============================================================================
# Runner inputs / outputs
# ============================================================================

class MigrationResult(BaseModel):
    version: str
    name: str
    success: bool
    execution_time_ms: int = 0
    error: Optional[str] = None


class PendingMigrationSummary(BaseModel):
    version: str
    name: str


class AppliedMigrationSummary(BaseModel):
    version: str
    name: str
    applied_at: Optional[datetime] = None


class MigrationStatusReport(BaseModel):
    current_version: Optional[str] = None
    pending_count: int = 0
    applied_count: int = 0
    pending_migrations: List[PendingMigrationSummary] = Field(default_factory=list)
    applied_migrations: List[AppliedMigrationSummary] = Field(default_factory=list)


class ChecksumMismatch(BaseModel):
    version: str
    expected: str
    actual: str
