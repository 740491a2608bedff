"""
Migration Exceptions
"""


class MigrationError(Exception):
    """Base exception for migration runner errors"""
    pass


class MigrationBodyError(MigrationError):
    """Raised when a migration body is neither script text nor a callable"""
    pass


class MigrationDiscoveryError(MigrationError):
    """Raised when a migrations directory cannot be read"""
    pass


class LedgerError(MigrationError):
    """Raised when the ledger or history tables cannot be created"""
    pass
