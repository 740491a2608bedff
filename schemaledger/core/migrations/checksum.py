"""
Migration Checksums

Content hashes used to detect drift between a migration's current
definition and the one recorded when it was applied.
"""
import hashlib

from schemaledger.core.migrations.migration_models import Migration


def compute_checksum(migration: Migration) -> str:
    """
    Compute the checksum of a migration definition.

    The hashed content is ``version:name:up:down``. Procedure bodies
    contribute a fixed placeholder, so editing a procedure's code is not
    detected as drift.

    Args:
        migration: Migration to hash

    Returns:
        MD5 hex digest
    """
    content = (
        f"{migration.version}:{migration.name}:"
        f"{migration.up.checksum_content}:{migration.down.checksum_content}"
    )
    return hashlib.md5(content.encode("utf-8")).hexdigest()
