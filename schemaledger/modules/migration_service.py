"""
Migration Service

Caller-facing facade over a MigrationRunner. Returns plain dicts ready to
be serialised by whatever transport exposes them.
"""
import logging
from typing import Any, Dict, Optional

from schemaledger.services.database.migration_runner import MigrationRunner

logger = logging.getLogger("schemaledger.migrations.service")


class MigrationService:
    """
    Run / rollback / status / verify with dry-run previews.
    """

    def __init__(self, runner: MigrationRunner):
        self.runner = runner

    async def status(self) -> Dict[str, Any]:
        report = await self.runner.get_status()
        return report.model_dump()

    async def run(self, target_version: Optional[str] = None, dry_run: bool = False) -> Dict[str, Any]:
        """
        Apply pending migrations, or preview them when ``dry_run`` is set.
        """
        if dry_run:
            report = await self.runner.get_status()
            would_run = [
                m.model_dump() for m in report.pending_migrations
                if not target_version or m.version <= target_version
            ]
            return {
                "success": True,
                "dry_run": True,
                "would_run": would_run,
                "count": len(would_run),
            }

        results = await self.runner.run_pending(target_version=target_version)
        success = all(r.success for r in results)
        if not success:
            logger.error(f"Migration run stopped after {len(results)} attempt(s)")

        return {
            "success": success,
            "dry_run": False,
            "results": [r.model_dump() for r in results],
            "count": len(results),
        }

    async def rollback(self, target_version: Optional[str] = None, dry_run: bool = False) -> Dict[str, Any]:
        """
        Roll back to ``target_version`` (or the previous version), or preview it.
        """
        if dry_run:
            report = await self.runner.get_status()
            applied = report.applied_migrations
            if target_version:
                would_rollback = [m for m in applied if m.version > target_version]
            else:
                would_rollback = applied[-1:]
            would_rollback.reverse()

            return {
                "success": True,
                "dry_run": True,
                "would_rollback": [m.model_dump() for m in would_rollback],
                "target_version": target_version or ("previous" if applied else None),
            }

        results = await self.runner.rollback(target_version=target_version)
        success = all(r.success for r in results)
        if not success:
            logger.error(f"Rollback stopped after {len(results)} attempt(s)")

        return {
            "success": success,
            "dry_run": False,
            "results": [r.model_dump() for r in results],
            "count": len(results),
        }

    async def history(self, limit: int = 50) -> Dict[str, Any]:
        entries = await self.runner.get_history(limit)
        return {"entries": [e.model_dump() for e in entries], "count": len(entries)}

    async def verify(self) -> Dict[str, Any]:
        """Drift report: checksum mismatches plus applied-but-unregistered versions."""
        mismatches = await self.runner.verify_checksums()
        orphaned = await self.runner.find_orphaned()
        return {
            "valid": not mismatches,
            "mismatches": [m.model_dump() for m in mismatches],
            "orphaned": [r.version for r in orphaned],
        }
