"""
Tests for MigrationRegistry, migration bodies and checksums
"""
import logging
from datetime import datetime

import pytest

from schemaledger.core.migrations.checksum import compute_checksum
from schemaledger.core.migrations.exceptions import MigrationBodyError, MigrationDiscoveryError
from schemaledger.core.migrations.migration_models import Migration, Procedure, Script
from schemaledger.core.migrations.migration_registry import (
    MigrationRegistry,
    define_migration,
    generate_migration_version,
)


def _migration(version, name="m"):
    return define_migration(version, name, f"CREATE TABLE t{version} (id INTEGER)", f"DROP TABLE t{version}")


class TestMigrationRegistry:
    """Test suite for MigrationRegistry"""

    def test_register_sorts_by_version(self):
        registry = MigrationRegistry()
        registry.register([_migration("003"), _migration("001"), _migration("002")])

        assert [m.version for m in registry] == ["001", "002", "003"]

    def test_register_replaces_previous_contents(self):
        registry = MigrationRegistry([_migration("001"), _migration("002")])
        registry.register([_migration("005")])

        assert [m.version for m in registry.all()] == ["005"]
        assert registry.find("001") is None

    def test_sort_is_plain_string_order(self):
        registry = MigrationRegistry([_migration("10"), _migration("9")])

        # Unpadded numeric versions sort lexicographically.
        assert [m.version for m in registry] == ["10", "9"]

    def test_pending_filters_applied_and_target(self):
        registry = MigrationRegistry([_migration(v) for v in ("001", "002", "003", "004")])

        assert [m.version for m in registry.pending({"002"})] == ["001", "003", "004"]
        assert [m.version for m in registry.pending({"002"}, target_version="003")] == ["001", "003"]

    def test_duplicate_versions_warn_and_first_wins(self, caplog):
        registry = MigrationRegistry()
        with caplog.at_level(logging.WARNING, logger="schemaledger.migrations.registry"):
            registry.register([_migration("001", "first"), _migration("002"), _migration("001", "second")])

        assert "Duplicate migration version 001" in caplog.text
        assert [(m.version, m.name) for m in registry] == [("001", "first"), ("002", "m")]
        assert registry.find("001").name == "first"
        assert [m.name for m in registry.pending(set())] == ["first", "m"]

    def test_discover_reads_up_and_down_files(self, tmp_path):
        (tmp_path / "20240102_add_email.up.sql").write_text("ALTER TABLE users ADD email TEXT")
        (tmp_path / "20240101_create_users.up.sql").write_text("CREATE TABLE users (id INTEGER)")
        (tmp_path / "20240101_create_users.down.sql").write_text("DROP TABLE users")
        (tmp_path / "README.md").write_text("not a migration")
        (tmp_path / "bad_name.sql").write_text("SELECT 1")
        (tmp_path / "20240103_down_only.down.sql").write_text("SELECT 1")

        migrations = MigrationRegistry.discover(str(tmp_path))

        assert [(m.version, m.name) for m in migrations] == [
            ("20240101", "create_users"),
            ("20240102", "add_email"),
        ]
        assert migrations[0].down == Script("DROP TABLE users")
        assert migrations[1].down == Script("")

    def test_discover_accepts_timestamp_versions(self, tmp_path):
        (tmp_path / "20240101_120000_seed.up.sql").write_text("SELECT 1")

        migrations = MigrationRegistry.discover(str(tmp_path))

        assert migrations[0].version == "20240101_120000"
        assert migrations[0].name == "seed"

    def test_discover_missing_directory(self, tmp_path):
        with pytest.raises(MigrationDiscoveryError):
            MigrationRegistry.discover(str(tmp_path / "nope"))


def test_generate_migration_version():
    assert generate_migration_version(datetime(2024, 3, 5, 7, 8, 9)) == "20240305_070809"
    assert len(generate_migration_version()) == 15


def test_bodies_are_wrapped_into_variants():
    async def up(db):
        pass

    migration = Migration(version="001", name="x", up=up, down="DROP TABLE x")

    assert isinstance(migration.up, Procedure)
    assert migration.down == Script("DROP TABLE x")


def test_invalid_body_rejected():
    with pytest.raises(MigrationBodyError):
        Migration(version="001", name="x", up=42, down="")


def test_script_statements_skip_blank_fragments():
    script = Script("CREATE TABLE a (id INTEGER);\n\n; CREATE TABLE b (id INTEGER);  ")

    assert script.statements() == ["CREATE TABLE a (id INTEGER)", "CREATE TABLE b (id INTEGER)"]


def test_script_statements_keep_semicolons_inside_literals():
    script = Script("CREATE TABLE notes (body TEXT); INSERT INTO notes VALUES ('a;b');")

    assert script.statements() == [
        "CREATE TABLE notes (body TEXT)",
        "INSERT INTO notes VALUES ('a;b')",
    ]


class TestChecksum:
    """Test suite for compute_checksum"""

    def test_matches_md5_of_definition(self):
        import hashlib

        migration = define_migration("001", "create", "CREATE TABLE a (id INTEGER)", "DROP TABLE a")
        expected = hashlib.md5(b"001:create:CREATE TABLE a (id INTEGER):DROP TABLE a").hexdigest()

        assert compute_checksum(migration) == expected

    def test_procedure_contributes_placeholder(self):
        def first(db):
            return None

        def second(db):
            raise RuntimeError("different code")

        a = define_migration("001", "proc", first, "DROP TABLE a")
        b = define_migration("001", "proc", second, "DROP TABLE a")

        assert compute_checksum(a) == compute_checksum(b)

    def test_any_field_change_alters_checksum(self):
        base = define_migration("001", "create", "CREATE TABLE a (id INTEGER)", "DROP TABLE a")
        renamed = define_migration("001", "create_a", "CREATE TABLE a (id INTEGER)", "DROP TABLE a")
        new_down = define_migration("001", "create", "CREATE TABLE a (id INTEGER)", "DROP TABLE IF EXISTS a")

        assert compute_checksum(base) != compute_checksum(renamed)
        assert compute_checksum(base) != compute_checksum(new_down)
