"""Tests for TenantMigrationSweep.

Uses FakeEngine connections whose catalog probes are answered from the
declarative table set, so drift is simulated by leaving pieces out.
"""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from strakly.core.exceptions import MigrationError
from strakly.core.tenant import tenant_schema_name
from strakly.models.catalog import TENANT_INDEXES, TENANT_TABLES
from strakly.services.tenant_migrations import (
    SchemaMigrationResult,
    SweepReport,
    TenantMigrationSweep,
)

from tests.conftest import FakeConnection, FakeEngine


def catalog_responses(
    *,
    drop_tables: set[str] = frozenset(),
    drop_columns: set[str] = frozenset(),
    drop_indexes: set[str] = frozenset(),
    plan_count: int = 3,
    schemas: list[str] | None = None,
) -> dict[str, list[tuple]]:
    """Canned probe answers for a schema matching the catalog minus the given pieces."""
    tables = [(t.name,) for t in TENANT_TABLES if t.name not in drop_tables]
    columns = [
        (t.name, c.name)
        for t in TENANT_TABLES
        if t.name not in drop_tables
        for c in t.columns
        if f"{t.name}.{c.name}" not in drop_columns
    ]
    indexes = [
        (ix.name,)
        for ix in TENANT_INDEXES
        if ix.name not in drop_indexes and ix.table.name not in drop_tables
    ]
    return {
        "information_schema.schemata": [(s,) for s in (schemas or [])],
        "information_schema.tables": tables,
        "information_schema.columns": columns,
        "pg_indexes": indexes,
        "count(*)": [(plan_count,)],
    }


def _engine(**kwargs) -> FakeEngine:
    responses = catalog_responses(**kwargs)
    return FakeEngine(lambda: FakeConnection(responses=responses))


# ── Single schema ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_up_to_date_schema_is_a_no_op(make_settings):
    engine = _engine()
    sweep = TenantMigrationSweep(engine, make_settings())

    result = await sweep.migrate_schema("tenant_7")

    assert result.ok
    assert not result.changed
    conn = engine.last
    assert not conn.executed("ALTER TABLE")
    assert not conn.executed("CREATE TABLE")
    assert not conn.executed("CREATE INDEX")
    assert not conn.executed("INSERT INTO")
    assert "commit" in conn.events


@pytest.mark.asyncio
async def test_missing_column_added_from_migration_list(make_settings):
    engine = _engine(drop_columns={"users.role", "attendance.branch_id"})
    sweep = TenantMigrationSweep(engine, make_settings())

    result = await sweep.migrate_schema("tenant_7")

    assert result.added_columns == ["users.role", "attendance.branch_id"]
    assert engine.last.executed(
        "ALTER TABLE tenant_7.users ADD COLUMN IF NOT EXISTS role VARCHAR(50) DEFAULT 'client' NOT NULL"
    )
    assert engine.last.executed("ALTER TABLE tenant_7.attendance ADD COLUMN IF NOT EXISTS branch_id INTEGER")


@pytest.mark.asyncio
async def test_unlisted_missing_column_not_altered(make_settings):
    engine = _engine(drop_columns={"users.bio"})
    sweep = TenantMigrationSweep(engine, make_settings())

    result = await sweep.migrate_schema("tenant_7")

    assert result.ok
    assert result.added_columns == []
    assert not engine.last.executed("ALTER TABLE")


@pytest.mark.asyncio
async def test_missing_tables_and_their_indexes_created(make_settings):
    engine = _engine(drop_tables={"facilities", "membership_facilities", "wearable_data"})
    sweep = TenantMigrationSweep(engine, make_settings())

    result = await sweep.migrate_schema("tenant_7")

    assert set(result.created_tables) == {"facilities", "membership_facilities", "wearable_data"}
    assert result.created_tables.index("facilities") < result.created_tables.index("membership_facilities")
    assert "idx_facilities_code" in result.created_indexes
    assert "idx_membership_facilities_facility" in result.created_indexes
    assert "idx_wearable_data_recorded" in result.created_indexes
    assert "idx_users_email" not in result.created_indexes

    conn = engine.last
    assert conn.options["schema_translate_map"] == {"tenant": "tenant_7"}
    assert conn.executed("CREATE TABLE IF NOT EXISTS tenant.facilities")
    # tables before their indexes
    statements = conn.statements
    table_at = next(i for i, s in enumerate(statements) if "CREATE TABLE IF NOT EXISTS tenant.facilities" in s)
    index_at = next(i for i, s in enumerate(statements) if "idx_facilities_code" in s)
    assert table_at < index_at


@pytest.mark.asyncio
async def test_missing_index_on_existing_table_created(make_settings):
    engine = _engine(drop_indexes={"idx_memberships_dates"})
    sweep = TenantMigrationSweep(engine, make_settings())

    result = await sweep.migrate_schema("tenant_7")

    assert result.created_tables == []
    assert result.created_indexes == ["idx_memberships_dates"]


@pytest.mark.asyncio
async def test_empty_plans_reseeded(make_settings):
    engine = _engine(plan_count=0)
    sweep = TenantMigrationSweep(engine, make_settings())

    result = await sweep.migrate_schema("tenant_7")

    assert result.seeded_rows == 3
    assert engine.last.executed("INSERT INTO tenant.plans")


@pytest.mark.asyncio
async def test_schema_locked_and_lock_timeout_set(make_settings):
    engine = _engine()
    sweep = TenantMigrationSweep(engine, make_settings(MIGRATION_LOCK_TIMEOUT_MS=1500))

    await sweep.migrate_schema("tenant_7")

    statements = engine.last.statements
    assert "pg_advisory_xact_lock" in statements[0]
    assert statements[1] == "SET LOCAL lock_timeout = 1500"


@pytest.mark.asyncio
async def test_failure_wrapped_and_rolled_back(make_settings):
    responses = catalog_responses(drop_columns={"users.role"})
    boom = RuntimeError("relation is locked")
    engine = FakeEngine(lambda: FakeConnection(responses=responses, failures={"ALTER TABLE": boom}))
    sweep = TenantMigrationSweep(engine, make_settings())

    with pytest.raises(MigrationError) as exc_info:
        await sweep.migrate_schema("tenant_7")

    assert exc_info.value.schema_name == "tenant_7"
    assert exc_info.value.cause is boom
    assert "rollback" in engine.last.events
    assert "commit" not in engine.last.events


# ── Sweep ───────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_sweep_discovers_from_catalog_only(make_settings):
    engine = _engine(schemas=["tenant_1", "tenant_2", "tenant_backup"])
    sweep = TenantMigrationSweep(engine, make_settings())

    report = await sweep.migrate_all()

    assert report.discovered == ["tenant_1", "tenant_2"]
    assert [r.schema_name for r in report.results] == ["tenant_1", "tenant_2"]
    assert report.summary == "2 of 2 schemas migrated"


@pytest.mark.asyncio
async def test_sweep_reaches_every_provisionable_tenant(make_settings):
    negative = tenant_schema_name(-5)
    engine = _engine(schemas=[negative, "tenant_3"])
    sweep = TenantMigrationSweep(engine, make_settings())

    report = await sweep.migrate_all()

    assert report.discovered == [negative, "tenant_3"]
    assert report.summary == "2 of 2 schemas migrated"


@pytest.mark.asyncio
async def test_one_failing_schema_does_not_block_others(make_settings):
    engine = _engine(schemas=["tenant_1", "tenant_2", "tenant_3"])
    sweep = TenantMigrationSweep(engine, make_settings())
    original = sweep._migrate

    async def flaky(conn, schema_name):
        if schema_name == "tenant_2":
            raise RuntimeError("simulated catalog error")
        return await original(conn, schema_name)

    with patch.object(sweep, "_migrate", side_effect=flaky):
        report = await sweep.migrate_all()

    assert report.migrated == 2
    assert report.summary == "2 of 3 schemas migrated"
    assert [f.schema_name for f in report.failures] == ["tenant_2"]
    assert report.failures[0].error == "simulated catalog error"
    assert {r.schema_name for r in report.results if r.ok} == {"tenant_1", "tenant_3"}


@pytest.mark.asyncio
async def test_sweep_respects_concurrency_limit(make_settings):
    engine = _engine(schemas=[f"tenant_{i}" for i in range(10)])
    sweep = TenantMigrationSweep(engine, make_settings(MIGRATION_CONCURRENCY=3))
    running = 0
    peak = 0

    async def tracked(schema_name):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return SchemaMigrationResult(schema_name=schema_name)

    with patch.object(sweep, "migrate_schema", side_effect=tracked):
        report = await sweep.migrate_all()

    assert report.migrated == 10
    assert 1 < peak <= 3


@pytest.mark.asyncio
async def test_second_sweep_reports_no_changes(make_settings):
    engine = _engine(schemas=["tenant_7"])
    sweep = TenantMigrationSweep(engine, make_settings())

    report = await sweep.migrate_all()

    assert not any(r.changed for r in report.results)


def test_empty_sweep_summary():
    report = SweepReport(discovered=[], results=[])
    assert report.summary == "0 of 0 schemas migrated"
    assert report.failures == []
