"""Forward-only migration sweep across every tenant schema.

Tenant schemas are discovered from the catalog, never from a registry.
Each schema is probed for what it lacks and patched in its own transaction,
so a schema someone edited by hand only fails itself. There is no
migration ledger: live catalog state is the record of what has been applied.

Probing before DDL keeps steady-state sweeps free of ALTER/CREATE, so they
take no ACCESS EXCLUSIVE locks on tenant tables that are serving traffic.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from strakly.config import Settings, get_settings
from strakly.core.database import tenant_translate_map
from strakly.core.exceptions import MigrationError
from strakly.core.tenant import discover_tenant_schemas
from strakly.models.catalog import (
    COLUMN_MIGRATIONS,
    TENANT_INDEXES,
    TENANT_TABLES,
    add_column_ddl,
    create_index_ddl,
    create_table_ddl,
)
from strakly.services.seeding import seed_defaults
from strakly.services.tenant_provisioning import detect_drift, lock_schema

logger = structlog.get_logger(__name__)


@dataclass
class SchemaMigrationResult:
    schema_name: str
    ok: bool = True
    error: str | None = None
    added_columns: list[str] = field(default_factory=list)
    created_tables: list[str] = field(default_factory=list)
    created_indexes: list[str] = field(default_factory=list)
    seeded_rows: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added_columns or self.created_tables or self.created_indexes or self.seeded_rows)


@dataclass
class SweepReport:
    discovered: list[str]
    results: list[SchemaMigrationResult]

    @property
    def migrated(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failures(self) -> list[SchemaMigrationResult]:
        return [r for r in self.results if not r.ok]

    @property
    def summary(self) -> str:
        return f"{self.migrated} of {len(self.discovered)} schemas migrated"


class TenantMigrationSweep:
    """Bring every discovered tenant schema up to the current table set."""

    def __init__(self, engine: AsyncEngine, settings: Settings | None = None) -> None:
        self._engine = engine
        self._settings = settings or get_settings()

    async def migrate_all(self) -> SweepReport:
        """Migrate every tenant schema; per-schema failures are reported, not raised."""
        async with self._engine.connect() as conn:
            schemas = await discover_tenant_schemas(conn)

        logger.info("migration_sweep_started", schema_count=len(schemas))
        semaphore = asyncio.Semaphore(max(1, self._settings.MIGRATION_CONCURRENCY))

        async def run(schema_name: str) -> SchemaMigrationResult:
            async with semaphore:
                try:
                    return await self.migrate_schema(schema_name)
                except MigrationError as exc:
                    logger.error(
                        "tenant_migration_failed",
                        schema_name=schema_name,
                        error=str(exc.cause),
                        error_type=type(exc.cause).__name__,
                    )
                    return SchemaMigrationResult(schema_name=schema_name, ok=False, error=str(exc.cause))

        results = await asyncio.gather(*(run(s) for s in schemas))
        report = SweepReport(discovered=schemas, results=list(results))

        logger.info(
            "migration_sweep_completed",
            summary=report.summary,
            changed=[r.schema_name for r in report.results if r.ok and r.changed],
            failed=[r.schema_name for r in report.failures],
        )
        return report

    async def migrate_schema(self, schema_name: str) -> SchemaMigrationResult:
        """Patch one tenant schema in a single transaction.

        Raises:
            MigrationError: the schema could not be migrated; its transaction was rolled back.
        """
        try:
            async with self._engine.begin() as conn:
                result = await self._migrate(conn, schema_name)
        except Exception as exc:
            raise MigrationError(schema_name, exc) from exc

        if result.changed:
            logger.info(
                "tenant_schema_migrated",
                schema_name=schema_name,
                added_columns=result.added_columns,
                created_tables=result.created_tables,
                created_indexes=len(result.created_indexes),
                seeded_rows=result.seeded_rows,
            )
        return result

    async def _migrate(self, conn: AsyncConnection, schema_name: str) -> SchemaMigrationResult:
        await lock_schema(conn, schema_name)
        # SET LOCAL takes no bind parameters; the value is an int from settings.
        await conn.execute(text(f"SET LOCAL lock_timeout = {int(self._settings.MIGRATION_LOCK_TIMEOUT_MS)}"))

        drift = await detect_drift(conn, schema_name)
        result = SchemaMigrationResult(schema_name=schema_name)

        missing_columns = set(drift.missing_columns)
        for migration in COLUMN_MIGRATIONS:
            if migration.key in missing_columns:
                await conn.execute(add_column_ddl(schema_name, migration))
                result.added_columns.append(migration.key)
                missing_columns.discard(migration.key)
        if missing_columns:
            # Only listed columns are managed; anything else needs a new list entry.
            logger.warning(
                "tenant_schema_unmanaged_drift",
                schema_name=schema_name,
                columns=sorted(missing_columns),
            )

        conn = await conn.execution_options(schema_translate_map=tenant_translate_map(schema_name))
        missing_tables = set(drift.missing_tables)
        for table in TENANT_TABLES:
            if table.name in missing_tables:
                await conn.execute(create_table_ddl(table))
                result.created_tables.append(table.name)

        missing_indexes = set(drift.missing_indexes)
        for index in TENANT_INDEXES:
            if index.name in missing_indexes:
                await conn.execute(create_index_ddl(index))
                result.created_indexes.append(index.name)

        result.seeded_rows = await seed_defaults(conn, schema_name)
        return result
