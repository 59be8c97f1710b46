"""Tenant schema lifecycle.

Creates a tenant's schema with the full table/index set and default data in
one transaction, drops it on deprovisioning, and answers catalog questions
about it. Partial schemas are never observable: any failure during creation
rolls the whole transaction back.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from strakly.core.database import tenant_translate_map
from strakly.core.exceptions import ProvisioningError
from strakly.core.tenant import (
    discover_tenant_schemas,
    quote_schema,
    schema_exists,
    tenant_schema_name,
)
from strakly.models.catalog import (
    TENANT_INDEXES,
    TENANT_TABLE_NAMES,
    TENANT_TABLES,
    create_index_ddl,
    create_table_ddl,
)
from strakly.services.seeding import seed_defaults

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProvisioningResult:
    schema_name: str
    tables: tuple[str, ...]
    indexes: tuple[str, ...]
    seeded_rows: int


@dataclass
class SchemaDrift:
    """What the live schema is missing relative to the catalog.

    ``missing_columns`` only covers tables that exist; a missing table
    implies all of its columns.
    """

    schema_name: str
    exists: bool = True
    missing_tables: list[str] = field(default_factory=list)
    missing_columns: list[str] = field(default_factory=list)
    missing_indexes: list[str] = field(default_factory=list)

    @property
    def is_current(self) -> bool:
        return self.exists and not (self.missing_tables or self.missing_columns or self.missing_indexes)


async def lock_schema(conn: AsyncConnection, schema_name: str) -> None:
    """Serialize DDL on one schema across processes until the transaction ends."""
    await conn.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:schema))"),
        {"schema": schema_name},
    )


async def detect_drift(conn: AsyncConnection, schema_name: str) -> SchemaDrift:
    """Compare the live catalog of ``schema_name`` against the tenant table set."""
    params = {"schema": schema_name}
    tables = {
        row[0]
        for row in await conn.execute(
            text("SELECT table_name FROM information_schema.tables WHERE table_schema = :schema"),
            params,
        )
    }
    columns = {
        (row[0], row[1])
        for row in await conn.execute(
            text(
                "SELECT table_name, column_name FROM information_schema.columns "
                "WHERE table_schema = :schema"
            ),
            params,
        )
    }
    indexes = {
        row[0]
        for row in await conn.execute(
            text("SELECT indexname FROM pg_indexes WHERE schemaname = :schema"),
            params,
        )
    }

    drift = SchemaDrift(schema_name=schema_name)
    for table in TENANT_TABLES:
        if table.name not in tables:
            drift.missing_tables.append(table.name)
            continue
        drift.missing_columns.extend(
            f"{table.name}.{col.name}" for col in table.columns if (table.name, col.name) not in columns
        )
    drift.missing_indexes = [ix.name for ix in TENANT_INDEXES if ix.name not in indexes]
    return drift


class TenantSchemaManager:
    """Create, drop and inspect tenant schemas."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def create_tenant_schema(self, tenant_id: int) -> ProvisioningResult:
        """Provision ``tenant_<id>`` with every table, index and the default plans.

        Idempotent: a second call finds everything in place and seeds nothing.

        Raises:
            ProvisioningError: any step failed; nothing was committed.
        """
        schema_name = tenant_schema_name(tenant_id)
        try:
            async with self._engine.begin() as conn:
                await lock_schema(conn, schema_name)
                await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {quote_schema(schema_name)}"))

                conn = await conn.execution_options(schema_translate_map=tenant_translate_map(schema_name))
                for table in TENANT_TABLES:
                    await conn.execute(create_table_ddl(table))
                for index in TENANT_INDEXES:
                    await conn.execute(create_index_ddl(index))

                seeded = await seed_defaults(conn, schema_name)
        except Exception as exc:
            logger.error("tenant_schema_create_failed", schema_name=schema_name, error=str(exc))
            raise ProvisioningError(schema_name) from exc

        logger.info(
            "tenant_schema_created",
            schema_name=schema_name,
            tables=len(TENANT_TABLES),
            indexes=len(TENANT_INDEXES),
            seeded_rows=seeded,
        )
        return ProvisioningResult(
            schema_name=schema_name,
            tables=TENANT_TABLE_NAMES,
            indexes=tuple(ix.name for ix in TENANT_INDEXES),
            seeded_rows=seeded,
        )

    async def drop_tenant_schema(self, tenant_id: int) -> None:
        """Drop the tenant's schema and everything in it. Irreversible.

        Callers own any confirmation step.
        """
        schema_name = tenant_schema_name(tenant_id)
        async with self._engine.begin() as conn:
            await conn.execute(text(f"DROP SCHEMA IF EXISTS {quote_schema(schema_name)} CASCADE"))
        logger.warning("tenant_schema_dropped", schema_name=schema_name)

    async def tenant_schema_exists(self, tenant_id: int) -> bool:
        async with self._engine.connect() as conn:
            return await schema_exists(conn, tenant_schema_name(tenant_id))

    async def list_tenant_schemas(self) -> list[str]:
        async with self._engine.connect() as conn:
            return await discover_tenant_schemas(conn)

    async def inspect_tenant_schema(self, tenant_id: int) -> SchemaDrift:
        """Read-only report of what the tenant schema is missing."""
        schema_name = tenant_schema_name(tenant_id)
        async with self._engine.connect() as conn:
            if not await schema_exists(conn, schema_name):
                return SchemaDrift(
                    schema_name=schema_name,
                    exists=False,
                    missing_tables=list(TENANT_TABLE_NAMES),
                    missing_indexes=[ix.name for ix in TENANT_INDEXES],
                )
            return await detect_drift(conn, schema_name)
