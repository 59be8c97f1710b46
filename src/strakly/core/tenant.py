"""Tenant schema naming and discovery.

Every tenant (gym) owns exactly one PostgreSQL schema named ``tenant_<id>``.
The naming function is the only place that knows the convention; discovery
inverts it by scanning the catalog, which is the sole source of truth for
which tenant schemas exist.
"""

from __future__ import annotations

import re

from sqlalchemy import text
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncConnection

TENANT_SCHEMA_PREFIX = "tenant_"

# Canonical integer rendering only, so every match maps back to exactly one id.
_TENANT_SCHEMA_RE = re.compile(r"^tenant_(0|-?[1-9]\d*)$")
_preparer = postgresql.dialect().identifier_preparer


def tenant_schema_name(tenant_id: int) -> str:
    """Deterministic schema name for a tenant id (``42`` -> ``tenant_42``)."""
    return f"{TENANT_SCHEMA_PREFIX}{tenant_id}"


def is_tenant_schema(schema_name: str) -> bool:
    """True when ``schema_name`` follows the tenant naming convention."""
    return _TENANT_SCHEMA_RE.match(schema_name) is not None


def tenant_id_from_schema(schema_name: str) -> int:
    """Inverse of tenant_schema_name().

    Raises:
        ValueError: ``schema_name`` is not a tenant schema.
    """
    match = _TENANT_SCHEMA_RE.match(schema_name)
    if match is None:
        raise ValueError(f"Not a tenant schema: {schema_name!r}")
    return int(match.group(1))


def quote_schema(schema_name: str) -> str:
    """Quote a schema identifier for embedding in raw DDL."""
    return _preparer.quote_schema(schema_name)


def quote_identifier(name: str) -> str:
    """Quote a table/column/index identifier for embedding in raw DDL."""
    return _preparer.quote_identifier(name)


async def discover_tenant_schemas(conn: AsyncConnection) -> list[str]:
    """Return every tenant schema present in the database, sorted by tenant id."""
    result = await conn.execute(
        text(
            "SELECT schema_name FROM information_schema.schemata "
            "WHERE schema_name LIKE :pattern"
        ),
        {"pattern": "tenant\\_%"},
    )
    schemas = [row[0] for row in result if is_tenant_schema(row[0])]
    return sorted(schemas, key=tenant_id_from_schema)


async def schema_exists(conn: AsyncConnection, schema_name: str) -> bool:
    """Read-only catalog probe for a single schema."""
    result = await conn.execute(
        text("SELECT 1 FROM information_schema.schemata WHERE schema_name = :schema"),
        {"schema": schema_name},
    )
    return result.first() is not None
