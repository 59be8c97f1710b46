"""Declarative catalog of the tenant table set.

Provisioning and the migration sweep both build their DDL from the data
here, so a table or column is declared exactly once (as a model in
strakly.models.tenant) and every tenant schema converges on it.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Column, Index, Table, TextClause, text
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateColumn, CreateIndex, CreateTable

from strakly.core.database import TENANT_PLACEHOLDER_SCHEMA, tenant_metadata
from strakly.core.tenant import quote_identifier, quote_schema
from strakly.models import tenant as _tenant_models  # noqa: F401  (registers the tables)

_dialect = postgresql.dialect()

# Declaration order, which is also foreign-key dependency order: users first,
# junction tables after both sides, feature tables last.
TENANT_TABLES: tuple[Table, ...] = tuple(tenant_metadata.tables.values())
TENANT_TABLE_NAMES: tuple[str, ...] = tuple(t.name for t in TENANT_TABLES)
TENANT_INDEXES: tuple[Index, ...] = tuple(
    index for table in TENANT_TABLES for index in sorted(table.indexes, key=lambda ix: ix.name)
)


def tenant_table(name: str) -> Table:
    """Look up a catalog table by its unqualified name."""
    return tenant_metadata.tables[f"{TENANT_PLACEHOLDER_SCHEMA}.{name}"]


@dataclass(frozen=True)
class ColumnMigration:
    """A column added to an existing table after tenants were provisioned.

    The definition is read from the catalog column, so it cannot drift from
    what a freshly provisioned schema gets.
    """

    table: str
    column: str

    @property
    def key(self) -> str:
        return f"{self.table}.{self.column}"

    @property
    def definition(self) -> Column:
        return tenant_table(self.table).c[self.column]

    @property
    def is_addable(self) -> bool:
        """Addable to a non-empty table: nullable, or NOT NULL with a server default.

        Every COLUMN_MIGRATIONS entry must satisfy this; the catalog tests
        enforce it before a new entry can ship.
        """
        col = self.definition
        return (col.nullable or col.server_default is not None) and not col.primary_key


_BRANCH_SCOPED_TABLES = (
    "users",
    "plans",
    "offers",
    "memberships",
    "membership_history",
    "attendance",
    "attendance_history",
    "body_metrics",
    "body_metrics_history",
    "trainer_client_xref",
    "plan_offer_xref",
    "staff_salaries",
)

# Forward-only; append new entries, never remove or reorder.
COLUMN_MIGRATIONS: tuple[ColumnMigration, ...] = (
    ColumnMigration("users", "role"),
    *(ColumnMigration(table, "branch_id") for table in _BRANCH_SCOPED_TABLES),
)


def global_references() -> list[tuple[str, str, str]]:
    """(table, column, global table) for every cross-schema reference column.

    Consumed by the cross-schema reference validator, which lives outside
    this package; these columns carry no foreign key.
    """
    refs = []
    for table in TENANT_TABLES:
        for col in table.columns:
            target = col.info.get("references_global")
            if target:
                refs.append((table.name, col.name, target))
    return refs


# ── DDL builders ────────────────────────────────────────────────────────────
# Table/index DDL keeps the placeholder schema; execute it on a connection
# carrying tenant_translate_map(). ALTER is rendered as text, so the real
# schema is quoted in directly.


def create_table_ddl(table: Table) -> CreateTable:
    return CreateTable(table, if_not_exists=True)


def create_index_ddl(index: Index) -> CreateIndex:
    return CreateIndex(index, if_not_exists=True)


def column_spec(column: Column) -> str:
    """Render a column definition (name, type, default, nullability) for PostgreSQL."""
    return str(CreateColumn(column).compile(dialect=_dialect)).strip()


def add_column_ddl(schema_name: str, migration: ColumnMigration) -> TextClause:
    return text(
        f"ALTER TABLE {quote_schema(schema_name)}.{quote_identifier(migration.table)} "
        f"ADD COLUMN IF NOT EXISTS {column_spec(migration.definition)}"
    )
