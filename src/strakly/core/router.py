"""Tenant execution router.

Binds a pooled connection to one tenant's schema for the duration of a unit
of work and always restores it before the connection goes back to the pool:

    async def count_members(conn: TenantConnection) -> int:
        return await conn.scalar("SELECT count(*) FROM users")

    total = await router.execute_in_tenant(42, count_members)

Inside the unit of work unqualified names resolve against ``tenant_<id>``
first and the global schema second. The catalog models (TenantBase) resolve
to the same schema through schema_translate_map.

The SET is committed before the unit of work starts, so a rolled-back unit
of work cannot undo it, and RESET runs whether the unit of work succeeded
or not. A connection whose reset fails is invalidated rather than returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar

import structlog
from sqlalchemy import Executable, Result, Row, text
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from strakly.config import Settings, get_settings
from strakly.core.database import tenant_translate_map
from strakly.core.exceptions import PoolExhaustedError, TenantContextError, UnitOfWorkTimeoutError
from strakly.core.tenant import quote_schema, tenant_schema_name

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class _Lease:
    active: bool = True


@dataclass(frozen=True)
class TenantConnection:
    """Connection handle bound to one tenant for one unit of work.

    Only the router creates these. Every method raises TenantContextError
    once the unit of work has ended.
    """

    tenant_id: int
    schema_name: str
    _connection: AsyncConnection = field(repr=False, compare=False)
    _lease: _Lease = field(default_factory=_Lease, repr=False, compare=False)

    @property
    def active(self) -> bool:
        return self._lease.active

    @property
    def connection(self) -> AsyncConnection:
        """The underlying connection, e.g. to bind an AsyncSession for ORM work."""
        if not self._lease.active:
            raise TenantContextError(
                f"Connection for '{self.schema_name}' used after its unit of work ended"
            )
        return self._connection

    async def execute(self, statement: str | Executable, parameters: dict[str, Any] | None = None) -> Result:
        stmt = text(statement) if isinstance(statement, str) else statement
        return await self.connection.execute(stmt, parameters)

    async def scalar(self, statement: str | Executable, parameters: dict[str, Any] | None = None) -> Any:
        result = await self.execute(statement, parameters)
        return result.scalar()

    async def fetch_all(self, statement: str | Executable, parameters: dict[str, Any] | None = None) -> list[Row]:
        result = await self.execute(statement, parameters)
        return list(result.all())

    async def fetch_one(self, statement: str | Executable, parameters: dict[str, Any] | None = None) -> Row | None:
        result = await self.execute(statement, parameters)
        return result.first()


class TenantRouter:
    """Run units of work against a single tenant schema."""

    def __init__(self, engine: AsyncEngine, settings: Settings | None = None) -> None:
        self._engine = engine
        self._settings = settings or get_settings()

    async def execute_in_tenant(
        self,
        tenant_id: int,
        unit_of_work: Callable[[TenantConnection], Awaitable[T]],
    ) -> T:
        """Run ``unit_of_work`` in one transaction bound to the tenant's schema.

        The unit of work's result or exception is propagated unchanged; the
        router never retries.

        Raises:
            PoolExhaustedError: no connection within POOL_TIMEOUT.
            UnitOfWorkTimeoutError: the unit of work exceeded UNIT_OF_WORK_TIMEOUT.
        """
        timeout = self._settings.UNIT_OF_WORK_TIMEOUT
        async with self.tenant_connection(tenant_id) as conn:
            if timeout is None:
                return await unit_of_work(conn)
            try:
                return await asyncio.wait_for(unit_of_work(conn), timeout)
            except asyncio.TimeoutError as exc:
                raise UnitOfWorkTimeoutError(
                    f"Unit of work for tenant {tenant_id} exceeded {timeout}s"
                ) from exc

    @asynccontextmanager
    async def tenant_connection(self, tenant_id: int) -> AsyncIterator[TenantConnection]:
        """Context-manager form of execute_in_tenant().

        Commits on normal exit, rolls back when the block raises.
        """
        schema_name = tenant_schema_name(tenant_id)
        conn = await self._acquire(schema_name)
        lease = _Lease()
        try:
            await self._bind(conn, schema_name)
            handle = TenantConnection(tenant_id, schema_name, conn, lease)
            with structlog.contextvars.bound_contextvars(tenant_id=tenant_id, schema_name=schema_name):
                async with conn.begin():
                    yield handle
        finally:
            lease.active = False
            await self._release(conn, schema_name)

    async def _acquire(self, schema_name: str) -> AsyncConnection:
        try:
            return await self._engine.connect()
        except PoolTimeoutError as exc:
            logger.warning("tenant_pool_exhausted", schema_name=schema_name, timeout=self._settings.POOL_TIMEOUT)
            raise PoolExhaustedError(
                f"No database connection available within {self._settings.POOL_TIMEOUT}s"
            ) from exc

    async def _bind(self, conn: AsyncConnection, schema_name: str) -> None:
        search_path = f"{quote_schema(schema_name)}, {quote_schema(self._settings.GLOBAL_SCHEMA)}"
        await conn.execute(text(f"SET search_path TO {search_path}"))
        await conn.commit()
        await conn.execution_options(schema_translate_map=tenant_translate_map(schema_name))

    async def _release(self, conn: AsyncConnection, schema_name: str) -> None:
        try:
            if conn.in_transaction():
                await conn.rollback()
            await conn.execute(text("RESET search_path"))
            await conn.commit()
        except Exception:
            # Never hand a connection that may still point at a tenant back to the pool.
            logger.error("tenant_context_reset_failed", schema_name=schema_name, exc_info=True)
            await conn.invalidate()
        finally:
            await conn.close()
