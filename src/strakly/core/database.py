"""Async SQLAlchemy engine for tenant routing and schema orchestration.

Provides:
- get_engine(): session-preserving pool (DIRECT_URL, never a transaction-pooling proxy)
- TenantBase: Declarative base for per-tenant schema tables (placeholder schema="tenant")
- Startup search_path pinned to the global schema, so RESET restores a fresh-connection state
- Pool checkout event that resets session state (RESET ALL) to prevent stale leaks
- init_db() / close_db() for process lifespan
- pool_stats(): pool occupancy snapshot for readiness probes
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import MetaData, event, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from strakly.config import Settings, get_settings
from strakly.core.tenant import quote_schema

logger = structlog.get_logger(__name__)

# ── Module-level engine (lazy init) ────────────────────────────────────────

_engine: AsyncEngine | None = None


def build_engine(settings: Settings) -> AsyncEngine:
    """Create an engine whose connections keep session state between statements."""
    engine = create_async_engine(
        settings.session_database_url,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.POOL_MAX_OVERFLOW,
        pool_timeout=settings.POOL_TIMEOUT,
        pool_recycle=settings.POOL_RECYCLE,
        pool_pre_ping=True,
        echo=False,
        connect_args={
            "server_settings": {"search_path": settings.GLOBAL_SCHEMA},
            "command_timeout": settings.STATEMENT_TIMEOUT,
        },
    )

    if settings.RESET_SESSION_ON_CHECKOUT:
        # Values sent in the startup packet are the RESET defaults, so this
        # never clears the pinned search_path.
        @event.listens_for(engine.sync_engine, "checkout")
        def reset_session_state(dbapi_conn: Any, connection_record: Any, connection_proxy: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("RESET ALL")
            cursor.close()

    return engine


def get_engine() -> AsyncEngine:
    """Get or create the async engine singleton."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine


def pool_stats(engine: AsyncEngine | None = None) -> dict[str, int]:
    """Snapshot of pool occupancy: size, checked in/out and overflow."""
    pool = (engine or get_engine()).pool
    return {
        "size": pool.size(),
        "checked_in": pool.checkedin(),
        "checked_out": pool.checkedout(),
        "overflow": pool.overflow(),
    }


# ── Declarative Base ────────────────────────────────────────────────────────

TENANT_PLACEHOLDER_SCHEMA = "tenant"

tenant_metadata = MetaData(schema=TENANT_PLACEHOLDER_SCHEMA)


class TenantBase(DeclarativeBase):
    """Base class for per-tenant schema models.

    Uses placeholder schema="tenant" which is remapped at runtime via
    schema_translate_map to the actual tenant schema (e.g., "tenant_42").
    """

    metadata = tenant_metadata


def tenant_translate_map(schema_name: str) -> dict[str, str]:
    """schema_translate_map that points the placeholder schema at ``schema_name``."""
    return {TENANT_PLACEHOLDER_SCHEMA: schema_name}


# ── Database Initialization ─────────────────────────────────────────────────


async def init_db() -> None:
    """Ensure the global schema exists."""
    settings = get_settings()
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {quote_schema(settings.GLOBAL_SCHEMA)}"))
    logger.info("database_initialized", global_schema=settings.GLOBAL_SCHEMA)


async def close_db() -> None:
    """Dispose of the engine and close all connections."""
    global _engine
    if _engine:
        await _engine.dispose()
        _engine = None
