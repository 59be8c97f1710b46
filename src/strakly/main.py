"""FastAPI application factory.

Hosts process startup for the tenancy layer: logging, the global schema,
the tenant migration sweep and the shared engine. Health probes are the
only routes.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from strakly.api.health import router as health_router
from strakly.config import get_settings
from strakly.core.database import close_db, get_engine, init_db
from strakly.core.logging import configure_structlog
from strakly.core.router import TenantRouter
from strakly.services.tenant_migrations import TenantMigrationSweep
from strakly.services.tenant_provisioning import TenantSchemaManager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB and migrate tenants on startup, close on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()
    await init_db()

    engine = get_engine()
    app.state.tenant_router = TenantRouter(engine, settings)
    app.state.schema_manager = TenantSchemaManager(engine)
    app.state.migration_report = None

    if settings.MIGRATE_ON_STARTUP:
        report = await TenantMigrationSweep(engine, settings).migrate_all()
        app.state.migration_report = report
        if report.failures:
            log.warning("startup_migrations_incomplete", summary=report.summary)
    else:
        log.info("startup_migrations_skipped")

    yield

    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Strakly Tenancy",
        version="0.1.0",
        description="Schema-per-tenant orchestration and query routing",
        lifespan=lifespan,
    )
    app.include_router(health_router)
    return app


# Module-level app for uvicorn
app = create_app()
