"""Health check endpoints.

Liveness (/health) checks nothing external. Readiness (/health/ready) pings
the database and reports pool occupancy plus the result of the startup
migration sweep.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from strakly.config import get_settings
from strakly.core.database import get_engine, pool_stats

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness check."""
    settings = get_settings()
    return {"status": "ok", "environment": settings.ENVIRONMENT.value}


async def _check_database() -> dict:
    checks: dict = {"database": "ok"}
    try:
        engine = get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["pool"] = pool_stats(engine)
    except Exception as e:
        checks["database"] = "error"
        checks["database_error"] = str(e)
    return checks


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Readiness check: verifies database connectivity.

    Returns 200 when ready, 503 otherwise. Failed tenant migrations degrade
    only those tenants, so they are reported but do not fail readiness.
    """
    checks = await _check_database()

    report = getattr(request.app.state, "migration_report", None)
    if report is not None:
        checks["migrations"] = {
            "summary": report.summary,
            "failed": [r.schema_name for r in report.failures],
        }

    healthy = checks["database"] == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if healthy else "degraded",
            "checks": checks,
        },
    )
