"""Default data seeding for tenant schemas.

New tenants start with three membership plans. The seeder only fills an
empty ``plans`` table, so it is safe to call on every provisioning and
every migration sweep.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncConnection

from strakly.core.database import tenant_translate_map
from strakly.models.tenant import Plan

logger = structlog.get_logger(__name__)

DEFAULT_PLANS: tuple[dict, ...] = (
    {
        "code": "monthly",
        "name": "Monthly Plan",
        "description": "Perfect for getting started with your fitness journey",
        "duration_value": 30,
        "duration_type": "days",
        "price": Decimal("999.00"),
        "features": [
            "Full gym access",
            "Basic equipment usage",
            "Locker room access",
            "Fitness assessment",
        ],
        "display_order": 1,
        "is_featured": False,
    },
    {
        "code": "quarterly",
        "name": "Quarterly Plan",
        "description": "Our most popular plan with great value for committed members",
        "duration_value": 90,
        "duration_type": "days",
        "price": Decimal("2499.00"),
        "features": [
            "Full gym access",
            "All equipment usage",
            "Locker room access",
            "Fitness assessment",
            "1 Personal training session",
            "Diet consultation",
        ],
        "display_order": 2,
        "is_featured": True,
    },
    {
        "code": "annual",
        "name": "Annual Plan",
        "description": "Best value for long-term fitness commitment",
        "duration_value": 365,
        "duration_type": "days",
        "price": Decimal("7999.00"),
        "features": [
            "Full gym access",
            "All equipment usage",
            "Locker room access",
            "Monthly fitness assessment",
            "4 Personal training sessions",
            "Diet consultation",
            "Priority booking",
            "Guest passes (2/month)",
        ],
        "display_order": 3,
        "is_featured": False,
    },
)


async def seed_defaults(conn: AsyncConnection, schema_name: str) -> int:
    """Insert the default plans into ``schema_name`` if its plans table is empty.

    Runs inside the caller's transaction.

    Returns:
        Number of rows inserted (0 when the table already has rows).
    """
    options = {"schema_translate_map": tenant_translate_map(schema_name)}
    plans = Plan.__table__

    existing = (
        await conn.execute(select(func.count()).select_from(plans), execution_options=options)
    ).scalar_one()
    if existing:
        return 0

    rows = [{**plan, "currency": "INR", "is_active": True} for plan in DEFAULT_PLANS]
    await conn.execute(insert(plans), rows, execution_options=options)
    logger.info("tenant_defaults_seeded", schema_name=schema_name, table="plans", rows=len(rows))
    return len(rows)
