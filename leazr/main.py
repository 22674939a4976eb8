"""
Leazr - leasing offers engine

Main FastAPI application with:
- Role-based authentication (admin/ambassador)
- Leaser coefficient and commission level configuration
- Leasing calculator
- Offer workflow with contract conversion
"""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal

from fastapi import FastAPI
from sqlalchemy import select

from leazr.api import api_router
from leazr.config import settings
from leazr.db import get_db_context
from leazr.models import (
    CommissionLevel,
    CommissionRate,
    Leaser,
    LeaserRange,
    PrincipalType,
    User,
    UserRole,
)
from leazr.services.offers import build_offer_recomputer
from leazr.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# (min, max, coefficient)
DEFAULT_LEASER_RANGES = [
    ("500", "2500", "3.28"),
    ("2500.01", "5000", "3.18"),
    ("5000.01", "12500", "3.08"),
    ("12500.01", "25000", "3.02"),
    ("25000.01", "50000", "2.96"),
]

# (min, max, rate %)
DEFAULT_AMBASSADOR_RATES = [
    ("500", "2500", "10"),
    ("2500.01", "5000", "13"),
    ("5000.01", "25000", "15"),
    ("25000.01", "50000", "18"),
]


async def seed_defaults(db) -> None:
    """Create the admin account, the default leaser and commission level when missing."""
    result = await db.execute(
        select(User).where(User.role == UserRole.ADMIN).limit(1)
    )
    if not result.scalar_one_or_none():
        logger.info("Creating admin account...")
        db.add(User(
            username=settings.admin_username,
            password_hash=hash_password(settings.admin_password),
            role=UserRole.ADMIN,
            display_name="Admin",
            is_active=True,
        ))
        logger.info(f"Admin account created: {settings.admin_username}")

    result = await db.execute(
        select(Leaser).where(Leaser.name == settings.default_leaser_name).limit(1)
    )
    if not result.scalar_one_or_none():
        db.add(Leaser(
            name=settings.default_leaser_name,
            logo_url=settings.default_leaser_logo,
            ranges=[
                LeaserRange(
                    position=position,
                    min_amount=Decimal(low),
                    max_amount=Decimal(high),
                    coefficient=Decimal(coefficient),
                )
                for position, (low, high, coefficient) in enumerate(DEFAULT_LEASER_RANGES)
            ],
        ))
        logger.info(f"Created default leaser: {settings.default_leaser_name}")

    result = await db.execute(
        select(CommissionLevel).where(
            CommissionLevel.type == PrincipalType.AMBASSADOR,
            CommissionLevel.is_default.is_(True),
        ).limit(1)
    )
    if not result.scalar_one_or_none():
        db.add(CommissionLevel(
            name="Ambassador",
            type=PrincipalType.AMBASSADOR,
            is_default=True,
            rates=[
                CommissionRate(
                    position=position,
                    min_amount=Decimal(low),
                    max_amount=Decimal(high),
                    rate=Decimal(rate),
                )
                for position, (low, high, rate) in enumerate(DEFAULT_AMBASSADOR_RATES)
            ],
        ))
        logger.info("Created default ambassador commission level")

    await db.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
    - Seeds admin account, default leaser and commission level
    - Starts the commission recomputer

    Shutdown:
    - Cancels pending commission recomputes
    """
    logger.info("Starting Leazr...")

    async with get_db_context() as db:
        await seed_defaults(db)

    app.state.recomputer = build_offer_recomputer(settings.commission_recompute_window)

    logger.info("Leazr started successfully!")

    yield

    logger.info("Shutting down Leazr...")
    await app.state.recomputer.flush_all()


app = FastAPI(
    title="Leazr",
    description="Leasing calculator and offer workflow",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "leazr.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
