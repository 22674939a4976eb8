"""
Pytest configuration and fixtures.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leazr.models import (
    Ambassador,
    Base,
    CommissionLevel,
    CommissionRate,
    Leaser,
    LeaserRange,
    Offer,
    OfferEquipment,
    OfferWorkflowStatus,
    PrincipalType,
    User,
    UserRole,
)

# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def admin_user(db_session):
    user = User(
        username="admin",
        password_hash="not-a-real-hash",
        role=UserRole.ADMIN,
        display_name="Admin",
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def leaser(db_session):
    """Leaser with the two ranges used throughout the tests (0-2500 @ 3.0, 2500.01-10000 @ 3.5)."""
    leaser = Leaser(
        name="Grenke",
        logo_url="https://example.com/grenke.png",
        ranges=[
            LeaserRange(position=0, min_amount=Decimal("0"), max_amount=Decimal("2500"), coefficient=Decimal("3.0")),
            LeaserRange(position=1, min_amount=Decimal("2500.01"), max_amount=Decimal("10000"), coefficient=Decimal("3.5")),
        ],
    )
    db_session.add(leaser)
    await db_session.commit()
    await db_session.refresh(leaser)
    return leaser


@pytest_asyncio.fixture
async def commission_level(db_session):
    """Default ambassador level: 10% up to 5000, flat 750 up to 20000."""
    level = CommissionLevel(
        name="Standard",
        type=PrincipalType.AMBASSADOR,
        is_default=True,
        rates=[
            CommissionRate(position=0, min_amount=Decimal("0"), max_amount=Decimal("5000"), rate=Decimal("10")),
            CommissionRate(
                position=1,
                min_amount=Decimal("5000.01"),
                max_amount=Decimal("20000"),
                rate=Decimal("0"),
                fixed_amount=Decimal("750"),
            ),
        ],
    )
    db_session.add(level)
    await db_session.commit()
    await db_session.refresh(level)
    return level


@pytest_asyncio.fixture
async def ambassador(db_session, commission_level):
    ambassador = Ambassador(name="Alex Martin", email="alex@example.com")
    db_session.add(ambassador)
    await db_session.commit()
    await db_session.refresh(ambassador)
    return ambassador


async def make_offer(db, user, leaser=None, status=OfferWorkflowStatus.DRAFT, **kwargs):
    """Insert an offer with one equipment line, bypassing the creation saga."""
    values = {
        "client_name": "Acme SPRL",
        "client_id": "client-1",
        "amount": Decimal("2000"),
        "coefficient": Decimal("3.0"),
        "monthly_payment": Decimal("66"),
        "financed_amount": Decimal("2200"),
        "margin": Decimal("200"),
    }
    values.update(kwargs)

    offer = Offer(
        user_id=user.id,
        leaser_id=leaser.id if leaser else None,
        workflow_status=status,
        equipment=[
            OfferEquipment(
                position=0,
                title="Laptop",
                purchase_price=Decimal("1000"),
                quantity=2,
                margin=Decimal("10"),
            )
        ],
        **values,
    )
    db.add(offer)
    await db.commit()
    await db.refresh(offer)
    return offer


@pytest_asyncio.fixture
async def offer(db_session, admin_user, leaser):
    return await make_offer(db_session, admin_user, leaser)


@pytest.fixture
def offer_factory(db_session, admin_user, leaser):
    """Build extra offers owned by the admin on the test leaser."""

    async def factory(**kwargs):
        return await make_offer(db_session, admin_user, leaser, **kwargs)

    return factory
