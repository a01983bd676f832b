"""Test fixtures for the scheduling engine."""
from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("BUSINESS_TIMEZONE", "America/Sao_Paulo")

from petshop.core.config import get_settings
from petshop.db.base import Base
from petshop.db.session import dispose_engine, get_sessionmaker
from petshop.main import app
from petshop.models import (
    Account,
    PackageItem,
    Pet,
    PetSize,
    PetSpecies,
    PricingRule,
    Service,
    ServiceCategory,
    ServicePackage,
)


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def db_session(reset_database: None, db_url: str) -> AsyncIterator[AsyncSession]:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        yield session


@pytest_asyncio.fixture()
async def seeded(reset_database: None, db_url: str) -> dict[str, uuid.UUID]:
    """Seed one shop with a dog, a cat and a few configured services."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        account = Account(name="Happy Paws", slug=f"paws-{uuid.uuid4().hex[:8]}")
        other_account = Account(name="Other Shop", slug=f"other-{uuid.uuid4().hex[:8]}")
        session.add_all([account, other_account])
        await session.flush()

        dog = Pet(
            account_id=account.id,
            name="Rex",
            species=PetSpecies.DOG,
            size=PetSize.SMALL,
            weight_kg=Decimal("8.00"),
        )
        cat = Pet(
            account_id=account.id,
            name="Mimi",
            species=PetSpecies.CAT,
            size=PetSize.SMALL,
            weight_kg=Decimal("4.00"),
        )
        session.add_all([dog, cat])

        banho = Service(
            account_id=account.id,
            name="Banho",
            category=ServiceCategory.BANHO,
            base_price=Decimal("60.00"),
            duration_minutes=60,
            scheduling_rules=[{"day": 3, "species": ["dog"]}],
            checklist_template=["Bath", "Dry", "Brush"],
        )
        banho.pricing_rules = [
            PricingRule(position=0, weight_max=Decimal("10"), fixed_price=Decimal("50.00")),
            PricingRule(position=1, size=PetSize.SMALL, fixed_price=Decimal("40.00")),
        ]
        tosa = Service(
            account_id=account.id,
            name="Tosa",
            category=ServiceCategory.TOSA,
            base_price=Decimal("100.00"),
            duration_minutes=90,
        )
        hotel = Service(
            account_id=account.id,
            name="Hotel",
            category=ServiceCategory.HOTEL,
            base_price=Decimal("80.00"),
        )
        session.add_all([banho, tosa, hotel])
        await session.flush()

        package = ServicePackage(
            account_id=account.id,
            name="Tosa x5",
            price=Decimal("400.00"),
            validity_days=90,
        )
        package.items = [PackageItem(service_id=tosa.id, quantity=5)]
        session.add(package)
        await session.commit()

        return {
            "account_id": account.id,
            "other_account_id": other_account.id,
            "dog_id": dog.id,
            "cat_id": cat.id,
            "banho_id": banho.id,
            "tosa_id": tosa.id,
            "hotel_id": hotel.id,
            "package_id": package.id,
        }


@pytest_asyncio.fixture()
async def api_client(seeded: dict[str, uuid.UUID]) -> AsyncIterator[AsyncClient]:
    """Async client sending the seeded tenant in ``X-Account-ID``."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Account-ID": str(seeded["account_id"])},
    ) as client:
        yield client
