"""Pytest configuration and fixtures."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from workshop.main import app
from workshop.models import Base
from workshop.models.customer import Customer
from workshop.models.service_order import OrderStatus, ServiceOrder, ServiceType
from workshop.models.user import User, UserRole
from workshop.models.vehicle import Vehicle
from workshop.routes.deps import get_notifier
from workshop.schemas.entities import ServiceOrderCreate
from workshop.services.database import get_db
from workshop.workflow.service import ServiceOrderWorkflow

from factories import STEPS


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create test database engine (SQLite file per test)."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'workshop_test.db'}", poolclass=NullPool, echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def notifier() -> AsyncMock:
    """Notifier double; inspect ``notifier.notify.await_args_list``."""
    return AsyncMock()


@pytest_asyncio.fixture
async def workflow(db_session: AsyncSession, notifier: AsyncMock) -> ServiceOrderWorkflow:
    return ServiceOrderWorkflow(db_session, notifier)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, notifier: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# Entities
# ============================================================================


async def _add(db_session: AsyncSession, obj):
    db_session.add(obj)
    await db_session.commit()
    await db_session.refresh(obj)
    return obj


@pytest_asyncio.fixture
async def test_mechanic(db_session: AsyncSession) -> User:
    return await _add(
        db_session, User(username="budi", full_name="Budi Santoso", role=UserRole.MECHANIC)
    )


@pytest_asyncio.fixture
async def test_admin(db_session: AsyncSession) -> User:
    return await _add(
        db_session, User(username="sari", full_name="Sari Wijaya", role=UserRole.ADMIN)
    )


@pytest_asyncio.fixture
async def test_customer(db_session: AsyncSession) -> Customer:
    """Create test customer."""
    return await _add(
        db_session,
        Customer(
            name="Andi Pratama",
            phone="+6281234567890",
            email="andi@example.com",
            address="Jl. Merdeka 10, Bandung",
        ),
    )


@pytest_asyncio.fixture
async def test_vehicle(db_session: AsyncSession, test_customer: Customer) -> Vehicle:
    """Create test vehicle."""
    return await _add(
        db_session,
        Vehicle(
            customer_id=test_customer.id,
            make="Toyota",
            model="Avanza",
            year=2019,
            license_plate="D 1234 ABC",
            color="Silver",
        ),
    )


@pytest_asyncio.fixture
async def test_order(
    workflow: ServiceOrderWorkflow,
    test_customer: Customer,
    test_vehicle: Vehicle,
    test_admin: User,
    test_mechanic: User,
) -> ServiceOrder:
    """Open a service order in PENDING_INITIAL_CHECK."""
    return await workflow.open_order(
        ServiceOrderCreate(
            customer_id=test_customer.id,
            vehicle_id=test_vehicle.id,
            service_types=[ServiceType.AC],
            complaints="AC blows warm air",
            assigned_mechanic_id=test_mechanic.id,
        ),
        test_admin.id,
    )


@pytest.fixture
def advance(workflow: ServiceOrderWorkflow, test_mechanic: User):
    """Drive an order along the happy path until it reaches ``target``."""

    async def _advance(order: ServiceOrder, target: OrderStatus) -> ServiceOrder:
        for status, method, make_input in STEPS:
            if order.status == target:
                break
            assert order.status == status
            result = await getattr(workflow, method)(order.id, make_input(), test_mechanic.id)
            order = result.order
        assert order.status == target
        return order

    return _advance
