"""
Tests for the overdue payment job and the worker scheduler.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from workshop.models import Base
from workshop.models.customer import Customer
from workshop.models.payment import Payment, PaymentStatus
from workshop.models.service_order import OrderStatus, ServiceOrder
from workshop.models.user import User, UserRole
from workshop.models.vehicle import Vehicle

from worker.jobs import overdue_payment_job
from worker.jobs.overdue_payment_job import mark_overdue_payments
from worker.main import build_scheduler

TODAY = date(2026, 3, 15)


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'worker_test.db'}"


@pytest_asyncio.fixture
async def session_maker(database_url):
    engine = create_async_engine(database_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def payments(session_maker):
    """One payment per (status, due_date) case, keyed by invoice number."""
    cases = {
        "INV-PENDING-LATE": (PaymentStatus.PENDING, date(2026, 3, 1)),
        "INV-PARTIAL-LATE": (PaymentStatus.PARTIAL, date(2026, 3, 14)),
        "INV-PENDING-TODAY": (PaymentStatus.PENDING, TODAY),
        "INV-PAID-LATE": (PaymentStatus.PAID, date(2026, 2, 1)),
        "INV-CANCELLED-LATE": (PaymentStatus.CANCELLED, date(2026, 2, 1)),
        "INV-NO-DUE-DATE": (PaymentStatus.PENDING, None),
    }

    async with session_maker() as db:
        cashier = User(username="kasir", full_name="Kasir", role=UserRole.ADMIN)
        customer = Customer(name="Andi", phone="+6281200000001")
        db.add_all([cashier, customer])
        await db.flush()

        vehicle = Vehicle(
            customer_id=customer.id, make="Suzuki", model="Ertiga", year=2020, license_plate="D 9 AB"
        )
        db.add(vehicle)
        await db.flush()

        for index, (invoice, (status, due_date)) in enumerate(cases.items()):
            order = ServiceOrder(
                order_number=f"SO-TEST-{index}",
                customer_id=customer.id,
                vehicle_id=vehicle.id,
                service_types=["MAINTENANCE"],
                complaints="Periodic service",
                created_by_id=cashier.id,
                status=OrderStatus.AWAITING_PAYMENT,
            )
            db.add(order)
            await db.flush()
            db.add(
                Payment(
                    service_order_id=order.id,
                    processed_by_id=cashier.id,
                    total_amount=Decimal("500000"),
                    paid_amount=Decimal("0"),
                    payment_status=status,
                    invoice_number=invoice,
                    due_date=due_date,
                )
            )
        await db.commit()

    return cases


async def statuses(session_maker):
    async with session_maker() as db:
        result = await db.execute(select(Payment.invoice_number, Payment.payment_status))
        return dict(result.all())


@pytest.mark.asyncio
async def test_marks_only_unsettled_past_due(session_maker, payments):
    marked = await mark_overdue_payments(session_maker, today=TODAY)

    assert marked == 2
    assert await statuses(session_maker) == {
        "INV-PENDING-LATE": PaymentStatus.OVERDUE,
        "INV-PARTIAL-LATE": PaymentStatus.OVERDUE,
        "INV-PENDING-TODAY": PaymentStatus.PENDING,
        "INV-PAID-LATE": PaymentStatus.PAID,
        "INV-CANCELLED-LATE": PaymentStatus.CANCELLED,
        "INV-NO-DUE-DATE": PaymentStatus.PENDING,
    }


@pytest.mark.asyncio
async def test_second_run_is_a_no_op(session_maker, payments):
    await mark_overdue_payments(session_maker, today=TODAY)
    assert await mark_overdue_payments(session_maker, today=TODAY) == 0


@pytest.mark.asyncio
async def test_uses_configured_database(database_url, session_maker, payments):
    with patch.object(overdue_payment_job.settings, "DATABASE_URL", database_url):
        marked = await mark_overdue_payments(today=TODAY)

    assert marked == 2


@pytest.mark.asyncio
async def test_errors_propagate(database_url):
    # No tables: the update fails and the job reports it
    with patch.object(overdue_payment_job.settings, "DATABASE_URL", database_url):
        with pytest.raises(OperationalError):
            await mark_overdue_payments(today=TODAY)


def test_scheduler_registers_overdue_job():
    scheduler = build_scheduler()
    [job] = scheduler.get_jobs()

    assert job.id == "overdue_payments"
    assert job.func is mark_overdue_payments
