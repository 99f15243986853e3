"""
Read-side queries over service orders.

Work queues for the shop floor and the figures shown on the dashboard.
Statuses are always referenced through ``OrderStatus``.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workshop.models.payment import Payment, PaymentStatus
from workshop.models.service_order import OrderStatus, ServiceOrder
from workshop.workflow.state_machine import PIPELINE, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

OPEN_STATUSES = tuple(s for s in PIPELINE if s not in TERMINAL_STATUSES)
UNSETTLED_PAYMENT_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PARTIAL, PaymentStatus.OVERDUE)


async def orders_in_status(db: AsyncSession, status: OrderStatus) -> List[ServiceOrder]:
    """Orders in one status, oldest first."""
    result = await db.execute(
        select(ServiceOrder)
        .where(ServiceOrder.status == OrderStatus(status))
        .order_by(ServiceOrder.created_at, ServiceOrder.id)
    )
    return list(result.scalars().all())


async def orders_for_mechanic(
    db: AsyncSession, mechanic_id: int, statuses: Optional[Iterable[OrderStatus]] = None
) -> List[ServiceOrder]:
    """Orders assigned to a mechanic; open ones unless ``statuses`` is given."""
    wanted = [OrderStatus(s) for s in statuses] if statuses is not None else list(OPEN_STATUSES)
    result = await db.execute(
        select(ServiceOrder)
        .where(
            ServiceOrder.assigned_mechanic_id == mechanic_id,
            ServiceOrder.status.in_(wanted),
        )
        .order_by(ServiceOrder.created_at, ServiceOrder.id)
    )
    return list(result.scalars().all())


async def pending_qc_queue(db: AsyncSession) -> List[ServiceOrder]:
    """Orders waiting for a quality control inspection."""
    return await orders_in_status(db, OrderStatus.QUALITY_CONTROL)


async def pending_payment_queue(db: AsyncSession) -> List[ServiceOrder]:
    """Orders waiting for payment, with their payment record loaded."""
    result = await db.execute(
        select(ServiceOrder)
        .where(ServiceOrder.status == OrderStatus.AWAITING_PAYMENT)
        .options(selectinload(ServiceOrder.payment))
        .order_by(ServiceOrder.created_at, ServiceOrder.id)
    )
    return list(result.scalars().all())


async def status_counts(db: AsyncSession) -> Dict[OrderStatus, int]:
    """Number of orders per status; every status is present."""
    result = await db.execute(
        select(ServiceOrder.status, func.count(ServiceOrder.id)).group_by(ServiceOrder.status)
    )
    counts = {status: 0 for status in OrderStatus}
    for status, count in result.all():
        counts[OrderStatus(status)] = count
    return counts


async def dashboard_stats(db: AsyncSession) -> Dict[str, object]:
    """
    Headline numbers for the workshop dashboard.

    Returns:
        Dict with total_orders, in_progress, completed, cancelled,
        pending_payments (unsettled payment records) and revenue (sum of
        PAID payments).
    """
    counts = await status_counts(db)

    pending_payments = await db.scalar(
        select(func.count(Payment.id)).where(Payment.payment_status.in_(UNSETTLED_PAYMENT_STATUSES))
    )
    revenue = await db.scalar(
        select(func.coalesce(func.sum(Payment.paid_amount), 0)).where(
            Payment.payment_status == PaymentStatus.PAID
        )
    )

    stats = {
        "total_orders": sum(counts.values()),
        "in_progress": sum(counts[s] for s in OPEN_STATUSES),
        "completed": counts[OrderStatus.COMPLETED],
        "cancelled": counts[OrderStatus.CANCELLED],
        "pending_payments": pending_payments or 0,
        "revenue": Decimal(str(revenue or 0)),
    }
    logger.debug(f"Dashboard stats: {stats}")
    return stats
