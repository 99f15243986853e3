"""Service order store."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import settings
from workshop.exceptions import Conflict, InvalidTransition, ValidationError
from workshop.models.customer import Customer
from workshop.models.service_order import OrderStatus, ServiceOrder
from workshop.models.user import User
from workshop.models.vehicle import Vehicle
from workshop.schemas.entities import ServiceOrderUpdate
from workshop.store.base import assign, build, commit_or_conflict, require
from workshop.store.users import require_actor
from workshop.utils.numbers import generate_order_number

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


async def _unused_order_number(db: AsyncSession) -> str:
    for attempt in range(settings.ORDER_NUMBER_MAX_ATTEMPTS):
        candidate = generate_order_number()
        with db.no_autoflush:
            result = await db.execute(
                select(ServiceOrder.id).where(ServiceOrder.order_number == candidate).limit(1)
            )
        if result.first() is None:
            return candidate
        logger.warning(
            f"Order number collision on {candidate} "
            f"(attempt {attempt + 1}/{settings.ORDER_NUMBER_MAX_ATTEMPTS})"
        )
    raise Conflict("ServiceOrder", "order_number")


async def create_service_order(
    db: AsyncSession, record: Dict[str, Any], created_by_id: int
) -> ServiceOrder:
    """
    Persist a validated intake as a new service order.

    Args:
        db: Database session
        record: Output of ``validate_service_order``
        created_by_id: Acting user

    Returns:
        The stored order in PENDING_INITIAL_CHECK.

    Raises:
        NotFound: Customer, vehicle, creator or assigned mechanic missing
        ValidationError: Vehicle belongs to a different customer
        Conflict: No free order number after the configured attempts
    """
    await require(db, Customer, record["customer_id"], "Customer")
    vehicle = await require(db, Vehicle, record["vehicle_id"], "Vehicle")
    await require_actor(db, created_by_id)
    if record.get("assigned_mechanic_id") is not None:
        await require(db, User, record["assigned_mechanic_id"], "User")

    if vehicle.customer_id != record["customer_id"]:
        raise ValidationError("vehicle_id", "vehicle does not belong to customer")

    order = build(
        ServiceOrder,
        {
            **record,
            "order_number": await _unused_order_number(db),
            "created_by_id": created_by_id,
            "status": OrderStatus.PENDING_INITIAL_CHECK,
        },
    )
    db.add(order)
    await commit_or_conflict(db, "ServiceOrder", ["order_number"])
    await db.refresh(order)

    logger.info(
        f"Service order {order.order_number} (id={order.id}) opened for customer "
        f"{order.customer_id}, vehicle {order.vehicle_id}"
    )
    return order


async def get_service_order(db: AsyncSession, order_id: int) -> Optional[ServiceOrder]:
    return await db.get(ServiceOrder, order_id)


async def require_service_order(db: AsyncSession, order_id: int) -> ServiceOrder:
    return await require(db, ServiceOrder, order_id, "ServiceOrder")


async def get_service_order_for_update(db: AsyncSession, order_id: int) -> ServiceOrder:
    """Re-read an order inside the current transaction, locking its row.

    ``populate_existing`` discards any stale copy held by the session so the
    status seen here is the committed one.
    """
    stmt = (
        select(ServiceOrder)
        .where(ServiceOrder.id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    order = result.scalar_one_or_none()
    if order is None:
        await require(db, ServiceOrder, order_id, "ServiceOrder")
    return order


async def list_service_orders(
    db: AsyncSession,
    statuses: Optional[Iterable[OrderStatus]] = None,
    customer_id: Optional[int] = None,
    vehicle_id: Optional[int] = None,
    mechanic_id: Optional[int] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[ServiceOrder]:
    stmt = select(ServiceOrder).order_by(ServiceOrder.created_at, ServiceOrder.id)
    if statuses is not None:
        stmt = stmt.where(ServiceOrder.status.in_([OrderStatus(s) for s in statuses]))
    if customer_id is not None:
        stmt = stmt.where(ServiceOrder.customer_id == customer_id)
    if vehicle_id is not None:
        stmt = stmt.where(ServiceOrder.vehicle_id == vehicle_id)
    if mechanic_id is not None:
        stmt = stmt.where(ServiceOrder.assigned_mechanic_id == mechanic_id)
    result = await db.execute(stmt.limit(limit).offset(offset))
    return list(result.scalars().all())


async def update_service_order(
    db: AsyncSession, order_id: int, data: ServiceOrderUpdate
) -> ServiceOrder:
    """Edit intake details or the mechanic assignment of an open order."""
    changes = data.model_dump(exclude_unset=True)

    order = await require(db, ServiceOrder, order_id, "ServiceOrder")
    if order.status in CLOSED_STATUSES:
        raise ValidationError("status", f"order is {order.status.value} and can no longer be edited")

    if "service_types" in changes:
        if not changes["service_types"]:
            raise ValidationError("service_types", "at least one service type is required")
        changes["service_types"] = list(dict.fromkeys(t.value for t in data.service_types))
    if "complaints" in changes:
        changes["complaints"] = (changes["complaints"] or "").strip()
        if not changes["complaints"]:
            raise ValidationError("complaints", "is required")
    if changes.get("assigned_mechanic_id") is not None:
        await require(db, User, changes["assigned_mechanic_id"], "User")

    assign(order, changes)
    await commit_or_conflict(db, "ServiceOrder")
    await db.refresh(order)

    logger.info(f"Service order {order.id} updated: {sorted(changes)}")
    return order


async def apply_status(
    db: AsyncSession,
    order: ServiceOrder,
    expected: OrderStatus,
    new: OrderStatus,
    event: Any,
    **fields: Any,
) -> ServiceOrder:
    """
    Compare-and-set the order status inside the caller's transaction.

    The write only lands if the row still holds ``expected``; otherwise a
    concurrent request moved the order first and the attempt is rejected as
    ``InvalidTransition``. Does not commit.
    """
    result = await db.execute(
        update(ServiceOrder)
        .where(ServiceOrder.id == order.id, ServiceOrder.status == expected)
        .values(status=new, **fields)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidTransition(expected, event, "order status changed concurrently")

    await db.refresh(order)
    return order
