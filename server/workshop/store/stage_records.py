"""Stage record store.

One generic set of primitives serves all seven stage tables. Writes only
flush: they are always part of a workflow transaction that also moves the
order status.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import settings
from workshop.exceptions import Conflict
from workshop.models.cost_estimation import CostEstimation
from workshop.models.customer_education import CustomerEducation
from workshop.models.initial_check import InitialCheck
from workshop.models.payment import Payment
from workshop.models.quality_control import QualityControl
from workshop.models.technical_analysis import TechnicalAnalysis
from workshop.models.work_execution import WorkExecution
from workshop.store.base import assign, build, flush_or_conflict, require
from workshop.utils.numbers import generate_invoice_number

logger = logging.getLogger(__name__)

T = TypeVar("T")

# stage model -> column recording the acting user
ACTOR_FIELDS: Dict[type, str] = {
    InitialCheck: "mechanic_id",
    TechnicalAnalysis: "mechanic_id",
    CustomerEducation: "educator_id",
    CostEstimation: "estimator_id",
    WorkExecution: "mechanic_id",
    QualityControl: "inspector_id",
    Payment: "processed_by_id",
}


async def get_stage_record_for_order(
    db: AsyncSession, model: Type[T], service_order_id: int
) -> Optional[T]:
    result = await db.execute(select(model).where(model.service_order_id == service_order_id))
    return result.scalar_one_or_none()


async def create_stage_record(
    db: AsyncSession,
    model: Type[T],
    service_order_id: int,
    actor_id: int,
    data: Dict[str, Any],
) -> T:
    """
    Add the stage record for an order. Does not commit.

    Raises:
        Conflict: The order already has a record for this stage
        ValidationError: A model-level field check failed
    """
    existing = await get_stage_record_for_order(db, model, service_order_id)
    if existing is not None:
        raise Conflict(model.__name__, "service_order_id")

    record = build(
        model,
        {**data, "service_order_id": service_order_id, ACTOR_FIELDS[model]: actor_id},
    )
    db.add(record)
    await flush_or_conflict(db, model.__name__, ["service_order_id", "invoice_number"])

    logger.info(f"{model.__name__} {record.id} recorded for service order {service_order_id}")
    return record


async def update_stage_record(
    db: AsyncSession, record: T, data: Dict[str, Any], actor_id: Optional[int] = None
) -> T:
    """Apply field changes to a stage record. Does not commit."""
    changes = dict(data)
    if actor_id is not None:
        changes[ACTOR_FIELDS[type(record)]] = actor_id
    assign(record, changes)
    await flush_or_conflict(db, type(record).__name__)
    return record


async def unused_invoice_number(db: AsyncSession) -> str:
    for attempt in range(settings.ORDER_NUMBER_MAX_ATTEMPTS):
        candidate = generate_invoice_number()
        with db.no_autoflush:
            result = await db.execute(
                select(Payment.id).where(Payment.invoice_number == candidate).limit(1)
            )
        if result.first() is None:
            return candidate
        logger.warning(f"Invoice number collision on {candidate} (attempt {attempt + 1})")
    raise Conflict("Payment", "invoice_number")


async def get_stage_record(db: AsyncSession, model: Type[T], record_id: int) -> Optional[T]:
    return await db.get(model, record_id)


async def require_stage_record(db: AsyncSession, model: Type[T], record_id: int) -> T:
    return await require(db, model, record_id, model.__name__)


async def list_stage_records(
    db: AsyncSession, model: Type[T], service_order_id: Optional[int] = None
) -> List[T]:
    stmt = select(model).order_by(model.id)
    if service_order_id is not None:
        stmt = stmt.where(model.service_order_id == service_order_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())
