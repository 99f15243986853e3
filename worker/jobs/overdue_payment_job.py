"""Overdue payment job."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from workshop.models.base import utcnow
from workshop.models.payment import Payment, PaymentStatus

from worker.config import settings

logger = logging.getLogger(__name__)

UNSETTLED = (PaymentStatus.PENDING, PaymentStatus.PARTIAL)


async def mark_overdue_payments(
    session_maker: Optional[async_sessionmaker] = None, today: Optional[date] = None
) -> int:
    """
    Flag unsettled payments whose due date has passed as OVERDUE.

    Args:
        session_maker: Session factory to use; by default one is created from
            ``DATABASE_URL`` and disposed afterwards
        today: Reference date (default: current UTC date)

    Returns:
        Number of payments marked overdue.
    """
    logger.info("Running overdue payment job...")
    today = today or utcnow().date()

    engine = None
    if session_maker is None:
        engine = create_async_engine(settings.DATABASE_URL)
        session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with session_maker() as db:
            result = await db.execute(
                update(Payment)
                .where(
                    Payment.payment_status.in_(UNSETTLED),
                    Payment.due_date.is_not(None),
                    Payment.due_date < today,
                )
                .values(payment_status=PaymentStatus.OVERDUE, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            marked = result.rowcount or 0

    except Exception as e:
        logger.error(f"Error in overdue payment job: {e}", exc_info=True)
        raise
    finally:
        if engine is not None:
            await engine.dispose()

    logger.info(f"Overdue payment job completed: {marked} payment(s) marked overdue")
    return marked
