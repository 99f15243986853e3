"""Shared helpers for the store modules."""

import logging
from typing import Any, Dict, Iterable, Optional, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.exceptions import Conflict, NotFound, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def require(db: AsyncSession, model: Type[T], entity_id: Any, entity: Optional[str] = None) -> T:
    """Load a row by primary key or raise ``NotFound``."""
    obj = await db.get(model, entity_id)
    if obj is None:
        raise NotFound(entity or model.__name__, entity_id)
    return obj


def assign(obj: T, data: Dict[str, Any]) -> T:
    """Set attributes one by one so model validators report the failing field."""
    for key, value in data.items():
        try:
            setattr(obj, key, value)
        except ValueError as e:
            raise ValidationError(key, str(e)) from e
    return obj


def build(model: Type[T], data: Dict[str, Any]) -> T:
    return assign(model(), data)


async def ensure_unique(
    db: AsyncSession,
    model,
    field: str,
    value: Any,
    entity: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> None:
    """Raise ``Conflict`` if another row already holds ``value`` in ``field``."""
    stmt = select(model.id).where(getattr(model, field) == value)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    # Pending changes on the checked row must not be flushed before the check
    with db.no_autoflush:
        result = await db.execute(stmt.limit(1))
    if result.first() is not None:
        raise Conflict(entity or model.__name__, field)


def _conflict_field(error: IntegrityError, fields: Sequence[str]) -> str:
    message = str(error.orig)
    for field in fields:
        if field in message:
            return field
    return fields[0] if fields else "id"


async def flush_or_conflict(db: AsyncSession, entity: str, unique_fields: Iterable[str] = ()) -> None:
    """Flush pending writes, translating unique violations into ``Conflict``.

    The pre-insert uniqueness checks can race with a concurrent writer; the
    database constraint is the final word.
    """
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        field = _conflict_field(e, list(unique_fields))
        logger.warning(f"Integrity error writing {entity}: {e.orig}")
        raise Conflict(entity, field) from e


async def commit_or_conflict(db: AsyncSession, entity: str, unique_fields: Iterable[str] = ()) -> None:
    await flush_or_conflict(db, entity, unique_fields)
    await db.commit()
