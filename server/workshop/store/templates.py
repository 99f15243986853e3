"""Reference-data store: analysis templates, estimation library, WhatsApp templates."""

import logging
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.models.service_order import ServiceType
from workshop.models.templates import AnalysisTemplate, EstimationLibraryItem, WhatsappTemplate
from workshop.store.base import assign, build, commit_or_conflict, ensure_unique, require
from workshop.store.users import require_actor

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _create(db: AsyncSession, model: Type[T], data: BaseModel, **extra) -> T:
    obj = build(model, {**data.model_dump(), **extra})
    db.add(obj)
    await commit_or_conflict(db, model.__name__, ["name"])
    await db.refresh(obj)
    logger.info(f"{model.__name__} {obj.id} created")
    return obj


async def _update(db: AsyncSession, model: Type[T], obj_id: int, data: BaseModel) -> T:
    obj = await require(db, model, obj_id, model.__name__)
    changes = data.model_dump(exclude_unset=True)
    assign(obj, changes)
    await commit_or_conflict(db, model.__name__, ["name"])
    await db.refresh(obj)
    logger.info(f"{model.__name__} {obj.id} updated: {sorted(changes)}")
    return obj


async def get_template(db: AsyncSession, model: Type[T], obj_id: int) -> T:
    """Load any reference row by id, active or not."""
    return await require(db, model, obj_id, model.__name__)


async def deactivate(db: AsyncSession, model: Type[T], obj_id: int) -> T:
    """Soft delete: rows stay for history but drop out of active listings."""
    obj = await require(db, model, obj_id, model.__name__)
    obj.is_active = False
    await db.commit()
    await db.refresh(obj)
    logger.info(f"{model.__name__} {obj.id} deactivated")
    return obj


async def _list(db: AsyncSession, model: Type[T], active_only: bool, *criteria) -> List[T]:
    stmt = select(model).order_by(model.id)
    if active_only:
        stmt = stmt.where(model.is_active.is_(True))
    for criterion in criteria:
        stmt = stmt.where(criterion)
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ============================================================================
# Analysis templates
# ============================================================================


async def create_analysis_template(db: AsyncSession, data, created_by_id: int) -> AnalysisTemplate:
    await require_actor(db, created_by_id)
    return await _create(db, AnalysisTemplate, data, created_by_id=created_by_id)


async def update_analysis_template(db: AsyncSession, template_id: int, data) -> AnalysisTemplate:
    return await _update(db, AnalysisTemplate, template_id, data)


async def list_analysis_templates(
    db: AsyncSession, service_type: Optional[ServiceType] = None, active_only: bool = True
) -> List[AnalysisTemplate]:
    criteria = []
    if service_type is not None:
        criteria.append(AnalysisTemplate.service_type == service_type)
    return await _list(db, AnalysisTemplate, active_only, *criteria)


# ============================================================================
# Estimation library
# ============================================================================


async def create_estimation_item(db: AsyncSession, data) -> EstimationLibraryItem:
    return await _create(db, EstimationLibraryItem, data)


async def update_estimation_item(db: AsyncSession, item_id: int, data) -> EstimationLibraryItem:
    return await _update(db, EstimationLibraryItem, item_id, data)


async def list_estimation_items(
    db: AsyncSession, category: Optional[str] = None, active_only: bool = True
) -> List[EstimationLibraryItem]:
    criteria = []
    if category:
        criteria.append(EstimationLibraryItem.category == category)
    return await _list(db, EstimationLibraryItem, active_only, *criteria)


# ============================================================================
# WhatsApp templates
# ============================================================================


async def create_whatsapp_template(db: AsyncSession, data, created_by_id: int) -> WhatsappTemplate:
    await require_actor(db, created_by_id)
    await ensure_unique(db, WhatsappTemplate, "name", data.name)
    return await _create(db, WhatsappTemplate, data, created_by_id=created_by_id)


async def update_whatsapp_template(db: AsyncSession, template_id: int, data) -> WhatsappTemplate:
    if data.name is not None:
        await ensure_unique(db, WhatsappTemplate, "name", data.name, exclude_id=template_id)
    return await _update(db, WhatsappTemplate, template_id, data)


async def list_whatsapp_templates(
    db: AsyncSession, active_only: bool = True
) -> List[WhatsappTemplate]:
    return await _list(db, WhatsappTemplate, active_only)


async def get_active_whatsapp_template(
    db: AsyncSession, event_kind: str
) -> Optional[WhatsappTemplate]:
    """Most recently created active template for a notification kind."""
    result = await db.execute(
        select(WhatsappTemplate)
        .where(WhatsappTemplate.event_kind == event_kind, WhatsappTemplate.is_active.is_(True))
        .order_by(WhatsappTemplate.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
