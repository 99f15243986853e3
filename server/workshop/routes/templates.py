"""Reference template endpoints: analysis templates, estimation library, WhatsApp templates."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.models.service_order import ServiceType
from workshop.models.templates import AnalysisTemplate, EstimationLibraryItem, WhatsappTemplate
from workshop.routes.deps import get_actor_id
from workshop.schemas.templates import (
    AnalysisTemplateCreate,
    AnalysisTemplateRead,
    AnalysisTemplateUpdate,
    EstimationLibraryItemCreate,
    EstimationLibraryItemRead,
    EstimationLibraryItemUpdate,
    WhatsappTemplateCreate,
    WhatsappTemplateRead,
    WhatsappTemplateUpdate,
)
from workshop.services.database import get_db
from workshop.store import templates as template_store

router = APIRouter()


# ============================================================================
# Analysis templates
# ============================================================================


@router.post("/analysis", response_model=AnalysisTemplateRead, status_code=status.HTTP_201_CREATED)
async def create_analysis_template(
    data: AnalysisTemplateCreate,
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await template_store.create_analysis_template(db, data, actor_id)


@router.get("/analysis", response_model=List[AnalysisTemplateRead])
async def list_analysis_templates(
    service_type: Optional[ServiceType] = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
):
    return await template_store.list_analysis_templates(
        db, service_type=service_type, active_only=not include_inactive
    )


@router.get("/analysis/{template_id}", response_model=AnalysisTemplateRead)
async def get_analysis_template(template_id: int, db: AsyncSession = Depends(get_db)):
    return await template_store.get_template(db, AnalysisTemplate, template_id)


@router.patch("/analysis/{template_id}", response_model=AnalysisTemplateRead)
async def update_analysis_template(
    template_id: int, data: AnalysisTemplateUpdate, db: AsyncSession = Depends(get_db)
):
    return await template_store.update_analysis_template(db, template_id, data)


@router.delete("/analysis/{template_id}", response_model=AnalysisTemplateRead)
async def deactivate_analysis_template(template_id: int, db: AsyncSession = Depends(get_db)):
    return await template_store.deactivate(db, AnalysisTemplate, template_id)


# ============================================================================
# Estimation library
# ============================================================================


@router.post(
    "/estimation-library",
    response_model=EstimationLibraryItemRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_estimation_item(
    data: EstimationLibraryItemCreate, db: AsyncSession = Depends(get_db)
):
    return await template_store.create_estimation_item(db, data)


@router.get("/estimation-library", response_model=List[EstimationLibraryItemRead])
async def list_estimation_items(
    category: Optional[str] = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
):
    return await template_store.list_estimation_items(
        db, category=category, active_only=not include_inactive
    )


@router.get("/estimation-library/{item_id}", response_model=EstimationLibraryItemRead)
async def get_estimation_item(item_id: int, db: AsyncSession = Depends(get_db)):
    return await template_store.get_template(db, EstimationLibraryItem, item_id)


@router.patch("/estimation-library/{item_id}", response_model=EstimationLibraryItemRead)
async def update_estimation_item(
    item_id: int, data: EstimationLibraryItemUpdate, db: AsyncSession = Depends(get_db)
):
    return await template_store.update_estimation_item(db, item_id, data)


@router.delete("/estimation-library/{item_id}", response_model=EstimationLibraryItemRead)
async def deactivate_estimation_item(item_id: int, db: AsyncSession = Depends(get_db)):
    return await template_store.deactivate(db, EstimationLibraryItem, item_id)


# ============================================================================
# WhatsApp templates
# ============================================================================


@router.post("/whatsapp", response_model=WhatsappTemplateRead, status_code=status.HTTP_201_CREATED)
async def create_whatsapp_template(
    data: WhatsappTemplateCreate,
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await template_store.create_whatsapp_template(db, data, actor_id)


@router.get("/whatsapp", response_model=List[WhatsappTemplateRead])
async def list_whatsapp_templates(include_inactive: bool = False, db: AsyncSession = Depends(get_db)):
    return await template_store.list_whatsapp_templates(db, active_only=not include_inactive)


@router.get("/whatsapp/{template_id}", response_model=WhatsappTemplateRead)
async def get_whatsapp_template(template_id: int, db: AsyncSession = Depends(get_db)):
    return await template_store.get_template(db, WhatsappTemplate, template_id)


@router.patch("/whatsapp/{template_id}", response_model=WhatsappTemplateRead)
async def update_whatsapp_template(
    template_id: int, data: WhatsappTemplateUpdate, db: AsyncSession = Depends(get_db)
):
    return await template_store.update_whatsapp_template(db, template_id, data)


@router.delete("/whatsapp/{template_id}", response_model=WhatsappTemplateRead)
async def deactivate_whatsapp_template(template_id: int, db: AsyncSession = Depends(get_db)):
    return await template_store.deactivate(db, WhatsappTemplate, template_id)
