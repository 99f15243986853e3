"""Schemas for reference-data templates."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from workshop.models.service_order import ServiceType
from workshop.schemas.entities import ORMModel


class AnalysisTemplateCreate(BaseModel):
    name: str = Field(min_length=1)
    service_type: ServiceType
    template_content: str = Field(min_length=1)
    is_active: bool = True


class AnalysisTemplateUpdate(BaseModel):
    name: Optional[str] = None
    service_type: Optional[ServiceType] = None
    template_content: Optional[str] = None
    is_active: Optional[bool] = None


class AnalysisTemplateRead(ORMModel):
    id: int
    name: str
    service_type: ServiceType
    template_content: str
    created_by_id: int
    is_active: bool
    created_at: datetime


class EstimationLibraryItemCreate(BaseModel):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    description: Optional[str] = None
    economic_price: Decimal = Field(gt=0)
    standard_price: Decimal = Field(gt=0)
    premium_price: Decimal = Field(gt=0)
    is_service: bool
    is_active: bool = True


class EstimationLibraryItemUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    economic_price: Optional[Decimal] = Field(default=None, gt=0)
    standard_price: Optional[Decimal] = Field(default=None, gt=0)
    premium_price: Optional[Decimal] = Field(default=None, gt=0)
    is_service: Optional[bool] = None
    is_active: Optional[bool] = None


class EstimationLibraryItemRead(ORMModel):
    id: int
    name: str
    category: str
    description: Optional[str] = None
    economic_price: Decimal
    standard_price: Decimal
    premium_price: Decimal
    is_service: bool
    is_active: bool
    created_at: datetime


class WhatsappTemplateCreate(BaseModel):
    name: str = Field(min_length=1)
    event_kind: str = Field(min_length=1)
    content: str = Field(min_length=1)
    is_active: bool = True


class WhatsappTemplateUpdate(BaseModel):
    name: Optional[str] = None
    event_kind: Optional[str] = None
    content: Optional[str] = None
    is_active: Optional[bool] = None


class WhatsappTemplateRead(ORMModel):
    id: int
    name: str
    event_kind: str
    content: str
    created_by_id: int
    is_active: bool
    created_at: datetime
