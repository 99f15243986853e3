"""Schemas for users, customers, vehicles and service orders."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from workshop.models.service_order import OrderStatus, ServiceType
from workshop.models.user import UserRole


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    username: str
    full_name: str
    role: UserRole
    is_active: bool = True


class UserRead(ORMModel):
    id: int
    username: str
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


class CustomerCreate(BaseModel):
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class CustomerRead(ORMModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Vehicles
# ---------------------------------------------------------------------------


class VehicleCreate(BaseModel):
    customer_id: int
    make: str
    model: str
    year: int
    license_plate: str
    vin: Optional[str] = None
    color: Optional[str] = None


class VehicleUpdate(BaseModel):
    """customer_id is deliberately absent: ownership is fixed at creation."""

    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    license_plate: Optional[str] = None
    vin: Optional[str] = None
    color: Optional[str] = None


class VehicleRead(ORMModel):
    id: int
    customer_id: int
    make: str
    model: str
    year: int
    license_plate: str
    vin: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Service orders
# ---------------------------------------------------------------------------


class ServiceOrderCreate(BaseModel):
    customer_id: int
    vehicle_id: int
    service_types: List[ServiceType] = []
    complaints: Optional[str] = None
    referral_source: Optional[str] = None
    body_defects: Optional[str] = None
    other_defects: Optional[str] = None
    assigned_mechanic_id: Optional[int] = None


class ServiceOrderUpdate(BaseModel):
    """Editable intake fields. Status is never accepted here."""

    model_config = ConfigDict(extra="forbid")

    service_types: Optional[List[ServiceType]] = None
    complaints: Optional[str] = None
    referral_source: Optional[str] = None
    body_defects: Optional[str] = None
    other_defects: Optional[str] = None
    assigned_mechanic_id: Optional[int] = None


class ServiceOrderRead(ORMModel):
    id: int
    order_number: str
    customer_id: int
    vehicle_id: int
    service_types: List[ServiceType]
    complaints: str
    referral_source: Optional[str] = None
    body_defects: Optional[str] = None
    other_defects: Optional[str] = None
    assigned_mechanic_id: Optional[int] = None
    created_by_id: int
    status: OrderStatus
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class StatusCount(BaseModel):
    status: OrderStatus
    count: int
