"""Customer endpoints."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.exceptions import NotFound
from workshop.models.customer import Customer
from workshop.schemas.entities import CustomerCreate, CustomerRead, CustomerUpdate, VehicleRead
from workshop.services.database import get_db
from workshop.store import customers as customer_store
from workshop.store import vehicles as vehicle_store
from workshop.store.base import require

router = APIRouter()


@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
async def create_customer(data: CustomerCreate, db: AsyncSession = Depends(get_db)):
    return await customer_store.create_customer(db, data)


@router.get("", response_model=List[CustomerRead])
async def list_customers(
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await customer_store.list_customers(db, search=search, limit=limit, offset=offset)


@router.get("/lookup")
async def lookup_customer(phone: str, db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """Customer and vehicles by phone number (served from cache when possible)."""
    customer = await customer_store.lookup_customer_by_phone(db, phone)
    if customer is None:
        raise NotFound("Customer", phone)
    return customer


@router.get("/{customer_id}", response_model=CustomerRead)
async def get_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    return await require(db, Customer, customer_id, "Customer")


@router.patch("/{customer_id}", response_model=CustomerRead)
async def update_customer(customer_id: int, data: CustomerUpdate, db: AsyncSession = Depends(get_db)):
    return await customer_store.update_customer(db, customer_id, data)


@router.get("/{customer_id}/vehicles", response_model=List[VehicleRead])
async def list_customer_vehicles(customer_id: int, db: AsyncSession = Depends(get_db)):
    await require(db, Customer, customer_id, "Customer")
    return await vehicle_store.list_vehicles(db, customer_id=customer_id)
