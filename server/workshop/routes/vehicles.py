"""Vehicle endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.models.vehicle import Vehicle
from workshop.schemas.entities import VehicleCreate, VehicleRead, VehicleUpdate
from workshop.services.database import get_db
from workshop.store import vehicles as vehicle_store
from workshop.store.base import require

router = APIRouter()


@router.post("", response_model=VehicleRead, status_code=status.HTTP_201_CREATED)
async def create_vehicle(data: VehicleCreate, db: AsyncSession = Depends(get_db)):
    return await vehicle_store.create_vehicle(db, data)


@router.get("", response_model=List[VehicleRead])
async def list_vehicles(customer_id: Optional[int] = None, db: AsyncSession = Depends(get_db)):
    return await vehicle_store.list_vehicles(db, customer_id=customer_id)


@router.get("/{vehicle_id}", response_model=VehicleRead)
async def get_vehicle(vehicle_id: int, db: AsyncSession = Depends(get_db)):
    return await require(db, Vehicle, vehicle_id, "Vehicle")


@router.patch("/{vehicle_id}", response_model=VehicleRead)
async def update_vehicle(vehicle_id: int, data: VehicleUpdate, db: AsyncSession = Depends(get_db)):
    return await vehicle_store.update_vehicle(db, vehicle_id, data)
