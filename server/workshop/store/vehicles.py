"""Vehicle store."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.exceptions import ValidationError
from workshop.models.customer import Customer
from workshop.models.vehicle import Vehicle
from workshop.schemas.entities import VehicleCreate, VehicleUpdate
from workshop.services.redis_client import invalidate_customer_cache
from workshop.store.base import assign, build, commit_or_conflict, ensure_unique, require

logger = logging.getLogger(__name__)

MIN_YEAR = 1900


def _check_details(changes: dict) -> None:
    for field in ("make", "model"):
        if field in changes:
            changes[field] = (changes[field] or "").strip()
            if not changes[field]:
                raise ValidationError(field, "is required")
    if "year" in changes and (changes["year"] is None or changes["year"] < MIN_YEAR):
        raise ValidationError("year", f"must be {MIN_YEAR} or later")


async def create_vehicle(db: AsyncSession, data: VehicleCreate) -> Vehicle:
    """
    Register a vehicle for an existing customer.

    Raises:
        NotFound: Customer does not exist
        ValidationError: Missing details or malformed plate/VIN
        Conflict: License plate already registered
    """
    customer = await require(db, Customer, data.customer_id, "Customer")

    fields = data.model_dump()
    _check_details(fields)
    vehicle = build(Vehicle, fields)
    await ensure_unique(db, Vehicle, "license_plate", vehicle.license_plate)

    db.add(vehicle)
    await commit_or_conflict(db, "Vehicle", ["license_plate"])
    await db.refresh(vehicle)
    await invalidate_customer_cache(customer.phone)

    logger.info(
        f"Vehicle {vehicle.id} ({vehicle.license_plate}) registered for customer {customer.id}"
    )
    return vehicle


async def get_vehicle(db: AsyncSession, vehicle_id: int) -> Optional[Vehicle]:
    return await db.get(Vehicle, vehicle_id)


async def list_vehicles(db: AsyncSession, customer_id: Optional[int] = None) -> List[Vehicle]:
    stmt = select(Vehicle).order_by(Vehicle.id)
    if customer_id is not None:
        stmt = stmt.where(Vehicle.customer_id == customer_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_vehicle(db: AsyncSession, vehicle_id: int, data: VehicleUpdate) -> Vehicle:
    vehicle = await require(db, Vehicle, vehicle_id, "Vehicle")
    changes = data.model_dump(exclude_unset=True)
    if "customer_id" in changes:
        raise ValidationError("customer_id", "vehicle ownership cannot be changed")

    _check_details(changes)
    old_plate = vehicle.license_plate
    assign(vehicle, changes)
    if vehicle.license_plate != old_plate:
        await ensure_unique(
            db, Vehicle, "license_plate", vehicle.license_plate, exclude_id=vehicle.id
        )

    await commit_or_conflict(db, "Vehicle", ["license_plate"])
    await db.refresh(vehicle)

    customer = await db.get(Customer, vehicle.customer_id)
    if customer:
        await invalidate_customer_cache(customer.phone)

    logger.info(f"Vehicle {vehicle.id} updated: {sorted(changes)}")
    return vehicle
