"""Customer store."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workshop.config import settings
from workshop.exceptions import ValidationError
from workshop.models.customer import Customer
from workshop.schemas.entities import CustomerCreate, CustomerUpdate
from workshop.services.redis_client import (
    cache_customer,
    get_cached_customer,
    invalidate_customer_cache,
)
from workshop.store.base import assign, build, commit_or_conflict, ensure_unique, require

logger = logging.getLogger(__name__)


async def create_customer(db: AsyncSession, data: CustomerCreate) -> Customer:
    """
    Register a customer at intake.

    Raises:
        ValidationError: Missing name or malformed phone/email
        Conflict: Phone number already registered
    """
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("name", "is required")

    customer = build(
        Customer,
        {"name": name, "phone": data.phone, "email": data.email, "address": data.address},
    )
    await ensure_unique(db, Customer, "phone", customer.phone)

    db.add(customer)
    await commit_or_conflict(db, "Customer", ["phone"])
    await db.refresh(customer)

    logger.info(f"Customer {customer.id} created ({customer.phone})")
    return customer


async def get_customer(db: AsyncSession, customer_id: int) -> Optional[Customer]:
    return await db.get(Customer, customer_id)


async def list_customers(
    db: AsyncSession, search: Optional[str] = None, limit: int = 100, offset: int = 0
) -> List[Customer]:
    """List customers, optionally filtered by partial name or phone match."""
    stmt = select(Customer).order_by(Customer.id).limit(limit).offset(offset)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Customer.name.ilike(pattern), Customer.phone.ilike(pattern)))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_customer(db: AsyncSession, customer_id: int, data: CustomerUpdate) -> Customer:
    customer = await require(db, Customer, customer_id, "Customer")
    changes = data.model_dump(exclude_unset=True)
    old_phone = customer.phone

    if "name" in changes:
        changes["name"] = (changes["name"] or "").strip()
        if not changes["name"]:
            raise ValidationError("name", "is required")

    assign(customer, changes)
    if customer.phone != old_phone:
        await ensure_unique(db, Customer, "phone", customer.phone, exclude_id=customer.id)

    await commit_or_conflict(db, "Customer", ["phone"])
    await db.refresh(customer)

    await invalidate_customer_cache(old_phone)
    if customer.phone != old_phone:
        await invalidate_customer_cache(customer.phone)

    logger.info(f"Customer {customer.id} updated: {sorted(changes)}")
    return customer


async def lookup_customer_by_phone(db: AsyncSession, phone: str) -> Optional[Dict[str, Any]]:
    """
    Look up a customer and their vehicles by phone number with caching.

    Checks the Redis cache first, then queries the database with the
    vehicles loaded in the same round trip and caches the result.

    Returns:
        {
            "id": int,
            "name": str,
            "phone": str,
            "email": str | None,
            "address": str | None,
            "vehicles": [
                {"id": int, "license_plate": str, "make": str, "model": str, "year": int}
            ]
        }
        or None if no customer has that phone.
    """
    phone = (phone or "").strip()
    if not phone:
        return None

    cached = await get_cached_customer(phone)
    if cached:
        return cached

    stmt = select(Customer).options(selectinload(Customer.vehicles)).where(Customer.phone == phone)
    result = await db.execute(stmt)
    customer = result.scalar_one_or_none()

    if not customer:
        logger.info(f"Customer not found for phone: {phone}")
        return None

    customer_data = {
        "id": customer.id,
        "name": customer.name,
        "phone": customer.phone,
        "email": customer.email,
        "address": customer.address,
        "vehicles": [
            {
                "id": v.id,
                "license_plate": v.license_plate,
                "make": v.make,
                "model": v.model,
                "year": v.year,
            }
            for v in customer.vehicles
        ],
    }

    await cache_customer(phone, customer_data, ttl=settings.CUSTOMER_CACHE_TTL)
    return customer_data
