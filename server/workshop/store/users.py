"""User store (actors and assignees)."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.exceptions import ValidationError
from workshop.models.user import User, UserRole
from workshop.schemas.entities import UserCreate
from workshop.store.base import build, commit_or_conflict, ensure_unique, require

logger = logging.getLogger(__name__)


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    username = (data.username or "").strip()
    if not username:
        raise ValidationError("username", "is required")
    if not (data.full_name or "").strip():
        raise ValidationError("full_name", "is required")

    await ensure_unique(db, User, "username", username)
    user = build(
        User,
        {
            "username": username,
            "full_name": data.full_name.strip(),
            "role": data.role,
            "is_active": data.is_active,
        },
    )
    db.add(user)
    await commit_or_conflict(db, "User", ["username"])
    await db.refresh(user)

    logger.info(f"User {user.id} created ({user.username}, {user.role.value})")
    return user


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)


async def require_actor(db: AsyncSession, user_id: int) -> User:
    """Load the acting user; inactive users cannot act."""
    user = await require(db, User, user_id, "User")
    if not user.is_active:
        raise ValidationError("actor_id", f"user {user_id} is inactive")
    return user


async def list_users(db: AsyncSession, role: Optional[UserRole] = None) -> List[User]:
    stmt = select(User).order_by(User.id)
    if role is not None:
        stmt = stmt.where(User.role == role)
    result = await db.execute(stmt)
    return list(result.scalars().all())
