"""User endpoints (actors and mechanic assignees)."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.models.user import User, UserRole
from workshop.schemas.entities import UserCreate, UserRead
from workshop.services.database import get_db
from workshop.store import users as user_store
from workshop.store.base import require

router = APIRouter()


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await user_store.create_user(db, data)


@router.get("", response_model=List[UserRead])
async def list_users(role: Optional[UserRole] = None, db: AsyncSession = Depends(get_db)):
    return await user_store.list_users(db, role)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await require(db, User, user_id, "User")
