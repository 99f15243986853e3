"""User model."""

import enum

from sqlalchemy import Boolean, Column
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Integer, String

from workshop.models.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    """Workshop staff roles."""

    MECHANIC = "MECHANIC"
    ADMIN = "ADMIN"
    KABENG = "KABENG"  # workshop head
    OWNER = "OWNER"
    PLANNER = "PLANNER"


class User(Base, TimestampMixin):
    """Staff member recorded as the actor of workflow stages."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
