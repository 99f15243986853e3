"""Customer model."""

import re

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship, validates

from workshop.models.base import Base, TimestampMixin


class Customer(Base, TimestampMixin):
    """Customer registered at intake.

    Customers are shared by reference from vehicles and service orders and
    are never hard-deleted.
    """

    __tablename__ = "customers"

    # Primary Identity
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)

    # Contact Information
    phone = Column(String(20), unique=True, nullable=False, index=True)
    email = Column(String(255), index=True)
    address = Column(Text)

    # Relationships
    vehicles = relationship("Vehicle", back_populates="customer")
    service_orders = relationship("ServiceOrder", back_populates="customer")

    @validates("phone")
    def validate_phone(self, key, value):
        """Validate phone number characters and length.

        Only digits, spaces, hyphens, parentheses and a leading plus sign are
        accepted; local short numbers are allowed.
        """
        if not value or not value.strip():
            raise ValueError("Phone number is required")

        value = value.strip()
        digits_only = re.sub(r"[\s\-\(\)\+]", "", value)
        if not re.match(r"^\d+$", digits_only):
            raise ValueError(f"Phone number contains invalid characters: {value}")

        if len(value) > 20:
            raise ValueError(f"Phone number must be <= 20 characters, got {len(value)}")

        return value

    @validates("email")
    def validate_email(self, key, value):
        """Normalize email to lowercase and check its shape."""
        if not value:
            return None

        value = value.strip().lower()
        if len(value) > 255:
            raise ValueError(f"Email must be <= 255 characters, got {len(value)}")

        email_pattern = (
            r"^[a-z0-9]([a-z0-9._+-]*[a-z0-9])?@[a-z0-9]([a-z0-9.-]*[a-z0-9])?\.[a-z]{2,}$"
        )
        if not re.match(email_pattern, value):
            raise ValueError(f"Invalid email format: {value}")

        return value

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', phone='{self.phone}')>"
