"""Vehicle model."""

import re

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship, validates

from workshop.models.base import Base, TimestampMixin


class Vehicle(Base, TimestampMixin):
    """Vehicle owned by exactly one customer.

    ``customer_id`` is fixed at creation; ownership changes are not modelled.
    """

    __tablename__ = "vehicles"

    # Primary Identity
    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    # Vehicle Identification
    license_plate = Column(String(20), unique=True, nullable=False, index=True)
    vin = Column(String(17), index=True)

    # Vehicle Details
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    color = Column(String(50))

    # Relationships
    customer = relationship("Customer", back_populates="vehicles")
    service_orders = relationship("ServiceOrder", back_populates="vehicle")

    @validates("license_plate")
    def validate_license_plate(self, key, value):
        """Normalize plates to upper case with single spaces."""
        if not value or not value.strip():
            raise ValueError("License plate cannot be empty")
        return " ".join(value.upper().split())

    @validates("vin")
    def validate_vin(self, key, value):
        """Validate VIN format (17 characters, no I/O/Q) when one is given."""
        if not value:
            return None

        value = value.strip().upper()
        if len(value) != 17:
            raise ValueError(f"VIN must be exactly 17 characters, got {len(value)}")

        # I, O and Q are excluded (easily confused with 1 and 0)
        if not re.match(r"^[A-HJ-NPR-Z0-9]{17}$", value):
            raise ValueError(
                f"Invalid VIN format: {value}. VIN must contain only letters (except I, O, Q) and numbers"
            )

        return value

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.license_plate}', {self.year} {self.make} {self.model})>"
