"""Initial check (intake inspection) model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from workshop.models.base import Base, TimestampMixin, utcnow


class InitialCheck(Base, TimestampMixin):
    """Walk-around checklist done by the mechanic when the vehicle arrives."""

    __tablename__ = "initial_checks"

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(
        Integer, ForeignKey("service_orders.id"), unique=True, nullable=False, index=True
    )
    mechanic_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Checklist
    headlights = Column(Boolean, nullable=False)
    horn = Column(Boolean, nullable=False)
    brakes = Column(Boolean, nullable=False)
    tires = Column(Boolean, nullable=False)
    fluids = Column(Boolean, nullable=False)
    battery = Column(Boolean, nullable=False)
    additional_findings = Column(Text)

    check_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    service_order = relationship("ServiceOrder", back_populates="initial_check")

    def __repr__(self):
        return f"<InitialCheck(id={self.id}, service_order_id={self.service_order_id})>"
