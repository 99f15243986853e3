"""Quality control model."""

import enum

from sqlalchemy import JSON, Boolean, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from workshop.models.base import Base, TimestampMixin, utcnow


class QcStatus(str, enum.Enum):
    """Quality control outcome, derived from the inspection inputs."""

    PENDING = "PENDING"
    PASSED = "PASSED"
    FAILED = "FAILED"
    NEEDS_REWORK = "NEEDS_REWORK"


class QualityControl(Base, TimestampMixin):
    """Final inspection before the vehicle is handed back."""

    __tablename__ = "quality_controls"

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(
        Integer, ForeignKey("service_orders.id"), unique=True, nullable=False, index=True
    )
    inspector_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    critical_factors_check = Column(JSON, nullable=False, default=dict)
    defects_found = Column(Text, nullable=False, default="")
    final_approval = Column(Boolean, nullable=False)
    qc_status = Column(SQLEnum(QcStatus), nullable=False, index=True)
    verification_notes = Column(Text)

    inspection_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    service_order = relationship("ServiceOrder", back_populates="quality_control")

    def __repr__(self):
        return (
            f"<QualityControl(id={self.id}, service_order_id={self.service_order_id}, "
            f"status='{self.qc_status}')>"
        )
