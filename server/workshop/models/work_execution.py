"""Work execution (repair) model."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import relationship

from workshop.models.base import Base, TimestampMixin, utcnow


class WorkExecution(Base, TimestampMixin):
    """Repair work log, updated as the job progresses.

    ``completion_checklist`` is a free-form map of check name to bool; the
    set of keys is workshop configuration, not schema.
    """

    __tablename__ = "work_executions"

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(
        Integer, ForeignKey("service_orders.id"), unique=True, nullable=False, index=True
    )
    mechanic_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    work_description = Column(Text, nullable=False)
    labor_hours = Column(Numeric(6, 2), nullable=False)
    parts_used = Column(JSON, nullable=False, default=list)
    new_findings = Column(Text)
    completion_checklist = Column(JSON, nullable=False, default=dict)

    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True))
    work_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    service_order = relationship("ServiceOrder", back_populates="work_execution")

    def __repr__(self):
        return (
            f"<WorkExecution(id={self.id}, service_order_id={self.service_order_id}, "
            f"completed={self.is_completed})>"
        )
