"""Technical analysis (diagnosis) model."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from workshop.models.base import Base, TimestampMixin, utcnow


class TechnicalAnalysis(Base, TimestampMixin):
    """Mechanic's diagnosis with supporting photo/video evidence."""

    __tablename__ = "technical_analyses"

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(
        Integer, ForeignKey("service_orders.id"), unique=True, nullable=False, index=True
    )
    mechanic_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    problem_description = Column(Text, nullable=False)
    root_cause_analysis = Column(Text, nullable=False)
    recommended_actions = Column(Text, nullable=False)
    visual_evidence_urls = Column(JSON, nullable=False, default=list)

    analysis_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    service_order = relationship("ServiceOrder", back_populates="technical_analysis")

    def __repr__(self):
        return f"<TechnicalAnalysis(id={self.id}, service_order_id={self.service_order_id})>"
