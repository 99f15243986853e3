"""Customer education (sign-off conversation) model."""

import enum

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from workshop.models.base import Base, TimestampMixin, utcnow


class UnderstandingLevel(str, enum.Enum):
    """How the customer received the diagnosis explanation."""

    UNDERSTOOD = "UNDERSTOOD"
    NEEDS_CLARIFICATION = "NEEDS_CLARIFICATION"
    REFUSED_SERVICE = "REFUSED_SERVICE"
    PARTIAL_UNDERSTANDING = "PARTIAL_UNDERSTANDING"


class CustomerEducation(Base, TimestampMixin):
    """Record of walking the customer through the technical analysis."""

    __tablename__ = "customer_educations"

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(
        Integer, ForeignKey("service_orders.id"), unique=True, nullable=False, index=True
    )
    educator_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    explanation_provided = Column(Text, nullable=False)
    understanding_level = Column(SQLEnum(UnderstandingLevel), nullable=False)
    customer_questions = Column(Text)
    notes = Column(Text)

    education_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    service_order = relationship("ServiceOrder", back_populates="customer_education")

    def __repr__(self):
        return (
            f"<CustomerEducation(id={self.id}, service_order_id={self.service_order_id}, "
            f"level='{self.understanding_level}')>"
        )
