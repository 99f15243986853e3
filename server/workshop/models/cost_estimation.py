"""Cost estimation model."""

import enum

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import relationship

from workshop.models.base import Base, TimestampMixin, utcnow


class PricingTier(str, enum.Enum):
    """Pricing options offered to the customer."""

    ECONOMIC = "ECONOMIC"
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"


class CustomerDecision(str, enum.Enum):
    """Customer response to an estimate. Only set by an explicit update."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PARTIAL_APPROVAL = "PARTIAL_APPROVAL"


class CostEstimation(Base, TimestampMixin):
    """Three-tier estimate presented to the customer for approval."""

    __tablename__ = "cost_estimations"

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(
        Integer, ForeignKey("service_orders.id"), unique=True, nullable=False, index=True
    )
    estimator_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Tiers (Decimal for currency)
    economic_price = Column(Numeric(10, 2), nullable=False)
    economic_description = Column(Text, nullable=False)
    standard_price = Column(Numeric(10, 2), nullable=False)
    standard_description = Column(Text, nullable=False)
    premium_price = Column(Numeric(10, 2), nullable=False)
    premium_description = Column(Text, nullable=False)

    # Decision
    customer_decision = Column(
        SQLEnum(CustomerDecision), nullable=False, default=CustomerDecision.PENDING
    )
    chosen_tier = Column(SQLEnum(PricingTier))
    decision_date = Column(DateTime(timezone=True))
    notes = Column(Text)

    estimation_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    service_order = relationship("ServiceOrder", back_populates="cost_estimation")

    def price_for(self, tier: PricingTier):
        """Price of the given tier."""
        return {
            PricingTier.ECONOMIC: self.economic_price,
            PricingTier.STANDARD: self.standard_price,
            PricingTier.PREMIUM: self.premium_price,
        }[PricingTier(tier)]

    def __repr__(self):
        return (
            f"<CostEstimation(id={self.id}, service_order_id={self.service_order_id}, "
            f"decision='{self.customer_decision}')>"
        )
