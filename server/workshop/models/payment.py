"""Payment model."""

import enum

from sqlalchemy import Column, Date, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from workshop.models.base import Base, TimestampMixin


class PaymentStatus(str, enum.Enum):
    """Payment lifecycle: PENDING -> PARTIAL / PAID / OVERDUE / CANCELLED."""

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class Payment(Base, TimestampMixin):
    """Settlement of a service order, possibly paid in instalments."""

    __tablename__ = "payments"

    __table_args__ = (Index("ix_payments_status_due", "payment_status", "due_date"),)

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(
        Integer, ForeignKey("service_orders.id"), unique=True, nullable=False, index=True
    )
    processed_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    total_amount = Column(Numeric(10, 2), nullable=False)
    paid_amount = Column(Numeric(10, 2), nullable=False, default=0)
    payment_method = Column(String(50))  # method of the latest instalment
    payment_status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)

    invoice_number = Column(String(40), unique=True, nullable=False, index=True)
    warranty_details = Column(Text)
    due_date = Column(Date)
    paid_at = Column(DateTime(timezone=True))

    service_order = relationship("ServiceOrder", back_populates="payment")

    @property
    def balance_due(self):
        return max(self.total_amount - self.paid_amount, 0)

    def __repr__(self):
        return (
            f"<Payment(id={self.id}, invoice='{self.invoice_number}', "
            f"status='{self.payment_status}')>"
        )
