"""Service order model."""

import enum

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from workshop.models.base import Base, TimestampMixin


class OrderStatus(str, enum.Enum):
    """Service order lifecycle status.

    Values are persisted verbatim and must round-trip unchanged.
    """

    PENDING_INITIAL_CHECK = "PENDING_INITIAL_CHECK"
    TECHNICAL_ANALYSIS = "TECHNICAL_ANALYSIS"
    CUSTOMER_EDUCATION = "CUSTOMER_EDUCATION"
    COST_ESTIMATION = "COST_ESTIMATION"
    AWAITING_APPROVAL = "AWAITING_APPROVAL"
    WORK_IN_PROGRESS = "WORK_IN_PROGRESS"
    QUALITY_CONTROL = "QUALITY_CONTROL"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ServiceType(str, enum.Enum):
    """Service type tags offered at intake."""

    AC = "AC"
    RADIATOR = "RADIATOR"
    TUNE_UP = "TUNE_UP"
    MAINTENANCE = "MAINTENANCE"
    CUSTOM = "CUSTOM"


class ServiceOrder(Base, TimestampMixin):
    """Service order for one vehicle visit.

    ``status`` is only ever written by the workflow service; every other
    caller goes through ``workshop.workflow.service.ServiceOrderWorkflow``.
    """

    __tablename__ = "service_orders"

    __table_args__ = (
        Index("ix_service_orders_status_created", "status", "created_at"),
        Index("ix_service_orders_mechanic_status", "assigned_mechanic_id", "status"),
    )

    # Primary Identity
    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(40), unique=True, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    # Intake Details
    service_types = Column(JSON, nullable=False)  # list of ServiceType values
    complaints = Column(Text, nullable=False)
    referral_source = Column(String(200))
    body_defects = Column(Text)
    other_defects = Column(Text)

    # Assignment
    assigned_mechanic_id = Column(Integer, ForeignKey("users.id"), index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Status & Workflow
    status = Column(
        SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING_INITIAL_CHECK, index=True
    )
    cancellation_reason = Column(String(500))
    completed_at = Column(DateTime(timezone=True))

    # Relationships
    customer = relationship("Customer", back_populates="service_orders")
    vehicle = relationship("Vehicle", back_populates="service_orders")
    initial_check = relationship("InitialCheck", uselist=False, back_populates="service_order")
    technical_analysis = relationship(
        "TechnicalAnalysis", uselist=False, back_populates="service_order"
    )
    customer_education = relationship(
        "CustomerEducation", uselist=False, back_populates="service_order"
    )
    cost_estimation = relationship("CostEstimation", uselist=False, back_populates="service_order")
    work_execution = relationship("WorkExecution", uselist=False, back_populates="service_order")
    quality_control = relationship("QualityControl", uselist=False, back_populates="service_order")
    payment = relationship("Payment", uselist=False, back_populates="service_order")

    def __repr__(self):
        return f"<ServiceOrder(id={self.id}, number='{self.order_number}', status='{self.status}')>"
