"""Database models for the application."""

from workshop.models.base import Base
from workshop.models.cost_estimation import CostEstimation, CustomerDecision, PricingTier
from workshop.models.customer import Customer
from workshop.models.customer_education import CustomerEducation, UnderstandingLevel
from workshop.models.initial_check import InitialCheck
from workshop.models.notification_log import NotificationLog, NotificationStatus
from workshop.models.payment import Payment, PaymentStatus
from workshop.models.quality_control import QcStatus, QualityControl
from workshop.models.service_order import OrderStatus, ServiceOrder, ServiceType
from workshop.models.technical_analysis import TechnicalAnalysis
from workshop.models.templates import AnalysisTemplate, EstimationLibraryItem, WhatsappTemplate
from workshop.models.user import User, UserRole
from workshop.models.vehicle import Vehicle
from workshop.models.work_execution import WorkExecution

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Customer",
    "Vehicle",
    "ServiceOrder",
    "OrderStatus",
    "ServiceType",
    "InitialCheck",
    "TechnicalAnalysis",
    "CustomerEducation",
    "UnderstandingLevel",
    "CostEstimation",
    "CustomerDecision",
    "PricingTier",
    "WorkExecution",
    "QualityControl",
    "QcStatus",
    "Payment",
    "PaymentStatus",
    "AnalysisTemplate",
    "EstimationLibraryItem",
    "WhatsappTemplate",
    "NotificationLog",
    "NotificationStatus",
]
