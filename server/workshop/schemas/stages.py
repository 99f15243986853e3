"""Schemas for the workflow stage records.

Input models only fix the wire types; required-field and business checks
live in ``workshop.workflow.validators`` so they can report the first
violated field in a uniform way.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

from workshop.models.cost_estimation import CustomerDecision, PricingTier
from workshop.models.customer_education import UnderstandingLevel
from workshop.models.payment import PaymentStatus
from workshop.models.quality_control import QcStatus
from workshop.models.service_order import OrderStatus
from workshop.schemas.entities import ORMModel, ServiceOrderRead

RecordT = TypeVar("RecordT")

# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class InitialCheckInput(BaseModel):
    headlights: Optional[bool] = None
    horn: Optional[bool] = None
    brakes: Optional[bool] = None
    tires: Optional[bool] = None
    fluids: Optional[bool] = None
    battery: Optional[bool] = None
    additional_findings: Optional[str] = None


class TechnicalAnalysisInput(BaseModel):
    problem_description: Optional[str] = None
    root_cause_analysis: Optional[str] = None
    recommended_actions: Optional[str] = None
    visual_evidence_urls: Optional[List[str]] = None


class CustomerEducationInput(BaseModel):
    explanation_provided: Optional[str] = None
    understanding_level: Optional[str] = None
    customer_questions: Optional[str] = None
    notes: Optional[str] = None


class CostEstimationInput(BaseModel):
    economic_price: Optional[Decimal] = None
    economic_description: Optional[str] = None
    standard_price: Optional[Decimal] = None
    standard_description: Optional[str] = None
    premium_price: Optional[Decimal] = None
    premium_description: Optional[str] = None
    notes: Optional[str] = None


class CustomerDecisionInput(BaseModel):
    customer_decision: Optional[str] = None
    chosen_tier: Optional[str] = None
    notes: Optional[str] = None


class WorkExecutionInput(BaseModel):
    work_description: Optional[str] = None
    labor_hours: Optional[Decimal] = None
    parts_used: Optional[List[str]] = None
    new_findings: Optional[str] = None
    completion_checklist: Optional[Dict[str, bool]] = None
    mark_complete: bool = False


class QualityControlInput(BaseModel):
    critical_factors_check: Optional[Dict[str, bool]] = None
    defects_found: Optional[str] = None
    final_approval: Optional[bool] = None
    verification_notes: Optional[str] = None


class InvoiceInput(BaseModel):
    total_amount: Optional[Decimal] = None
    due_date: Optional[date] = None
    warranty_details: Optional[str] = None


class PaymentInput(BaseModel):
    amount: Optional[Decimal] = None
    payment_method: Optional[str] = None
    total_amount: Optional[Decimal] = None
    paid_at: Optional[datetime] = None
    due_date: Optional[date] = None
    warranty_details: Optional[str] = None


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class InitialCheckRead(ORMModel):
    id: int
    service_order_id: int
    mechanic_id: int
    headlights: bool
    horn: bool
    brakes: bool
    tires: bool
    fluids: bool
    battery: bool
    additional_findings: Optional[str] = None
    check_date: datetime
    created_at: datetime


class TechnicalAnalysisRead(ORMModel):
    id: int
    service_order_id: int
    mechanic_id: int
    problem_description: str
    root_cause_analysis: str
    recommended_actions: str
    visual_evidence_urls: List[str]
    analysis_date: datetime
    created_at: datetime


class CustomerEducationRead(ORMModel):
    id: int
    service_order_id: int
    educator_id: int
    explanation_provided: str
    understanding_level: UnderstandingLevel
    customer_questions: Optional[str] = None
    notes: Optional[str] = None
    education_date: datetime
    created_at: datetime


class CostEstimationRead(ORMModel):
    id: int
    service_order_id: int
    estimator_id: int
    economic_price: Decimal
    economic_description: str
    standard_price: Decimal
    standard_description: str
    premium_price: Decimal
    premium_description: str
    customer_decision: CustomerDecision
    chosen_tier: Optional[PricingTier] = None
    decision_date: Optional[datetime] = None
    notes: Optional[str] = None
    estimation_date: datetime
    created_at: datetime


class WorkExecutionRead(ORMModel):
    id: int
    service_order_id: int
    mechanic_id: int
    work_description: str
    labor_hours: Decimal
    parts_used: List[str]
    new_findings: Optional[str] = None
    completion_checklist: Dict[str, bool]
    is_completed: bool
    completed_at: Optional[datetime] = None
    work_date: datetime
    created_at: datetime


class QualityControlRead(ORMModel):
    id: int
    service_order_id: int
    inspector_id: int
    critical_factors_check: Dict[str, bool]
    defects_found: str
    final_approval: bool
    qc_status: QcStatus
    verification_notes: Optional[str] = None
    inspection_date: datetime
    created_at: datetime


class PaymentRead(ORMModel):
    id: int
    service_order_id: int
    processed_by_id: int
    total_amount: Decimal
    paid_amount: Decimal
    payment_method: Optional[str] = None
    payment_status: PaymentStatus
    invoice_number: str
    warranty_details: Optional[str] = None
    due_date: Optional[date] = None
    paid_at: Optional[datetime] = None
    created_at: datetime


class StageResponse(BaseModel, Generic[RecordT]):
    """A workflow step: the order after the step and the record it touched."""

    order: ServiceOrderRead
    record: Optional[RecordT] = None
    previous_status: OrderStatus
    status_changed: bool
