"""
Stage record validators.

Each ``validate_*`` function takes the request schema for a stage and returns
a normalised dict ready to be stored, or raises ``ValidationError`` for the
first violated field. Fields are checked in declaration order and errors are
never aggregated.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlparse

from workshop.config import settings
from workshop.exceptions import ValidationError
from workshop.models.cost_estimation import CustomerDecision, PricingTier
from workshop.models.customer_education import UnderstandingLevel
from workshop.models.payment import PaymentStatus
from workshop.models.quality_control import QcStatus
from workshop.schemas.entities import ServiceOrderCreate
from workshop.schemas.stages import (
    CostEstimationInput,
    CustomerDecisionInput,
    CustomerEducationInput,
    InitialCheckInput,
    InvoiceInput,
    PaymentInput,
    QualityControlInput,
    TechnicalAnalysisInput,
    WorkExecutionInput,
)

INITIAL_CHECK_FIELDS = ("headlights", "horn", "brakes", "tires", "fluids", "battery")
TIERS = ("economic", "standard", "premium")


# ============================================================================
# Field helpers
# ============================================================================


def _required_text(field: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, "is required")
    return value.strip()


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _positive(field: str, value: Optional[Decimal]) -> Decimal:
    if value is None:
        raise ValidationError(field, "is required")
    value = Decimal(value)
    if not value.is_finite() or value <= 0:
        raise ValidationError(field, "must be greater than zero")
    return value


def _enum_member(field: str, enum_cls, value: Optional[str], allowed: Iterable = None):
    if value is None or value == "":
        raise ValidationError(field, "is required")
    try:
        member = enum_cls(value)
    except ValueError:
        options = ", ".join(m.value for m in (allowed or enum_cls))
        raise ValidationError(field, f"must be one of {options}")
    if allowed is not None and member not in allowed:
        options = ", ".join(m.value for m in allowed)
        raise ValidationError(field, f"must be one of {options}")
    return member


def _boolean_map(field: str, value: Optional[Mapping[str, Any]]) -> Dict[str, bool]:
    if value is None:
        return {}
    checks = {}
    for name, passed in value.items():
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(field, "check names must be non-empty strings")
        if not isinstance(passed, bool):
            raise ValidationError(field, f"check '{name}' must be true or false")
        checks[name.strip()] = passed
    return checks


def is_well_formed_url(url: str) -> bool:
    """http(s) URL with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# ============================================================================
# Derived values
# ============================================================================


def derive_qc_status(final_approval: bool, defects_found: Optional[str]) -> QcStatus:
    """QC outcome as a pure function of approval and recorded defects."""
    if final_approval:
        return QcStatus.PASSED
    if defects_found and defects_found.strip():
        return QcStatus.FAILED
    return QcStatus.PENDING


def checklist_complete(checklist: Optional[Mapping[str, bool]]) -> bool:
    """An empty checklist is never complete."""
    return bool(checklist) and all(checklist.values())


def check_payment_status(status: PaymentStatus, paid_at: Optional[datetime]) -> None:
    """A PAID payment must carry the time it was settled."""
    if PaymentStatus(status) == PaymentStatus.PAID and paid_at is None:
        raise ValidationError("paid_at", "is required when payment status is PAID")


# ============================================================================
# Intake
# ============================================================================


def validate_service_order(data: ServiceOrderCreate) -> Dict[str, Any]:
    if not data.service_types:
        raise ValidationError("service_types", "at least one service type is required")
    complaints = _required_text("complaints", data.complaints)

    # Preserve order, drop duplicates
    service_types: List[str] = []
    for service_type in data.service_types:
        if service_type.value not in service_types:
            service_types.append(service_type.value)

    return {
        "customer_id": data.customer_id,
        "vehicle_id": data.vehicle_id,
        "service_types": service_types,
        "complaints": complaints,
        "referral_source": _optional_text(data.referral_source),
        "body_defects": _optional_text(data.body_defects),
        "other_defects": _optional_text(data.other_defects),
        "assigned_mechanic_id": data.assigned_mechanic_id,
    }


# ============================================================================
# Stages
# ============================================================================


def validate_initial_check(data: InitialCheckInput) -> Dict[str, Any]:
    record: Dict[str, Any] = {}
    for field in INITIAL_CHECK_FIELDS:
        value = getattr(data, field)
        if value is None:
            raise ValidationError(field, "is required")
        record[field] = bool(value)
    record["additional_findings"] = _optional_text(data.additional_findings)
    return record


def validate_technical_analysis(data: TechnicalAnalysisInput) -> Dict[str, Any]:
    record = {
        "problem_description": _required_text("problem_description", data.problem_description),
        "root_cause_analysis": _required_text("root_cause_analysis", data.root_cause_analysis),
        "recommended_actions": _required_text("recommended_actions", data.recommended_actions),
    }

    urls = []
    for url in data.visual_evidence_urls or []:
        url = (url or "").strip()
        if not is_well_formed_url(url):
            raise ValidationError("visual_evidence_urls", f"invalid URL: {url!r}")
        urls.append(url)
    record["visual_evidence_urls"] = urls
    return record


def validate_customer_education(data: CustomerEducationInput) -> Dict[str, Any]:
    return {
        "explanation_provided": _required_text("explanation_provided", data.explanation_provided),
        "understanding_level": _enum_member(
            "understanding_level", UnderstandingLevel, data.understanding_level
        ),
        "customer_questions": _optional_text(data.customer_questions),
        "notes": _optional_text(data.notes),
    }


def validate_cost_estimation(data: CostEstimationInput) -> Dict[str, Any]:
    record: Dict[str, Any] = {}
    for tier in TIERS:
        record[f"{tier}_price"] = _positive(f"{tier}_price", getattr(data, f"{tier}_price"))
        record[f"{tier}_description"] = _required_text(
            f"{tier}_description", getattr(data, f"{tier}_description")
        )

    if settings.ENFORCE_TIER_ORDERING:
        if record["standard_price"] < record["economic_price"]:
            raise ValidationError("standard_price", "must not be lower than economic_price")
        if record["premium_price"] < record["standard_price"]:
            raise ValidationError("premium_price", "must not be lower than standard_price")

    record["notes"] = _optional_text(data.notes)
    return record


def validate_customer_decision(data: CustomerDecisionInput) -> Dict[str, Any]:
    decision = _enum_member(
        "customer_decision",
        CustomerDecision,
        data.customer_decision,
        allowed=(
            CustomerDecision.APPROVED,
            CustomerDecision.REJECTED,
            CustomerDecision.PARTIAL_APPROVAL,
        ),
    )

    chosen_tier = None
    if decision in (CustomerDecision.APPROVED, CustomerDecision.PARTIAL_APPROVAL):
        chosen_tier = _enum_member("chosen_tier", PricingTier, data.chosen_tier)
    elif data.chosen_tier:
        raise ValidationError("chosen_tier", "must be empty when the estimate is rejected")

    return {
        "customer_decision": decision,
        "chosen_tier": chosen_tier,
        "notes": _optional_text(data.notes),
    }


def validate_work_execution(data: WorkExecutionInput) -> Dict[str, Any]:
    # Whether the checklist allows completion is a transition guard, not a field rule
    return {
        "work_description": _required_text("work_description", data.work_description),
        "labor_hours": _positive("labor_hours", data.labor_hours),
        "parts_used": [part.strip() for part in (data.parts_used or []) if part and part.strip()],
        "new_findings": _optional_text(data.new_findings),
        "completion_checklist": _boolean_map("completion_checklist", data.completion_checklist),
    }


def validate_quality_control(data: QualityControlInput) -> Dict[str, Any]:
    critical_factors = _boolean_map("critical_factors_check", data.critical_factors_check)
    if data.final_approval is None:
        raise ValidationError("final_approval", "is required")

    defects_found = (data.defects_found or "").strip()
    return {
        "critical_factors_check": critical_factors,
        "defects_found": defects_found,
        "final_approval": data.final_approval,
        "qc_status": derive_qc_status(data.final_approval, defects_found),
        "verification_notes": _optional_text(data.verification_notes),
    }


def validate_invoice(data: InvoiceInput) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "due_date": data.due_date,
        "warranty_details": _optional_text(data.warranty_details),
    }
    if data.total_amount is not None:
        record["total_amount"] = _positive("total_amount", data.total_amount)
    return record


def validate_payment(data: PaymentInput) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "amount": _positive("amount", data.amount),
        "payment_method": _required_text("payment_method", data.payment_method),
        "paid_at": data.paid_at,
        "due_date": data.due_date,
        "warranty_details": _optional_text(data.warranty_details),
    }
    if data.total_amount is not None:
        record["total_amount"] = _positive("total_amount", data.total_amount)
    return record
