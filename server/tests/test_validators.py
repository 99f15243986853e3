"""Tests for stage record validators."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from workshop.exceptions import ValidationError
from workshop.models.cost_estimation import CustomerDecision, PricingTier
from workshop.models.customer_education import UnderstandingLevel
from workshop.models.payment import PaymentStatus
from workshop.models.quality_control import QcStatus
from workshop.models.service_order import ServiceType
from workshop.schemas.entities import ServiceOrderCreate
from workshop.schemas.stages import (
    CustomerDecisionInput,
    CustomerEducationInput,
    InvoiceInput,
    PaymentInput,
)
from workshop.workflow import validators

from factories import (
    estimation_input,
    initial_check_input,
    payment_input,
    qc_input,
    technical_analysis_input,
    work_input,
)


def assert_rejected(field: str, func, *args):
    with pytest.raises(ValidationError) as exc_info:
        func(*args)
    assert exc_info.value.field == field
    return exc_info.value


class TestQcDerivation:
    """qc_status is a pure function of final_approval and defects_found."""

    @pytest.mark.parametrize(
        "final_approval,defects,expected",
        [
            (True, "", QcStatus.PASSED),
            (True, "Scratch on bumper", QcStatus.PASSED),
            (False, "Vent temperature too high", QcStatus.FAILED),
            (False, "", QcStatus.PENDING),
            (False, "   ", QcStatus.PENDING),
            (False, None, QcStatus.PENDING),
        ],
    )
    def test_derive_qc_status(self, final_approval, defects, expected):
        assert validators.derive_qc_status(final_approval, defects) == expected

    def test_validator_sets_derived_status(self):
        record = validators.validate_quality_control(qc_input(False, "Leak remains"))
        assert record["qc_status"] == QcStatus.FAILED
        assert record["defects_found"] == "Leak remains"

    def test_final_approval_required(self):
        data = qc_input()
        data.final_approval = None
        assert_rejected("final_approval", validators.validate_quality_control, data)


class TestIntake:
    def test_service_types_required(self):
        data = ServiceOrderCreate(customer_id=1, vehicle_id=1, complaints="Noise")
        assert_rejected("service_types", validators.validate_service_order, data)

    def test_complaints_required(self):
        data = ServiceOrderCreate(
            customer_id=1, vehicle_id=1, service_types=[ServiceType.AC], complaints="  "
        )
        assert_rejected("complaints", validators.validate_service_order, data)

    def test_service_types_deduplicated_in_order(self):
        data = ServiceOrderCreate(
            customer_id=1,
            vehicle_id=1,
            service_types=[ServiceType.RADIATOR, ServiceType.AC, ServiceType.RADIATOR],
            complaints=" Overheating ",
        )
        record = validators.validate_service_order(data)
        assert record["service_types"] == ["RADIATOR", "AC"]
        assert record["complaints"] == "Overheating"


class TestStages:
    def test_initial_check_requires_all_checks(self):
        assert_rejected("horn", validators.validate_initial_check, initial_check_input(horn=None))

    def test_initial_check_first_missing_field_wins(self):
        data = initial_check_input(brakes=None, battery=None)
        assert_rejected("brakes", validators.validate_initial_check, data)

    def test_technical_analysis_rejects_bad_url(self):
        data = technical_analysis_input(visual_evidence_urls=["ftp://files/x.jpg"])
        assert_rejected("visual_evidence_urls", validators.validate_technical_analysis, data)

    def test_technical_analysis_defaults_to_no_evidence(self):
        record = validators.validate_technical_analysis(
            technical_analysis_input(visual_evidence_urls=None)
        )
        assert record["visual_evidence_urls"] == []

    def test_education_level_must_be_known(self):
        data = CustomerEducationInput(explanation_provided="Explained", understanding_level="MAYBE")
        error = assert_rejected("understanding_level", validators.validate_customer_education, data)
        assert "REFUSED_SERVICE" in error.reason

    def test_education_parses_level(self):
        data = CustomerEducationInput(
            explanation_provided="Explained", understanding_level="REFUSED_SERVICE"
        )
        record = validators.validate_customer_education(data)
        assert record["understanding_level"] == UnderstandingLevel.REFUSED_SERVICE

    @pytest.mark.parametrize("price", [Decimal("0"), Decimal("-10"), None])
    def test_estimation_prices_must_be_positive(self, price):
        data = estimation_input(standard_price=price)
        assert_rejected("standard_price", validators.validate_cost_estimation, data)

    def test_estimation_tier_ordering_is_optional(self):
        data = estimation_input(economic_price=Decimal("5000000"))
        assert validators.validate_cost_estimation(data)["economic_price"] == Decimal("5000000")

        with patch.object(validators.settings, "ENFORCE_TIER_ORDERING", True):
            assert_rejected("standard_price", validators.validate_cost_estimation, data)

    def test_decision_requires_tier_on_approval(self):
        data = CustomerDecisionInput(customer_decision="APPROVED")
        assert_rejected("chosen_tier", validators.validate_customer_decision, data)

    def test_decision_cannot_be_pending(self):
        data = CustomerDecisionInput(customer_decision="PENDING")
        assert_rejected("customer_decision", validators.validate_customer_decision, data)

    def test_rejection_without_tier(self):
        record = validators.validate_customer_decision(
            CustomerDecisionInput(customer_decision="REJECTED")
        )
        assert record["customer_decision"] == CustomerDecision.REJECTED
        assert record["chosen_tier"] is None

    def test_partial_approval_with_tier(self):
        record = validators.validate_customer_decision(
            CustomerDecisionInput(customer_decision="PARTIAL_APPROVAL", chosen_tier="ECONOMIC")
        )
        assert record["chosen_tier"] == PricingTier.ECONOMIC

    def test_labor_hours_must_be_positive(self):
        assert_rejected(
            "labor_hours", validators.validate_work_execution, work_input(labor_hours=Decimal("0"))
        )

    def test_open_checklist_is_left_to_the_transition(self):
        data = work_input(completion_checklist={"leak_test": True, "vent_temperature": False})
        record = validators.validate_work_execution(data)
        assert record["completion_checklist"] == {"leak_test": True, "vent_temperature": False}

    def test_progress_update_allows_open_checklist(self):
        data = work_input(mark_complete=False, completion_checklist={"leak_test": False})
        record = validators.validate_work_execution(data)
        assert record["completion_checklist"] == {"leak_test": False}

    def test_checklist_names_must_not_be_blank(self):
        data = work_input(completion_checklist={"  ": True})
        assert_rejected("completion_checklist", validators.validate_work_execution, data)

    def test_empty_checklist_is_not_complete(self):
        assert not validators.checklist_complete({})
        assert not validators.checklist_complete(None)
        assert validators.checklist_complete({"a": True})


class TestPayment:
    def test_amount_must_be_positive(self):
        assert_rejected("amount", validators.validate_payment, payment_input(0))

    def test_method_required(self):
        assert_rejected("payment_method", validators.validate_payment, payment_input(10, method=" "))

    def test_total_must_be_positive_when_given(self):
        data = PaymentInput(amount=Decimal("10"), payment_method="CASH", total_amount=Decimal("-1"))
        assert_rejected("total_amount", validators.validate_payment, data)

    def test_paid_status_needs_timestamp(self):
        assert_rejected(
            "paid_at", validators.check_payment_status, PaymentStatus.PAID, None
        )
        validators.check_payment_status(PaymentStatus.PAID, datetime.now(timezone.utc))
        validators.check_payment_status(PaymentStatus.PARTIAL, None)

    def test_invoice_total_optional(self):
        record = validators.validate_invoice(InvoiceInput(warranty_details=" 3 months "))
        assert "total_amount" not in record
        assert record["warranty_details"] == "3 months"
