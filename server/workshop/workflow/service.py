"""
Service order workflow.

Every stage submission runs as one unit of work:

1. validate the input (``ValidationError``, nothing touched)
2. load the actor and re-read the order row ``FOR UPDATE``
3. ask the state machine for the next status (``InvalidTransition``)
4. write the stage record and compare-and-set the status
5. commit, then notify the customer if the new status calls for it

Any error before the commit rolls the whole transaction back, so an order's
status never disagrees with its stage records.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import settings
from workshop.exceptions import Conflict, InvalidTransition, NotFound, ValidationError
from workshop.models.base import utcnow
from workshop.models.cost_estimation import CostEstimation, CustomerDecision
from workshop.models.customer_education import CustomerEducation
from workshop.models.initial_check import InitialCheck
from workshop.models.payment import Payment, PaymentStatus
from workshop.models.quality_control import QcStatus, QualityControl
from workshop.models.service_order import OrderStatus, ServiceOrder
from workshop.models.technical_analysis import TechnicalAnalysis
from workshop.models.user import User
from workshop.models.work_execution import WorkExecution
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
from workshop.services.notifications import Notifier, dispatch_notification
from workshop.store.service_orders import (
    apply_status,
    create_service_order,
    get_service_order_for_update,
)
from workshop.store.stage_records import (
    create_stage_record,
    get_stage_record_for_order,
    unused_invoice_number,
    update_stage_record,
)
from workshop.store.users import require_actor
from workshop.workflow import validators
from workshop.workflow.state_machine import (
    TransitionContext,
    WorkflowEvent,
    next_status,
    notification_for,
)

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    """Outcome of a workflow step."""

    order: ServiceOrder
    record: Any
    previous_status: OrderStatus

    @property
    def status_changed(self) -> bool:
        return self.order.status != self.previous_status


class ServiceOrderWorkflow:
    """Drives service orders through their stages.

    With ``background`` set, customer notifications are queued on it and sent
    after the response instead of being awaited inside the request.
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: Optional[Notifier] = None,
        background: Optional[BackgroundTasks] = None,
    ):
        self.db = session
        self.notifier = notifier
        self.background = background

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _unit_of_work(self):
        try:
            yield
        except Exception:
            await self.db.rollback()
            raise

    async def _begin(self, order_id: int, actor_id: int) -> Tuple[ServiceOrder, User]:
        actor = await require_actor(self.db, actor_id)
        order = await get_service_order_for_update(self.db, order_id)
        return order, actor

    async def _finish(
        self,
        order: ServiceOrder,
        record: Any,
        previous: OrderStatus,
        new: OrderStatus,
        event: WorkflowEvent,
        payload: Optional[Dict[str, Any]] = None,
        **fields: Any,
    ) -> StageResult:
        if new == OrderStatus.COMPLETED:
            fields.setdefault("completed_at", utcnow())

        await apply_status(self.db, order, previous, new, event, **fields)
        await self.db.commit()

        if new != previous:
            logger.info(
                f"Service order {order.order_number}: {previous.value} -> {new.value} ({event.value})"
            )

        kind = notification_for(previous, new)
        if kind is not None:
            if self.background is not None:
                self.background.add_task(dispatch_notification, self.notifier, order.id, kind, payload)
            else:
                await dispatch_notification(self.notifier, order.id, kind, payload)

        return StageResult(order=order, record=record, previous_status=previous)

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    async def open_order(self, data: ServiceOrderCreate, actor_id: int) -> ServiceOrder:
        """Create a service order in PENDING_INITIAL_CHECK."""
        record = validators.validate_service_order(data)
        async with self._unit_of_work():
            return await create_service_order(self.db, record, actor_id)

    # ------------------------------------------------------------------
    # Linear stages
    # ------------------------------------------------------------------

    async def _record_linear_stage(
        self, order_id: int, actor_id: int, model, event: WorkflowEvent, record: Dict[str, Any]
    ) -> StageResult:
        async with self._unit_of_work():
            order, _ = await self._begin(order_id, actor_id)
            previous = order.status
            new = next_status(previous, event)

            stage = await create_stage_record(self.db, model, order.id, actor_id, record)
            return await self._finish(order, stage, previous, new, event)

    async def record_initial_check(
        self, order_id: int, data: InitialCheckInput, actor_id: int
    ) -> StageResult:
        record = validators.validate_initial_check(data)
        return await self._record_linear_stage(
            order_id, actor_id, InitialCheck, WorkflowEvent.INITIAL_CHECK_RECORDED, record
        )

    async def record_technical_analysis(
        self, order_id: int, data: TechnicalAnalysisInput, actor_id: int
    ) -> StageResult:
        record = validators.validate_technical_analysis(data)
        return await self._record_linear_stage(
            order_id, actor_id, TechnicalAnalysis, WorkflowEvent.TECHNICAL_ANALYSIS_RECORDED, record
        )

    async def record_customer_education(
        self, order_id: int, data: CustomerEducationInput, actor_id: int
    ) -> StageResult:
        """A customer who refuses service cancels the order here."""
        record = validators.validate_customer_education(data)
        event = WorkflowEvent.CUSTOMER_EDUCATION_RECORDED

        async with self._unit_of_work():
            order, _ = await self._begin(order_id, actor_id)
            previous = order.status
            new = next_status(
                previous, event, TransitionContext(understanding_level=record["understanding_level"])
            )

            stage = await create_stage_record(self.db, CustomerEducation, order.id, actor_id, record)

            fields = {}
            if new == OrderStatus.CANCELLED:
                fields["cancellation_reason"] = "Customer refused service"
            return await self._finish(
                order, stage, previous, new, event, {"reason": fields.get("cancellation_reason")}, **fields
            )

    async def record_cost_estimation(
        self, order_id: int, data: CostEstimationInput, actor_id: int
    ) -> StageResult:
        """Store the three-tier estimate; the decision starts out PENDING."""
        record = validators.validate_cost_estimation(data)
        record["customer_decision"] = CustomerDecision.PENDING
        event = WorkflowEvent.COST_ESTIMATE_RECORDED

        async with self._unit_of_work():
            order, _ = await self._begin(order_id, actor_id)
            previous = order.status
            new = next_status(previous, event)

            stage = await create_stage_record(self.db, CostEstimation, order.id, actor_id, record)
            payload = {
                "economic_price": str(stage.economic_price),
                "standard_price": str(stage.standard_price),
                "premium_price": str(stage.premium_price),
            }
            return await self._finish(order, stage, previous, new, event, payload)

    async def record_customer_decision(
        self, order_id: int, data: CustomerDecisionInput, actor_id: int
    ) -> StageResult:
        """Record approval or rejection of the estimate."""
        record = validators.validate_customer_decision(data)
        event = WorkflowEvent.CUSTOMER_DECISION_RECORDED

        async with self._unit_of_work():
            order, _ = await self._begin(order_id, actor_id)
            previous = order.status
            new = next_status(
                previous,
                event,
                TransitionContext(
                    customer_decision=record["customer_decision"],
                    chosen_tier=record["chosen_tier"],
                ),
            )

            estimation = await get_stage_record_for_order(self.db, CostEstimation, order.id)
            if estimation is None:
                raise NotFound("CostEstimation", f"for service order {order.id}")

            changes = {
                "customer_decision": record["customer_decision"],
                "chosen_tier": record["chosen_tier"],
                "decision_date": utcnow(),
            }
            if record["notes"] is not None:
                changes["notes"] = record["notes"]
            await update_stage_record(self.db, estimation, changes)

            fields = {}
            if new == OrderStatus.CANCELLED:
                fields["cancellation_reason"] = "Customer rejected the estimate"
            return await self._finish(
                order,
                estimation,
                previous,
                new,
                event,
                {"reason": fields.get("cancellation_reason")},
                **fields,
            )

    # ------------------------------------------------------------------
    # Work and quality control (create or update)
    # ------------------------------------------------------------------

    async def record_work_execution(
        self, order_id: int, data: WorkExecutionInput, actor_id: int
    ) -> StageResult:
        """
        Create or update the work log of an order in WORK_IN_PROGRESS.

        With ``mark_complete`` the work is closed and the order moves to
        QUALITY_CONTROL; otherwise the status is left as is.
        """
        record = validators.validate_work_execution(data)
        event = WorkflowEvent.WORK_EXECUTION_RECORDED

        async with self._unit_of_work():
            order, _ = await self._begin(order_id, actor_id)
            previous = order.status
            new = next_status(
                previous,
                event,
                TransitionContext(
                    work_completed=data.mark_complete,
                    checklist_complete=validators.checklist_complete(record["completion_checklist"]),
                ),
            )

            if data.mark_complete:
                record["is_completed"] = True
                record["completed_at"] = utcnow()

            existing = await get_stage_record_for_order(self.db, WorkExecution, order.id)
            if existing is None:
                stage = await create_stage_record(self.db, WorkExecution, order.id, actor_id, record)
            else:
                stage = await update_stage_record(self.db, existing, record, actor_id)

            return await self._finish(order, stage, previous, new, event)

    async def record_quality_control(
        self, order_id: int, data: QualityControlInput, actor_id: int
    ) -> StageResult:
        """
        Create or update the QC inspection of an order in QUALITY_CONTROL.

        A failed inspection sends the order back to WORK_IN_PROGRESS and
        reopens the work log so it has to be completed again.
        """
        record = validators.validate_quality_control(data)
        event = WorkflowEvent.QUALITY_CONTROL_RECORDED

        async with self._unit_of_work():
            order, _ = await self._begin(order_id, actor_id)
            previous = order.status
            new = next_status(previous, event, TransitionContext(qc_status=record["qc_status"]))

            existing = await get_stage_record_for_order(self.db, QualityControl, order.id)
            if existing is None:
                stage = await create_stage_record(self.db, QualityControl, order.id, actor_id, record)
            else:
                stage = await update_stage_record(self.db, existing, record, actor_id)

            if record["qc_status"] in (QcStatus.FAILED, QcStatus.NEEDS_REWORK):
                work = await get_stage_record_for_order(self.db, WorkExecution, order.id)
                if work is not None:
                    await update_stage_record(
                        self.db, work, {"is_completed": False, "completed_at": None}
                    )
                logger.info(f"Service order {order.order_number} sent back for rework")

            return await self._finish(order, stage, previous, new, event)

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    async def _estimated_total(self, order: ServiceOrder) -> Decimal:
        estimation = await get_stage_record_for_order(self.db, CostEstimation, order.id)
        if estimation is None or estimation.chosen_tier is None:
            raise ValidationError("total_amount", "is required when no estimate tier was approved")
        return Decimal(estimation.price_for(estimation.chosen_tier))

    async def _new_payment(
        self, order: ServiceOrder, record: Dict[str, Any]
    ) -> Dict[str, Any]:
        total = record.get("total_amount")
        if total is None:
            total = await self._estimated_total(order)
        due_date = record.get("due_date") or (utcnow() + timedelta(days=settings.PAYMENT_DUE_DAYS)).date()
        return {
            "total_amount": total,
            "paid_amount": Decimal("0"),
            "payment_status": PaymentStatus.PENDING,
            "invoice_number": await unused_invoice_number(self.db),
            "warranty_details": record.get("warranty_details"),
            "due_date": due_date,
        }

    async def issue_invoice(self, order_id: int, data: InvoiceInput, actor_id: int) -> StageResult:
        """
        Open the payment record of an order awaiting payment without taking
        any money. The status does not change.
        """
        record = validators.validate_invoice(data)

        async with self._unit_of_work():
            order, _ = await self._begin(order_id, actor_id)
            if order.status != OrderStatus.AWAITING_PAYMENT:
                raise InvalidTransition(
                    order.status, WorkflowEvent.PAYMENT_RECORDED, "invoices are issued in AWAITING_PAYMENT"
                )
            if await get_stage_record_for_order(self.db, Payment, order.id) is not None:
                raise Conflict("Payment", "service_order_id")

            payment = await create_stage_record(
                self.db, Payment, order.id, actor_id, await self._new_payment(order, record)
            )
            await self.db.commit()

            logger.info(f"Invoice {payment.invoice_number} issued for order {order.order_number}")
            return StageResult(order=order, record=payment, previous_status=order.status)

    async def record_payment(self, order_id: int, data: PaymentInput, actor_id: int) -> StageResult:
        """
        Record a payment instalment.

        The first call opens the payment record (total defaults to the price
        of the approved tier). Once the paid amount reaches the total the
        payment is PAID and the order COMPLETED; before that it is PARTIAL
        and the order stays in AWAITING_PAYMENT.
        """
        record = validators.validate_payment(data)
        event = WorkflowEvent.PAYMENT_RECORDED

        async with self._unit_of_work():
            order, _ = await self._begin(order_id, actor_id)
            previous = order.status
            if previous != OrderStatus.AWAITING_PAYMENT:
                # Let the state machine report the out-of-order submission
                next_status(previous, event, TransitionContext())

            payment = await get_stage_record_for_order(self.db, Payment, order.id)
            if payment is None:
                values = await self._new_payment(order, record)
                total = values["total_amount"]
                already_paid = Decimal("0")
            else:
                values = {}
                total = Decimal(payment.total_amount)
                if "total_amount" in record and record["total_amount"] != total:
                    raise ValidationError("total_amount", f"does not match the invoiced total {total}")
                already_paid = Decimal(payment.paid_amount)

            paid = already_paid + record["amount"]
            new = next_status(
                previous, event, TransitionContext(paid_amount=paid, total_amount=total)
            )

            if paid >= total:
                status = PaymentStatus.PAID
                paid_at = record["paid_at"] or utcnow()
            else:
                status = PaymentStatus.PARTIAL
                paid_at = None
            validators.check_payment_status(status, paid_at)

            values.update(
                {
                    "paid_amount": paid,
                    "payment_method": record["payment_method"],
                    "payment_status": status,
                    "paid_at": paid_at,
                }
            )
            if record["due_date"] is not None:
                values["due_date"] = record["due_date"]
            if record["warranty_details"] is not None:
                values["warranty_details"] = record["warranty_details"]

            if payment is None:
                payment = await create_stage_record(self.db, Payment, order.id, actor_id, values)
            else:
                payment = await update_stage_record(self.db, payment, values, actor_id)

            logger.info(
                f"Payment of {record['amount']} recorded for order {order.order_number} "
                f"({paid}/{total}, {status.value})"
            )
            return await self._finish(order, payment, previous, new, event, {"amount": str(paid)})

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    async def cancel_order(
        self, order_id: int, actor_id: int, reason: Optional[str] = None
    ) -> StageResult:
        """Cancel an open order. Only roles in ``CANCEL_ROLES`` may do this."""
        event = WorkflowEvent.CANCEL_REQUESTED
        reason = (reason or "").strip() or None

        async with self._unit_of_work():
            order, actor = await self._begin(order_id, actor_id)
            previous = order.status
            authorized = actor.role.value in settings.CANCEL_ROLES
            new = next_status(previous, event, TransitionContext(authorized=authorized))

            payment = await get_stage_record_for_order(self.db, Payment, order.id)
            if payment is not None and payment.payment_status != PaymentStatus.PAID:
                await update_stage_record(self.db, payment, {"payment_status": PaymentStatus.CANCELLED})

            return await self._finish(
                order, None, previous, new, event, {"reason": reason}, cancellation_reason=reason
            )
