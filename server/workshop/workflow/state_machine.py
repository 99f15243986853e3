"""
Service order lifecycle state machine.

Pipeline (forward only, CANCELLED reachable from any open status):

    PENDING_INITIAL_CHECK -> TECHNICAL_ANALYSIS -> CUSTOMER_EDUCATION
    -> COST_ESTIMATION -> AWAITING_APPROVAL -> WORK_IN_PROGRESS
    -> QUALITY_CONTROL -> AWAITING_PAYMENT -> COMPLETED

Two controlled branches leave the straight line: a customer refusing service
(education) or rejecting the estimate cancels the order, and a failed quality
control sends the order back to WORK_IN_PROGRESS.

``next_status`` is a pure function. Persisting the returned status together
with the stage record that triggered it is the caller's job.
"""

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from workshop.exceptions import InvalidTransition
from workshop.models.cost_estimation import CustomerDecision, PricingTier
from workshop.models.customer_education import UnderstandingLevel
from workshop.models.quality_control import QcStatus
from workshop.models.service_order import OrderStatus

PIPELINE: Tuple[OrderStatus, ...] = (
    OrderStatus.PENDING_INITIAL_CHECK,
    OrderStatus.TECHNICAL_ANALYSIS,
    OrderStatus.CUSTOMER_EDUCATION,
    OrderStatus.COST_ESTIMATION,
    OrderStatus.AWAITING_APPROVAL,
    OrderStatus.WORK_IN_PROGRESS,
    OrderStatus.QUALITY_CONTROL,
    OrderStatus.AWAITING_PAYMENT,
    OrderStatus.COMPLETED,
)

TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
)


class WorkflowEvent(str, enum.Enum):
    """Events that may move a service order."""

    INITIAL_CHECK_RECORDED = "INITIAL_CHECK_RECORDED"
    TECHNICAL_ANALYSIS_RECORDED = "TECHNICAL_ANALYSIS_RECORDED"
    CUSTOMER_EDUCATION_RECORDED = "CUSTOMER_EDUCATION_RECORDED"
    COST_ESTIMATE_RECORDED = "COST_ESTIMATE_RECORDED"
    CUSTOMER_DECISION_RECORDED = "CUSTOMER_DECISION_RECORDED"
    WORK_EXECUTION_RECORDED = "WORK_EXECUTION_RECORDED"
    QUALITY_CONTROL_RECORDED = "QUALITY_CONTROL_RECORDED"
    PAYMENT_RECORDED = "PAYMENT_RECORDED"
    CANCEL_REQUESTED = "CANCEL_REQUESTED"


class NotificationKind(str, enum.Enum):
    """Customer notifications triggered by entering a status."""

    ESTIMATE_READY = "ESTIMATE_READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class TransitionContext:
    """Guard inputs taken from the stage record behind an event.

    Only the fields relevant to the event need to be set.
    """

    understanding_level: Optional[UnderstandingLevel] = None
    customer_decision: Optional[CustomerDecision] = None
    chosen_tier: Optional[PricingTier] = None
    work_completed: bool = False
    checklist_complete: bool = False
    qc_status: Optional[QcStatus] = None
    paid_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    authorized: bool = False


Resolver = Callable[[OrderStatus, WorkflowEvent, TransitionContext], OrderStatus]


def _advance_to(target: OrderStatus) -> Resolver:
    def resolve(current, event, context):
        return target

    return resolve


def _after_education(current, event, context):
    if context.understanding_level is None:
        raise InvalidTransition(current, event, "understanding level is missing")
    if context.understanding_level == UnderstandingLevel.REFUSED_SERVICE:
        return OrderStatus.CANCELLED
    return OrderStatus.COST_ESTIMATION


def _after_decision(current, event, context):
    decision = context.customer_decision
    if decision in (CustomerDecision.APPROVED, CustomerDecision.PARTIAL_APPROVAL):
        if context.chosen_tier is None:
            raise InvalidTransition(current, event, "approval requires a chosen tier")
        return OrderStatus.WORK_IN_PROGRESS
    if decision == CustomerDecision.REJECTED:
        return OrderStatus.CANCELLED
    raise InvalidTransition(current, event, "customer decision is still pending")


def _after_work(current, event, context):
    if not context.work_completed:
        # Progress update on an unfinished job
        return OrderStatus.WORK_IN_PROGRESS
    if not context.checklist_complete:
        raise InvalidTransition(current, event, "completion checklist is not fully satisfied")
    return OrderStatus.QUALITY_CONTROL


def _after_quality_control(current, event, context):
    if context.qc_status == QcStatus.PASSED:
        return OrderStatus.AWAITING_PAYMENT
    if context.qc_status in (QcStatus.FAILED, QcStatus.NEEDS_REWORK):
        return OrderStatus.WORK_IN_PROGRESS
    if context.qc_status == QcStatus.PENDING:
        return OrderStatus.QUALITY_CONTROL
    raise InvalidTransition(current, event, "qc status is missing")


def _after_payment(current, event, context):
    if context.paid_amount is None or context.total_amount is None:
        raise InvalidTransition(current, event, "paid and total amounts are required")
    if context.paid_amount >= context.total_amount:
        return OrderStatus.COMPLETED
    return OrderStatus.AWAITING_PAYMENT


# event -> (status the order must be in, resolver for the next status)
TRANSITIONS: Dict[WorkflowEvent, Tuple[OrderStatus, Resolver]] = {
    WorkflowEvent.INITIAL_CHECK_RECORDED: (
        OrderStatus.PENDING_INITIAL_CHECK,
        _advance_to(OrderStatus.TECHNICAL_ANALYSIS),
    ),
    WorkflowEvent.TECHNICAL_ANALYSIS_RECORDED: (
        OrderStatus.TECHNICAL_ANALYSIS,
        _advance_to(OrderStatus.CUSTOMER_EDUCATION),
    ),
    WorkflowEvent.CUSTOMER_EDUCATION_RECORDED: (
        OrderStatus.CUSTOMER_EDUCATION,
        _after_education,
    ),
    WorkflowEvent.COST_ESTIMATE_RECORDED: (
        OrderStatus.COST_ESTIMATION,
        _advance_to(OrderStatus.AWAITING_APPROVAL),
    ),
    WorkflowEvent.CUSTOMER_DECISION_RECORDED: (
        OrderStatus.AWAITING_APPROVAL,
        _after_decision,
    ),
    WorkflowEvent.WORK_EXECUTION_RECORDED: (
        OrderStatus.WORK_IN_PROGRESS,
        _after_work,
    ),
    WorkflowEvent.QUALITY_CONTROL_RECORDED: (
        OrderStatus.QUALITY_CONTROL,
        _after_quality_control,
    ),
    WorkflowEvent.PAYMENT_RECORDED: (
        OrderStatus.AWAITING_PAYMENT,
        _after_payment,
    ),
}


def is_terminal(status) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def next_status(
    current, event, context: Optional[TransitionContext] = None
) -> OrderStatus:
    """
    Compute the status a service order moves to when ``event`` happens.

    Args:
        current: Current order status (``OrderStatus`` or its string value)
        event: Incoming ``WorkflowEvent`` (or its string value)
        context: Guard inputs from the triggering stage record

    Returns:
        The next status. It equals ``current`` for in-stage updates that do not
        advance the order (unfinished work, partial payment, pending QC).

    Raises:
        InvalidTransition: The event is not accepted in ``current`` or one of
            its guards failed. Closed orders reject every event.
    """
    current = OrderStatus(current)
    event = WorkflowEvent(event)
    context = context or TransitionContext()

    if current in TERMINAL_STATUSES:
        raise InvalidTransition(current, event, "order is closed")

    if event == WorkflowEvent.CANCEL_REQUESTED:
        if not context.authorized:
            raise InvalidTransition(current, event, "caller is not allowed to cancel orders")
        return OrderStatus.CANCELLED

    required_status, resolve = TRANSITIONS[event]
    if current != required_status:
        raise InvalidTransition(current, event, f"order must be in {required_status.value}")

    return resolve(current, event, context)


def accepted_events(current) -> Tuple[WorkflowEvent, ...]:
    """Events an order in ``current`` status can be offered."""
    current = OrderStatus(current)
    if current in TERMINAL_STATUSES:
        return ()
    events = [event for event, (required, _) in TRANSITIONS.items() if required == current]
    events.append(WorkflowEvent.CANCEL_REQUESTED)
    return tuple(events)


def notification_for(previous, new) -> Optional[NotificationKind]:
    """Notification to send after a transition from ``previous`` to ``new``."""
    previous = OrderStatus(previous)
    new = OrderStatus(new)
    if previous == new:
        return None
    if new == OrderStatus.COMPLETED:
        return NotificationKind.COMPLETED
    if new == OrderStatus.CANCELLED:
        return NotificationKind.CANCELLED
    if new == OrderStatus.AWAITING_APPROVAL:
        return NotificationKind.ESTIMATE_READY
    return None
