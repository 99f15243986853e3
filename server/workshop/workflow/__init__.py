"""Service order workflow: state machine, stage validators, orchestration and queues."""

from workshop.workflow.state_machine import (
    NotificationKind,
    OrderStatus,
    TransitionContext,
    WorkflowEvent,
    next_status,
)

__all__ = [
    "OrderStatus",
    "WorkflowEvent",
    "NotificationKind",
    "TransitionContext",
    "next_status",
]
