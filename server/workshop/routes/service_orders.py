"""Service order endpoints: intake, lookup, queues, dashboard and cancellation."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.models.service_order import OrderStatus
from workshop.routes.deps import get_actor_id, get_workflow
from workshop.schemas.entities import (
    CancelRequest,
    ServiceOrderCreate,
    ServiceOrderRead,
    ServiceOrderUpdate,
    StatusCount,
)
from workshop.schemas.stages import StageResponse
from workshop.services.database import get_db
from workshop.store import service_orders as order_store
from workshop.workflow import queries
from workshop.workflow.service import ServiceOrderWorkflow
from workshop.workflow.state_machine import accepted_events

router = APIRouter()


@router.post("", response_model=ServiceOrderRead, status_code=status.HTTP_201_CREATED)
async def open_service_order(
    data: ServiceOrderCreate,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    return await workflow.open_order(data, actor_id)


@router.get("", response_model=List[ServiceOrderRead])
async def list_service_orders(
    status: Optional[List[OrderStatus]] = Query(None),
    customer_id: Optional[int] = None,
    vehicle_id: Optional[int] = None,
    mechanic_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await order_store.list_service_orders(
        db,
        statuses=status,
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        mechanic_id=mechanic_id,
        limit=limit,
        offset=offset,
    )


# ============================================================================
# Queues and dashboard
# ============================================================================


@router.get("/queues/quality-control", response_model=List[ServiceOrderRead])
async def quality_control_queue(db: AsyncSession = Depends(get_db)):
    return await queries.pending_qc_queue(db)


@router.get("/queues/payment", response_model=List[ServiceOrderRead])
async def payment_queue(db: AsyncSession = Depends(get_db)):
    return await queries.pending_payment_queue(db)


@router.get("/queues/mechanic/{mechanic_id}", response_model=List[ServiceOrderRead])
async def mechanic_queue(
    mechanic_id: int,
    status: Optional[List[OrderStatus]] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await queries.orders_for_mechanic(db, mechanic_id, status)


@router.get("/stats/status-counts", response_model=List[StatusCount])
async def order_status_counts(db: AsyncSession = Depends(get_db)):
    counts = await queries.status_counts(db)
    return [StatusCount(status=s, count=c) for s, c in counts.items()]


@router.get("/stats/dashboard")
async def dashboard(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    stats = await queries.dashboard_stats(db)
    return {**stats, "revenue": str(stats["revenue"])}


# ============================================================================
# Single order
# ============================================================================


@router.get("/{order_id}", response_model=ServiceOrderRead)
async def get_service_order(order_id: int, db: AsyncSession = Depends(get_db)):
    return await order_store.require_service_order(db, order_id)


@router.get("/{order_id}/events")
async def service_order_events(order_id: int, db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """Events the order can currently accept."""
    order = await order_store.require_service_order(db, order_id)
    return {
        "status": order.status.value,
        "accepted_events": [event.value for event in accepted_events(order.status)],
    }


@router.patch("/{order_id}", response_model=ServiceOrderRead)
async def update_service_order(
    order_id: int, data: ServiceOrderUpdate, db: AsyncSession = Depends(get_db)
):
    return await order_store.update_service_order(db, order_id, data)


@router.post("/{order_id}/cancel", response_model=StageResponse[Any])
async def cancel_service_order(
    order_id: int,
    data: CancelRequest,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    result = await workflow.cancel_order(order_id, actor_id, data.reason)
    return StageResponse[Any](
        order=ServiceOrderRead.model_validate(result.order),
        record=None,
        previous_status=result.previous_status,
        status_changed=result.status_changed,
    )
