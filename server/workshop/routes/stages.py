"""Stage record endpoints, nested under a service order.

Every write goes through ``ServiceOrderWorkflow`` so the stage record and the
order status change together.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.exceptions import NotFound
from workshop.models.cost_estimation import CostEstimation
from workshop.models.customer_education import CustomerEducation
from workshop.models.initial_check import InitialCheck
from workshop.models.payment import Payment
from workshop.models.quality_control import QualityControl
from workshop.models.technical_analysis import TechnicalAnalysis
from workshop.models.work_execution import WorkExecution
from workshop.routes.deps import get_actor_id, get_workflow
from workshop.schemas.entities import ServiceOrderRead
from workshop.schemas.stages import (
    CostEstimationInput,
    CostEstimationRead,
    CustomerDecisionInput,
    CustomerEducationInput,
    CustomerEducationRead,
    InitialCheckInput,
    InitialCheckRead,
    InvoiceInput,
    PaymentInput,
    PaymentRead,
    QualityControlInput,
    QualityControlRead,
    StageResponse,
    TechnicalAnalysisInput,
    TechnicalAnalysisRead,
    WorkExecutionInput,
    WorkExecutionRead,
)
from workshop.services.database import get_db
from workshop.store.service_orders import require_service_order
from workshop.store.stage_records import get_stage_record_for_order
from workshop.workflow.service import ServiceOrderWorkflow, StageResult

router = APIRouter()


def _respond(read_model, result: StageResult):
    return StageResponse[read_model](
        order=ServiceOrderRead.model_validate(result.order),
        record=read_model.model_validate(result.record) if result.record is not None else None,
        previous_status=result.previous_status,
        status_changed=result.status_changed,
    )


async def _read_stage(db: AsyncSession, order_id: int, model):
    await require_service_order(db, order_id)
    record = await get_stage_record_for_order(db, model, order_id)
    if record is None:
        raise NotFound(model.__name__, f"for service order {order_id}")
    return record


# ============================================================================
# Inspection and diagnosis
# ============================================================================


@router.post(
    "/{order_id}/initial-check",
    response_model=StageResponse[InitialCheckRead],
    status_code=status.HTTP_201_CREATED,
)
async def record_initial_check(
    order_id: int,
    data: InitialCheckInput,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    result = await workflow.record_initial_check(order_id, data, actor_id)
    return _respond(InitialCheckRead, result)


@router.get("/{order_id}/initial-check", response_model=InitialCheckRead)
async def get_initial_check(order_id: int, db: AsyncSession = Depends(get_db)):
    return await _read_stage(db, order_id, InitialCheck)


@router.post(
    "/{order_id}/technical-analysis",
    response_model=StageResponse[TechnicalAnalysisRead],
    status_code=status.HTTP_201_CREATED,
)
async def record_technical_analysis(
    order_id: int,
    data: TechnicalAnalysisInput,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    result = await workflow.record_technical_analysis(order_id, data, actor_id)
    return _respond(TechnicalAnalysisRead, result)


@router.get("/{order_id}/technical-analysis", response_model=TechnicalAnalysisRead)
async def get_technical_analysis(order_id: int, db: AsyncSession = Depends(get_db)):
    return await _read_stage(db, order_id, TechnicalAnalysis)


# ============================================================================
# Customer sign-off
# ============================================================================


@router.post(
    "/{order_id}/customer-education",
    response_model=StageResponse[CustomerEducationRead],
    status_code=status.HTTP_201_CREATED,
)
async def record_customer_education(
    order_id: int,
    data: CustomerEducationInput,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    result = await workflow.record_customer_education(order_id, data, actor_id)
    return _respond(CustomerEducationRead, result)


@router.get("/{order_id}/customer-education", response_model=CustomerEducationRead)
async def get_customer_education(order_id: int, db: AsyncSession = Depends(get_db)):
    return await _read_stage(db, order_id, CustomerEducation)


@router.post(
    "/{order_id}/cost-estimation",
    response_model=StageResponse[CostEstimationRead],
    status_code=status.HTTP_201_CREATED,
)
async def record_cost_estimation(
    order_id: int,
    data: CostEstimationInput,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    result = await workflow.record_cost_estimation(order_id, data, actor_id)
    return _respond(CostEstimationRead, result)


@router.get("/{order_id}/cost-estimation", response_model=CostEstimationRead)
async def get_cost_estimation(order_id: int, db: AsyncSession = Depends(get_db)):
    return await _read_stage(db, order_id, CostEstimation)


@router.post("/{order_id}/customer-decision", response_model=StageResponse[CostEstimationRead])
async def record_customer_decision(
    order_id: int,
    data: CustomerDecisionInput,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    result = await workflow.record_customer_decision(order_id, data, actor_id)
    return _respond(CostEstimationRead, result)


# ============================================================================
# Repair and quality control
# ============================================================================


@router.put("/{order_id}/work-execution", response_model=StageResponse[WorkExecutionRead])
async def record_work_execution(
    order_id: int,
    data: WorkExecutionInput,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    """Create or update the work log; ``mark_complete`` hands the order to QC."""
    result = await workflow.record_work_execution(order_id, data, actor_id)
    return _respond(WorkExecutionRead, result)


@router.get("/{order_id}/work-execution", response_model=WorkExecutionRead)
async def get_work_execution(order_id: int, db: AsyncSession = Depends(get_db)):
    return await _read_stage(db, order_id, WorkExecution)


@router.put("/{order_id}/quality-control", response_model=StageResponse[QualityControlRead])
async def record_quality_control(
    order_id: int,
    data: QualityControlInput,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    result = await workflow.record_quality_control(order_id, data, actor_id)
    return _respond(QualityControlRead, result)


@router.get("/{order_id}/quality-control", response_model=QualityControlRead)
async def get_quality_control(order_id: int, db: AsyncSession = Depends(get_db)):
    return await _read_stage(db, order_id, QualityControl)


# ============================================================================
# Payment
# ============================================================================


@router.post(
    "/{order_id}/invoice",
    response_model=StageResponse[PaymentRead],
    status_code=status.HTTP_201_CREATED,
)
async def issue_invoice(
    order_id: int,
    data: InvoiceInput,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    result = await workflow.issue_invoice(order_id, data, actor_id)
    return _respond(PaymentRead, result)


@router.post("/{order_id}/payments", response_model=StageResponse[PaymentRead])
async def record_payment(
    order_id: int,
    data: PaymentInput,
    actor_id: int = Depends(get_actor_id),
    workflow: ServiceOrderWorkflow = Depends(get_workflow),
):
    result = await workflow.record_payment(order_id, data, actor_id)
    return _respond(PaymentRead, result)


@router.get("/{order_id}/payment", response_model=PaymentRead)
async def get_payment(order_id: int, db: AsyncSession = Depends(get_db)):
    return await _read_stage(db, order_id, Payment)
