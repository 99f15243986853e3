"""Shared request dependencies."""

from typing import Optional

from fastapi import BackgroundTasks, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.services.database import get_db, get_session_maker
from workshop.services.notifications import MockWhatsappGateway, Notifier, WhatsappNotifier
from workshop.workflow.service import ServiceOrderWorkflow

_gateway = MockWhatsappGateway()


async def get_actor_id(x_user_id: int = Header(..., alias="X-User-Id")) -> int:
    """Caller identity; the user must exist and be active (checked by the store)."""
    return x_user_id


def get_notifier() -> Optional[Notifier]:
    return WhatsappNotifier(get_session_maker(), _gateway)


async def get_workflow(
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    notifier: Optional[Notifier] = Depends(get_notifier),
) -> ServiceOrderWorkflow:
    """Workflow whose customer notifications go out after the response is sent."""
    return ServiceOrderWorkflow(db, notifier, background_tasks)
