"""
Customer notifications over WhatsApp.

The workflow only knows the ``Notifier`` protocol and calls it through
``dispatch_notification`` after its transaction has committed. Delivery is
best-effort: failures are logged and recorded in ``notification_logs`` but
never reach the caller.
"""

import logging
import random
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import selectinload

from workshop.config import settings
from workshop.models.notification_log import NotificationLog, NotificationStatus
from workshop.models.service_order import ServiceOrder
from workshop.store.templates import get_active_whatsapp_template
from workshop.utils.retry import with_retry

logger = logging.getLogger(__name__)

# Used when no active WhatsApp template exists for the event kind
DEFAULT_MESSAGES: Dict[str, str] = {
    "ESTIMATE_READY": (
        "Hello {customer_name}, the cost estimate for order {order_number} "
        "({vehicle}) is ready. Please contact {workshop_name} to choose an option."
    ),
    "COMPLETED": (
        "Thank you {customer_name}! Service order {order_number} for {vehicle} is "
        "complete and fully paid ({amount}). We look forward to seeing you again at "
        "{workshop_name}."
    ),
    "CANCELLED": (
        "Hello {customer_name}, service order {order_number} for {vehicle} has been "
        "cancelled. Please contact {workshop_name} if you have any questions."
    ),
}


class Notifier(Protocol):
    """Capability the workflow uses to tell a customer about an order."""

    async def notify(
        self, service_order_id: int, event_kind: str, payload: Optional[Dict[str, Any]] = None
    ) -> None:
        ...


class WhatsappGateway(Protocol):
    async def send(self, phone: str, message: str) -> str:
        """Send a message and return the provider message id."""
        ...


class MockWhatsappGateway:
    """Gateway stand-in: logs the message and returns a synthetic id."""

    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []

    async def send(self, phone: str, message: str) -> str:
        message_id = f"whatsapp_{int(time.time() * 1000)}_{random.randint(1000, 9999)}"
        self.sent.append((message_id, phone, message))
        logger.info(f"[mock whatsapp] {message_id} -> {phone}: {message}")
        return message_id


class _KeepMissing(dict):
    """Leave unknown ``{placeholders}`` in place instead of failing."""

    def __missing__(self, key):
        return "{" + key + "}"


def render_message(content: str, values: Dict[str, Any]) -> str:
    return content.format_map(_KeepMissing(values))


def _format_amount(amount: Any) -> str:
    if amount is None or amount == "":
        return ""
    return f"Rp {Decimal(str(amount)):,.2f}"


class WhatsappNotifier:
    """
    Notifier that renders a WhatsApp template and sends it through a gateway.

    Runs in its own session because it is invoked after the workflow
    transaction has already committed.
    """

    def __init__(self, session_factory: async_sessionmaker, gateway: Optional[WhatsappGateway] = None):
        self.session_factory = session_factory
        self.gateway = gateway or MockWhatsappGateway()

    async def notify(
        self, service_order_id: int, event_kind: str, payload: Optional[Dict[str, Any]] = None
    ) -> None:
        event_kind = getattr(event_kind, "value", event_kind)
        payload = payload or {}

        async with self.session_factory() as db:
            order = await db.get(
                ServiceOrder,
                service_order_id,
                options=[selectinload(ServiceOrder.customer), selectinload(ServiceOrder.vehicle)],
            )
            if order is None:
                logger.warning(f"Notification {event_kind} skipped: order {service_order_id} not found")
                return

            log = NotificationLog(
                service_order_id=order.id,
                event_kind=event_kind,
                recipient=order.customer.phone,
            )

            template = await get_active_whatsapp_template(db, event_kind)
            content = template.content if template else DEFAULT_MESSAGES.get(event_kind)

            if content is None:
                log.status = NotificationStatus.SKIPPED
                log.error = "no message template for event kind"
                logger.warning(f"No WhatsApp template for {event_kind}, order {order.order_number}")
            else:
                vehicle = order.vehicle
                log.message = render_message(
                    content,
                    {
                        "customer_name": order.customer.name,
                        "order_number": order.order_number,
                        "vehicle": f"{vehicle.make} {vehicle.model} ({vehicle.license_plate})",
                        "workshop_name": settings.WORKSHOP_NAME,
                        "amount": _format_amount(payload.get("amount")),
                    },
                )
                try:
                    log.provider_message_id = await with_retry(
                        lambda: self.gateway.send(log.recipient, log.message),
                        max_retries=settings.NOTIFICATION_MAX_RETRIES,
                        initial_delay=settings.NOTIFICATION_RETRY_DELAY,
                        operation_name=f"WhatsApp {event_kind} for {order.order_number}",
                    )
                    log.status = NotificationStatus.SENT
                    logger.info(
                        f"WhatsApp {event_kind} sent for order {order.order_number}: "
                        f"{log.provider_message_id}"
                    )
                except Exception as e:
                    log.status = NotificationStatus.FAILED
                    log.error = str(e)[:2000]

            db.add(log)
            await db.commit()

        if log.status == NotificationStatus.FAILED:
            raise RuntimeError(f"WhatsApp {event_kind} for order {service_order_id} failed: {log.error}")


async def dispatch_notification(
    notifier: Optional[Notifier],
    service_order_id: int,
    event_kind: str,
    payload: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Call the notifier, never letting its failure reach the caller.

    Returns:
        True if the notifier returned normally, False otherwise
    """
    if notifier is None:
        return False

    kind = getattr(event_kind, "value", event_kind)
    try:
        await notifier.notify(service_order_id, kind, payload or {})
        return True
    except Exception as e:
        logger.error(f"Notification {kind} for order {service_order_id} failed: {e}", exc_info=True)
        return False
