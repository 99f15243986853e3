"""Tests for WhatsApp notifications."""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from workshop.models.notification_log import NotificationLog, NotificationStatus
from workshop.models.templates import WhatsappTemplate
from workshop.services import notifications
from workshop.services.notifications import (
    MockWhatsappGateway,
    WhatsappNotifier,
    dispatch_notification,
    render_message,
)
from workshop.workflow.state_machine import NotificationKind


async def notification_logs(db_session):
    result = await db_session.execute(select(NotificationLog).order_by(NotificationLog.id))
    return list(result.scalars().all())


@pytest.fixture
def gateway() -> MockWhatsappGateway:
    return MockWhatsappGateway()


@pytest.fixture
def whatsapp(session_maker, gateway) -> WhatsappNotifier:
    return WhatsappNotifier(session_maker, gateway)


class TestWhatsappNotifier:
    @pytest.mark.asyncio
    async def test_default_completed_message(self, whatsapp, gateway, db_session, test_order):
        await whatsapp.notify(test_order.id, "COMPLETED", {"amount": "1500000"})

        assert len(gateway.sent) == 1
        message_id, phone, message = gateway.sent[0]
        assert phone == "+6281234567890"
        assert "Andi Pratama" in message
        assert test_order.order_number in message
        assert "Toyota Avanza (D 1234 ABC)" in message
        assert "Rp 1,500,000.00" in message

        [log] = await notification_logs(db_session)
        assert log.status == NotificationStatus.SENT
        assert log.event_kind == "COMPLETED"
        assert log.provider_message_id == message_id
        assert log.message == message

    @pytest.mark.asyncio
    async def test_active_template_wins(self, whatsapp, gateway, db_session, test_order, test_admin):
        db_session.add(
            WhatsappTemplate(
                name="cancel-id",
                event_kind="CANCELLED",
                content="Maaf {customer_name}, pesanan {order_number} dibatalkan. {signature}",
                created_by_id=test_admin.id,
            )
        )
        await db_session.commit()

        await whatsapp.notify(test_order.id, NotificationKind.CANCELLED, {"reason": "Duplicate"})

        assert gateway.sent[0][2] == (
            f"Maaf Andi Pratama, pesanan {test_order.order_number} dibatalkan. {{signature}}"
        )

    @pytest.mark.asyncio
    async def test_unknown_kind_is_skipped(self, whatsapp, gateway, db_session, test_order):
        await whatsapp.notify(test_order.id, "BIRTHDAY", {})

        assert gateway.sent == []
        [log] = await notification_logs(db_session)
        assert log.status == NotificationStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_missing_order(self, whatsapp, gateway, db_session):
        await whatsapp.notify(404, "COMPLETED", {})
        assert gateway.sent == []
        assert await notification_logs(db_session) == []

    @pytest.mark.asyncio
    async def test_gateway_failure_is_retried_then_logged(self, session_maker, db_session, test_order):
        gateway = AsyncMock()
        gateway.send.side_effect = ConnectionError("gateway timeout")
        notifier = WhatsappNotifier(session_maker, gateway)

        with patch.object(notifications.settings, "NOTIFICATION_RETRY_DELAY", 0), patch.object(
            notifications.settings, "NOTIFICATION_MAX_RETRIES", 2
        ):
            with pytest.raises(RuntimeError):
                await notifier.notify(test_order.id, "ESTIMATE_READY", {})

        assert gateway.send.await_count == 2
        [log] = await notification_logs(db_session)
        assert log.status == NotificationStatus.FAILED
        assert "gateway timeout" in log.error


class TestDispatch:
    @pytest.mark.asyncio
    async def test_passes_kind_value(self):
        notifier = AsyncMock()
        assert await dispatch_notification(notifier, 7, NotificationKind.COMPLETED, None) is True
        notifier.notify.assert_awaited_once_with(7, "COMPLETED", {})

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, caplog):
        notifier = AsyncMock()
        notifier.notify.side_effect = RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="workshop.services.notifications"):
            assert await dispatch_notification(notifier, 7, "CANCELLED") is False

        assert "boom" in caplog.text

    @pytest.mark.asyncio
    async def test_no_notifier(self):
        assert await dispatch_notification(None, 7, "CANCELLED") is False


def test_render_message_keeps_unknown_placeholders():
    assert render_message("Hi {customer_name} {other}", {"customer_name": "Dewi"}) == "Hi Dewi {other}"
