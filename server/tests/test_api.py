"""Tests for the HTTP API."""

from decimal import Decimal

import pytest

from workshop.models.service_order import OrderStatus


def actor(user) -> dict:
    return {"X-User-Id": str(user.id)}


class TestRoot:
    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/v1/health")
        assert response.status_code == 200


class TestEntities:
    @pytest.mark.asyncio
    async def test_customer_vehicle_and_order_intake(self, client, test_admin):
        headers = actor(test_admin)

        response = await client.post(
            "/api/v1/customers", json={"name": "Dewi Lestari", "phone": "+6281298765432"}
        )
        assert response.status_code == 201
        customer = response.json()

        response = await client.post(
            "/api/v1/vehicles",
            json={
                "customer_id": customer["id"],
                "make": "Honda",
                "model": "Brio",
                "year": 2021,
                "license_plate": "B 777 DEW",
            },
        )
        assert response.status_code == 201
        vehicle = response.json()

        response = await client.post(
            "/api/v1/service-orders",
            json={
                "customer_id": customer["id"],
                "vehicle_id": vehicle["id"],
                "service_types": ["TUNE_UP", "MAINTENANCE"],
                "complaints": "Squeaky brakes",
            },
            headers=headers,
        )
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "PENDING_INITIAL_CHECK"
        assert order["created_by_id"] == test_admin.id

        response = await client.get(f"/api/v1/customers/{customer['id']}/vehicles")
        assert [v["id"] for v in response.json()] == [vehicle["id"]]

    @pytest.mark.asyncio
    async def test_duplicate_phone_is_409(self, client, test_customer):
        response = await client.post(
            "/api/v1/customers", json={"name": "Someone", "phone": test_customer.phone}
        )
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "Conflict"
        assert body["field"] == "phone"

    @pytest.mark.asyncio
    async def test_missing_customer_is_404(self, client):
        response = await client.get("/api/v1/customers/999")
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    @pytest.mark.asyncio
    async def test_lookup_by_phone(self, client, test_customer, test_vehicle):
        response = await client.get("/api/v1/customers/lookup", params={"phone": test_customer.phone})
        assert response.status_code == 200
        assert response.json()["vehicles"][0]["license_plate"] == test_vehicle.license_plate

        response = await client.get("/api/v1/customers/lookup", params={"phone": "+620000"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_order_requires_actor_header(self, client, test_customer, test_vehicle):
        response = await client.post(
            "/api/v1/service-orders",
            json={
                "customer_id": test_customer.id,
                "vehicle_id": test_vehicle.id,
                "service_types": ["AC"],
                "complaints": "Warm air",
            },
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_order_intake_rules_are_422(self, client, test_customer, test_vehicle, test_admin):
        response = await client.post(
            "/api/v1/service-orders",
            json={
                "customer_id": test_customer.id,
                "vehicle_id": test_vehicle.id,
                "service_types": [],
                "complaints": "Warm air",
            },
            headers=actor(test_admin),
        )
        assert response.status_code == 422
        assert response.json()["field"] == "service_types"


class TestServiceOrderUpdates:
    @pytest.mark.asyncio
    async def test_status_cannot_be_patched(self, client, test_order):
        response = await client.patch(
            f"/api/v1/service-orders/{test_order.id}", json={"status": "COMPLETED"}
        )
        assert response.status_code == 422

        response = await client.get(f"/api/v1/service-orders/{test_order.id}")
        assert response.json()["status"] == "PENDING_INITIAL_CHECK"

    @pytest.mark.asyncio
    async def test_intake_fields_can_be_patched(self, client, test_order):
        response = await client.patch(
            f"/api/v1/service-orders/{test_order.id}", json={"body_defects": "Dent on left door"}
        )
        assert response.status_code == 200
        assert response.json()["body_defects"] == "Dent on left door"

    @pytest.mark.asyncio
    async def test_accepted_events(self, client, test_order):
        response = await client.get(f"/api/v1/service-orders/{test_order.id}/events")
        body = response.json()
        assert body["status"] == "PENDING_INITIAL_CHECK"
        assert body["accepted_events"] == ["INITIAL_CHECK_RECORDED", "CANCEL_REQUESTED"]


class TestStageEndpoints:
    @pytest.mark.asyncio
    async def test_initial_check_then_read(self, client, test_order, test_mechanic):
        order_id = test_order.id
        payload = {
            "headlights": True,
            "horn": True,
            "brakes": True,
            "tires": False,
            "fluids": True,
            "battery": True,
            "additional_findings": "Front left tire worn",
        }
        response = await client.post(
            f"/api/v1/service-orders/{order_id}/initial-check", json=payload, headers=actor(test_mechanic)
        )
        assert response.status_code == 201
        body = response.json()
        assert body["previous_status"] == "PENDING_INITIAL_CHECK"
        assert body["order"]["status"] == "TECHNICAL_ANALYSIS"
        assert body["status_changed"] is True
        assert body["record"]["tires"] is False

        response = await client.get(f"/api/v1/service-orders/{order_id}/initial-check")
        assert response.status_code == 200
        assert response.json()["additional_findings"] == "Front left tire worn"

    @pytest.mark.asyncio
    async def test_out_of_order_is_409(self, client, test_order, test_mechanic):
        order_id, headers = test_order.id, actor(test_mechanic)
        response = await client.put(
            f"/api/v1/service-orders/{order_id}/quality-control",
            json={"final_approval": True, "defects_found": ""},
            headers=headers,
        )
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "InvalidTransition"
        assert body["from"] == "PENDING_INITIAL_CHECK"
        assert body["event"] == "QUALITY_CONTROL_RECORDED"

        response = await client.get(f"/api/v1/service-orders/{order_id}/quality-control")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invoice_before_awaiting_payment_is_409(self, client, test_order, test_mechanic):
        response = await client.post(
            f"/api/v1/service-orders/{test_order.id}/invoice",
            json={},
            headers=actor(test_mechanic),
        )
        assert response.status_code == 409
        body = response.json()
        assert body["from"] == "PENDING_INITIAL_CHECK"
        assert body["event"] == "PAYMENT_RECORDED"
        assert body["reason"] == "invoices are issued in AWAITING_PAYMENT"

    @pytest.mark.asyncio
    async def test_missing_field_is_422(self, client, test_order, test_mechanic):
        response = await client.post(
            f"/api/v1/service-orders/{test_order.id}/initial-check",
            json={"headlights": True},
            headers=actor(test_mechanic),
        )
        assert response.status_code == 422
        assert response.json() == {
            "error": "ValidationError",
            "detail": "horn: is required",
            "field": "horn",
            "reason": "is required",
        }

    @pytest.mark.asyncio
    async def test_unknown_order_is_404(self, client, test_mechanic):
        response = await client.post(
            "/api/v1/service-orders/999/initial-check",
            json={
                "headlights": True,
                "horn": True,
                "brakes": True,
                "tires": True,
                "fluids": True,
                "battery": True,
            },
            headers=actor(test_mechanic),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_payment_flow(self, client, advance, notifier, test_order, test_mechanic):
        order = await advance(test_order, OrderStatus.AWAITING_PAYMENT)
        order_id, headers = order.id, actor(test_mechanic)

        response = await client.post(
            f"/api/v1/service-orders/{order_id}/payments",
            json={"amount": "1000000", "payment_method": "CASH"},
            headers=headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["order"]["status"] == "AWAITING_PAYMENT"
        assert body["record"]["payment_status"] == "PARTIAL"

        response = await client.get("/api/v1/service-orders/queues/payment")
        assert [o["id"] for o in response.json()] == [order_id]

        response = await client.post(
            f"/api/v1/service-orders/{order_id}/payments",
            json={"amount": "500000", "payment_method": "QRIS"},
            headers=headers,
        )
        body = response.json()
        assert body["order"]["status"] == "COMPLETED"
        assert body["record"]["payment_status"] == "PAID"
        assert Decimal(str(body["record"]["paid_amount"])) == Decimal("1500000")
        assert notifier.notify.await_args_list[-1].args[1] == "COMPLETED"

        response = await client.get("/api/v1/service-orders/stats/dashboard")
        stats = response.json()
        assert stats["completed"] == 1
        assert Decimal(stats["revenue"]) == Decimal("1500000")


class TestCancelEndpoint:
    @pytest.mark.asyncio
    async def test_mechanic_cannot_cancel(self, client, test_order, test_mechanic):
        response = await client.post(
            f"/api/v1/service-orders/{test_order.id}/cancel",
            json={"reason": "Customer left"},
            headers=actor(test_mechanic),
        )
        assert response.status_code == 409
        assert response.json()["event"] == "CANCEL_REQUESTED"

    @pytest.mark.asyncio
    async def test_admin_cancels(self, client, notifier, test_order, test_admin):
        response = await client.post(
            f"/api/v1/service-orders/{test_order.id}/cancel",
            json={"reason": "Customer left"},
            headers=actor(test_admin),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["order"]["status"] == "CANCELLED"
        assert body["order"]["cancellation_reason"] == "Customer left"
        assert body["record"] is None
        notifier.notify.assert_awaited_once()


class TestTemplateEndpoints:
    @pytest.mark.asyncio
    async def test_whatsapp_template_crud(self, client, test_admin):
        response = await client.post(
            "/api/v1/templates/whatsapp",
            json={"name": "done", "event_kind": "COMPLETED", "content": "Thanks {customer_name}"},
            headers=actor(test_admin),
        )
        assert response.status_code == 201
        template_id = response.json()["id"]

        response = await client.delete(f"/api/v1/templates/whatsapp/{template_id}")
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        response = await client.get(f"/api/v1/templates/whatsapp/{template_id}")
        assert response.json()["is_active"] is False

        response = await client.get("/api/v1/templates/whatsapp")
        assert response.json() == []
        response = await client.get("/api/v1/templates/whatsapp", params={"include_inactive": True})
        assert [t["id"] for t in response.json()] == [template_id]

    @pytest.mark.asyncio
    async def test_estimation_library(self, client):
        response = await client.post(
            "/api/v1/templates/estimation-library",
            json={
                "name": "Brake pads (front)",
                "category": "Brakes",
                "economic_price": "250000",
                "standard_price": "400000",
                "premium_price": "650000",
                "is_service": False,
            },
        )
        assert response.status_code == 201

        response = await client.get("/api/v1/templates/estimation-library", params={"category": "Brakes"})
        assert [i["name"] for i in response.json()] == ["Brake pads (front)"]
