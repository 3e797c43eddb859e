"""Integration tests for the automation API via TestClient."""

import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers
from tracking.api.routes import automation_router, shipment_router


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(shipment_router)
    app.include_router(automation_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def headers(tenant_id):
    return {"X-Tenant-ID": tenant_id}


def _record(client, headers, raw_status, occurred_at=None):
    order_id = str(uuid.uuid4())
    payload = {"order_id": order_id, "carrier": "aramex", "raw_status": raw_status}
    if occurred_at:
        payload["occurred_at"] = occurred_at
    client.post("/shipments/events", json=payload, headers=headers)
    return order_id


class TestAutomationEvents:
    def test_failed_delivery_signal(self, client, headers):
        order_id = _record(client, headers, "Delivery Failed")

        response = client.get("/automation/events", headers=headers)

        assert response.status_code == 200
        events = response.json()
        assert len(events) == 1
        assert events[0]["type"] == "failed_delivery"
        assert events[0]["order_id"] == order_id
        assert events[0]["acknowledged_at"] is None

    def test_type_filter(self, client, headers):
        _record(client, headers, "Delivery Failed")
        _record(client, headers, "Returned to Shipper")

        events = client.get("/automation/events?type=returned_shipment", headers=headers).json()
        assert [e["type"] for e in events] == ["returned_shipment"]

    def test_unknown_type(self, client, headers):
        assert client.get("/automation/events?type=lost", headers=headers).status_code == 400

    def test_clear_after_read(self, client, headers):
        _record(client, headers, "Delivery Failed")

        first = client.get("/automation/events?clear_after_read=true", headers=headers).json()
        second = client.get("/automation/events", headers=headers).json()

        assert len(first) == 1
        assert second == []

    def test_tenant_header_required(self, client):
        assert client.get("/automation/events").status_code == 400


class TestCheckDelays:
    def test_scan(self, client, headers):
        _record(client, headers, "In Transit", occurred_at="2026-03-01T00:00:00Z")
        _record(client, headers, "In Transit", occurred_at="2026-03-03T20:00:00Z")

        response = client.post(
            "/automation/check-delays",
            json={"as_of": "2026-03-04T00:00:00Z"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json() == {"checked_shipments": 2, "delayed_orders": 1}

        events = client.get("/automation/events?type=delayed_order", headers=headers).json()
        assert len(events) == 1
        assert events[0]["payload"]["risk_reason"] == "critical_delay"

    def test_scan_without_body(self, client, headers):
        response = client.post("/automation/check-delays", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"checked_shipments": 0, "delayed_orders": 0}
