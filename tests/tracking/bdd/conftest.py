"""Shared BDD fixtures and step definitions for shipment tracking."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then
from tracking.automation.queue import pending_automation_events
from tracking.collaborators import get_order_book, get_tenant_directory
from tracking.shipment.ingestion import record_event
from tracking.shipment.queries import get_shipment
from tracking.shipment.recording import OpenShipment
from tracking.shipment.shipment import Shipment


@pytest.fixture()
def clock():
    """Reference time for the scenario; risk is assessed against it."""
    return {"now": datetime.now(UTC)}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an order registered with the order book", target_fixture="order")
def registered_order(tenant_id):
    order_id = str(uuid.uuid4())
    get_order_book().register(tenant_id, order_id)
    return {"tenant_id": tenant_id, "order_id": order_id}


@given(parsers.cfparse('a shipment opened with carrier "{carrier}"'))
def opened_shipment(order, carrier):
    current_domain.process(
        OpenShipment(tenant_id=order["tenant_id"], order_id=order["order_id"], carrier=carrier),
        asynchronous=False,
    )


@given(parsers.cfparse('the tenant webhook secret is "{secret}"'))
def webhook_secret(order, secret):
    get_tenant_directory().register(order["tenant_id"], secret)


@given(parsers.cfparse('the latest "{raw_status}" event from "{carrier}" was {hours:d} hours ago'))
def stale_event(order, clock, raw_status, carrier, hours):
    record_event(
        tenant_id=order["tenant_id"],
        order_id=order["order_id"],
        carrier=carrier,
        raw_status=raw_status,
        occurred_at=clock["now"] - timedelta(hours=hours),
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the shipment status is "{status}"'))
def shipment_status(order, status):
    shipment = current_domain.repository_for(Shipment).find_by_order(order["tenant_id"], order["order_id"])
    assert shipment.current_status == status


@then(parsers.cfparse("the shipment ledger holds {count:d} events"))
def ledger_size(order, count):
    shipment = current_domain.repository_for(Shipment).find_by_order(order["tenant_id"], order["order_id"])
    assert shipment.event_count == count


@then(parsers.cfparse('the order status is "{status}"'))
def order_status(order, status):
    assert get_order_book().get_order(order["tenant_id"], order["order_id"])["status"] == status


@then(parsers.cfparse('the order risk is "{reason}"'))
def order_risk(order, clock, reason):
    risk = get_shipment(order["tenant_id"], order["order_id"], now=clock["now"])["risk_info"]
    if reason == "none":
        assert risk["is_at_risk"] is False
        assert risk["risk_reason"] is None
    else:
        assert risk["is_at_risk"] is True
        assert risk["risk_reason"] == reason


@then(
    parsers.re(r'(?P<count>\d+) "(?P<event_type>\w+)" automation events? (?:is|are) pending'),
    converters={"count": int},
)
def pending_signals(order, count, event_type):
    assert len(pending_automation_events(order["tenant_id"], event_type=event_type)) == count


@then("no automation event is pending")
def no_pending_signals(order):
    assert pending_automation_events(order["tenant_id"]) == []
