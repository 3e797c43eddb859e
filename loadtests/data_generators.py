"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the tracking API's validation
(UUID order references, known event sources) and match the exact field
names expected by the API's Pydantic request schemas.
"""

import random
import uuid
from datetime import UTC, datetime, timedelta

from faker import Faker

fake = Faker()

CARRIERS = ["aramex", "smsa", "dhl", "fastway"]

# Carrier-native status strings, in lifecycle order
CARRIER_LIFECYCLES = {
    "aramex": ["Shipment Created", "Picked Up", "In Transit", "Out for Delivery", "Delivered"],
    "smsa": ["Data Received", "Collected", "In Transit", "Out For Delivery", "Proof of Delivery Captured"],
    "dhl": ["Shipment information received", "Shipment picked up", "Processed at facility", "With delivery courier", "Delivered"],
    "fastway": ["Label created", "Picked up by courier", "Arrived at depot", "Out for delivery", "Parcel delivered"],
}

FAILURE_STATUSES = ["Delivery attempt failed", "Consignee not available", "Returned to shipper"]


def load_test_tenant() -> str:
    """Tenant ids are scoped per run so repeated runs do not share analytics."""
    return f"lt-tenant-{uuid.uuid4().hex[:6]}"


def order_reference() -> str:
    return str(uuid.uuid4())


def tracking_number(carrier: str) -> str:
    return f"{carrier[:3].upper()}{random.randint(10**9, 10**10 - 1)}"


def event_data(order_id: str, carrier: str, raw_status: str, hours_ago: float = 0) -> dict:
    """RecordEventRequest payload."""
    occurred = datetime.now(UTC) - timedelta(hours=hours_ago)
    return {
        "order_id": order_id,
        "carrier": carrier,
        "raw_status": raw_status,
        "tracking_number": tracking_number(carrier),
        "location": fake.city()[:100],
        "description": fake.sentence(nb_words=6)[:200],
        "occurred_at": occurred.isoformat(),
        "source": random.choice(["manual", "polling"]),
    }


def bulk_events_data(size: int = 10) -> dict:
    """BulkRecordEventsRequest payload spread over several orders and carriers."""
    events = []
    for _ in range(size):
        carrier = random.choice(CARRIERS)
        status = random.choice(CARRIER_LIFECYCLES[carrier])
        payload = event_data(order_reference(), carrier, status, hours_ago=random.uniform(0, 96))
        payload.pop("source")
        events.append(payload)
    return {"events": events}


def aramex_webhook(order_id: str, raw_status: str) -> dict:
    return {
        "reference": order_id,
        "waybill": tracking_number("aramex"),
        "status": raw_status,
        "location": fake.city()[:100],
    }


def smsa_webhook(order_id: str, raw_status: str) -> dict:
    return {
        "refNo": order_id,
        "awb": tracking_number("smsa"),
        "activity": raw_status,
        "city": fake.city()[:100],
    }
