"""Pydantic API schemas for the Tracking domain.

These are the external API contracts, separate from domain commands.
The API layer translates between these schemas and the tracking services.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

EventSourceLiteral = Literal["webhook", "polling", "manual"]


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class OpenShipmentRequest(BaseModel):
    order_id: str
    carrier: str | None = None
    tracking_number: str | None = None


class RecordEventRequest(BaseModel):
    order_id: str
    carrier: str
    raw_status: str
    tracking_number: str | None = None
    location: str | None = None
    description: str | None = None
    raw_response: dict[str, Any] | None = None
    occurred_at: datetime | None = None
    source: EventSourceLiteral = "manual"


class BulkRecordEventsRequest(BaseModel):
    # Items are checked one by one during ingestion; a malformed item fails alone
    events: list[Any]


class CheckDelaysRequest(BaseModel):
    as_of: datetime | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class ShipmentIdResponse(BaseModel):
    shipment_id: str


class RecordEventResponse(BaseModel):
    shipment_id: str
    event_id: str
    normalized_status: str
    total_events: int


class WebhookResponse(RecordEventResponse):
    success: bool = True


class BulkItemResult(BaseModel):
    order_id: str | None = None
    success: bool
    normalized_status: str | None = None
    error: str | None = None


class BulkRecordEventsResponse(BaseModel):
    processed: int
    results: list[BulkItemResult]


class ShippingStatsResponse(BaseModel):
    total: int
    pending: int
    in_transit: int
    delivered: int
    failed: int
    returned: int
    at_risk: int


class CheckDelaysResponse(BaseModel):
    checked_shipments: int
    delayed_orders: int


class AutomationEventResponse(BaseModel):
    id: str
    type: str
    tenant_id: str
    shipment_id: str
    order_id: str
    payload: dict[str, Any] = Field(default_factory=dict)
    triggered_at: datetime
    acknowledged_at: datetime | None = None
