"""FastAPI routes for the Tracking domain.

Tenant-scoped routes identify the tenant through the ``X-Tenant-ID``
header. Carrier webhooks are public and identify the tenant through their
webhook secret instead.
"""

import json
from datetime import datetime

from fastapi import APIRouter, Header, HTTPException, Query, Request
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from tracking.analytics import reports
from tracking.api.schemas import (
    AutomationEventResponse,
    BulkRecordEventsRequest,
    BulkRecordEventsResponse,
    CheckDelaysRequest,
    CheckDelaysResponse,
    OpenShipmentRequest,
    RecordEventRequest,
    RecordEventResponse,
    ShipmentIdResponse,
    ShippingStatsResponse,
    WebhookResponse,
)
from tracking.automation.delays import check_delays
from tracking.automation.queue import poll_automation_events
from tracking.exceptions import WebhookAuthenticationError
from tracking.projections.unmapped_statuses import unmapped_statuses
from tracking.shipment.ingestion import bulk_record_events, record_event
from tracking.shipment.queries import get_at_risk_orders, get_shipment, shipping_stats
from tracking.shipment.recording import OpenShipment
from tracking.shipment.webhook import receive_webhook


def _tenant(x_tenant_id: str) -> str:
    if not x_tenant_id:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header is required")
    return x_tenant_id


# ---------------------------------------------------------------------------
# Shipment Router
# ---------------------------------------------------------------------------
shipment_router = APIRouter(prefix="/shipments", tags=["shipments"])


@shipment_router.post("", status_code=201, response_model=ShipmentIdResponse)
async def open_shipment(body: OpenShipmentRequest, x_tenant_id: str = Header(default="")) -> ShipmentIdResponse:
    """Open a shipment at carrier handoff, before any carrier event."""
    command = OpenShipment(
        tenant_id=_tenant(x_tenant_id),
        order_id=body.order_id,
        carrier=body.carrier,
        tracking_number=body.tracking_number,
    )
    result = current_domain.process(command, asynchronous=False)
    return ShipmentIdResponse(shipment_id=result)


@shipment_router.post("/events", status_code=201, response_model=RecordEventResponse)
async def record_tracking_event(
    body: RecordEventRequest, x_tenant_id: str = Header(default="")
) -> RecordEventResponse:
    """Record a carrier status change for an order."""
    result = record_event(tenant_id=_tenant(x_tenant_id), **body.model_dump())
    return RecordEventResponse(**result)


@shipment_router.post("/events/bulk", response_model=BulkRecordEventsResponse)
async def record_tracking_events_bulk(
    body: BulkRecordEventsRequest, x_tenant_id: str = Header(default="")
) -> BulkRecordEventsResponse:
    """Record a batch of polled carrier events. Failed items do not fail the batch."""
    result = bulk_record_events(_tenant(x_tenant_id), body.events)
    return BulkRecordEventsResponse(**result)


@shipment_router.post("/webhook/{carrier}", response_model=WebhookResponse)
async def carrier_webhook(
    carrier: str,
    request: Request,
    secret: str = Query(default=""),
    x_webhook_secret: str = Header(default=""),
    x_webhook_signature: str = Header(default=""),
    x_webhook_timestamp: str = Header(default=""),
) -> WebhookResponse:
    """Process a carrier tracking webhook callback."""
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body or b"{}")
    except json.JSONDecodeError as exc:
        raise ValidationError({"payload": ["Webhook body must be a JSON object"]}) from exc
    if not isinstance(payload, dict):
        raise ValidationError({"payload": ["Webhook body must be a JSON object"]})

    try:
        result = receive_webhook(
            carrier=carrier,
            secret=x_webhook_secret or secret,
            payload=payload,
            raw_body=raw_body,
            signature=x_webhook_signature or None,
            timestamp=x_webhook_timestamp or None,
        )
    except WebhookAuthenticationError as exc:
        raise HTTPException(status_code=401, detail=exc.reason) from exc
    return WebhookResponse(**result)


@shipment_router.get("/at-risk")
async def at_risk_orders(x_tenant_id: str = Header(default="")) -> list[dict]:
    return get_at_risk_orders(_tenant(x_tenant_id))


@shipment_router.get("/stats", response_model=ShippingStatsResponse)
async def stats(x_tenant_id: str = Header(default="")) -> ShippingStatsResponse:
    return ShippingStatsResponse(**shipping_stats(_tenant(x_tenant_id)))


@shipment_router.get("/{order_id}")
async def shipment_detail(order_id: str, x_tenant_id: str = Header(default="")) -> dict:
    """Shipment with its full ledger, latest status and risk assessment."""
    shipment = get_shipment(_tenant(x_tenant_id), order_id)
    if shipment is None:
        raise HTTPException(status_code=404, detail=f"Shipment for order {order_id} not found")
    return shipment


@shipment_router.get("/{order_id}/timeline")
async def shipment_timeline(order_id: str, x_tenant_id: str = Header(default="")) -> dict:
    timeline = reports.shipment_timeline(_tenant(x_tenant_id), order_id)
    if timeline is None:
        raise HTTPException(status_code=404, detail=f"Shipment for order {order_id} not found")
    return timeline


# ---------------------------------------------------------------------------
# Automation Router
# ---------------------------------------------------------------------------
automation_router = APIRouter(prefix="/automation", tags=["automation"])


@automation_router.post("/check-delays", response_model=CheckDelaysResponse)
async def check_delays_and_trigger(
    body: CheckDelaysRequest | None = None, x_tenant_id: str = Header(default="")
) -> CheckDelaysResponse:
    """Scan open shipments and queue delayed_order signals."""
    result = check_delays(_tenant(x_tenant_id), as_of=body.as_of if body else None)
    return CheckDelaysResponse(**result)


@automation_router.get("/events", response_model=list[AutomationEventResponse])
async def automation_events(
    event_type: str | None = Query(default=None, alias="type"),
    since: datetime | None = Query(default=None),
    clear_after_read: bool = Query(default=False),
    x_tenant_id: str = Header(default=""),
) -> list[AutomationEventResponse]:
    """Poll pending automation signals, optionally acknowledging them."""
    try:
        events = poll_automation_events(_tenant(x_tenant_id), event_type, since, clear_after_read)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Unknown automation event type: {event_type}") from exc
    return [AutomationEventResponse(**event) for event in events]


# ---------------------------------------------------------------------------
# Carrier Performance Router
# ---------------------------------------------------------------------------
carrier_router = APIRouter(prefix="/carriers", tags=["carriers"])


@carrier_router.get("/metrics")
async def carrier_metrics(
    carrier: str | None = Query(default=None),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    x_tenant_id: str = Header(default=""),
) -> list[dict]:
    return reports.carrier_metrics(_tenant(x_tenant_id), carrier, date_from, date_to)


@carrier_router.get("/scores")
async def carrier_scores(
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    x_tenant_id: str = Header(default=""),
) -> list[dict]:
    return reports.carrier_scores(_tenant(x_tenant_id), date_from, date_to)


@carrier_router.get("/insights")
async def carrier_insights(
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    x_tenant_id: str = Header(default=""),
) -> dict:
    return reports.carrier_insights(_tenant(x_tenant_id), date_from, date_to)


@carrier_router.get("/routing")
async def routing_recommendations(
    payment_method: str | None = Query(default=None),
    x_tenant_id: str = Header(default=""),
) -> list[dict]:
    if payment_method and payment_method not in ("cod", "prepaid"):
        raise HTTPException(status_code=400, detail=f"Unknown payment method: {payment_method}")
    return reports.routing_recommendations(_tenant(x_tenant_id), payment_method)


@carrier_router.get("/dashboard")
async def dashboard(x_tenant_id: str = Header(default="")) -> dict:
    return reports.dashboard_summary(_tenant(x_tenant_id))


@carrier_router.get("/unmapped-statuses")
async def unmapped_carrier_statuses(
    carrier: str | None = Query(default=None),
    x_tenant_id: str = Header(default=""),
) -> list[dict]:
    """Raw carrier statuses that no status table or rule recognised."""
    return unmapped_statuses(_tenant(x_tenant_id), carrier)
