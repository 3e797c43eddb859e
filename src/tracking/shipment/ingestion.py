"""Event ingestion: the inbound pipeline for carrier events.

Each event is appended through ``RecordTrackingEvent``. Concurrent appends
to the same shipment are detected by the aggregate's version check; the
losing writer re-reads the shipment and appends again, so no event is lost.
After the append the canonical status is projected onto the order, and
FAILED/RETURNED events queue an automation signal.
"""

import json
from datetime import datetime

import structlog
from protean.exceptions import ExpectedVersionError, TransactionError, ValidationError
from protean.utils.globals import current_domain

from tracking.automation.automation import AutomationEventType
from tracking.automation.queue import enqueue_automation
from tracking.collaborators import get_order_book
from tracking.config import get_settings
from tracking.shipment.recording import RecordTrackingEvent
from tracking.shipment.shipment import EventSource, parse_order_reference
from tracking.status.normalizer import CanonicalStatus, order_status_for
from tracking.utils.logging import carrier_context

logger = structlog.get_logger(__name__)

_AUTOMATION_FOR_STATUS = {
    CanonicalStatus.FAILED: AutomationEventType.FAILED_DELIVERY,
    CanonicalStatus.RETURNED: AutomationEventType.RETURNED_SHIPMENT,
}


def _is_conflict(exc: Exception) -> bool:
    """A lost append race: stale version, or a duplicate shipment row rejected at commit."""
    if isinstance(exc, ExpectedVersionError):
        return True
    extra = getattr(exc, "extra_info", None) or {}
    return isinstance(exc, TransactionError) and extra.get("original_exception") == "IntegrityError"


def _append(command_kwargs: dict) -> dict:
    attempts = get_settings().append_max_attempts
    for attempt in range(1, attempts + 1):
        try:
            return current_domain.process(RecordTrackingEvent(**command_kwargs), asynchronous=False)
        except (ExpectedVersionError, TransactionError) as exc:
            if not _is_conflict(exc):
                raise
            if attempt == attempts:
                logger.error(
                    "Ledger append conflict persisted",
                    order_id=command_kwargs["order_id"],
                    attempts=attempts,
                )
                raise
            logger.warning(
                "Concurrent ledger append detected, retrying",
                order_id=command_kwargs["order_id"],
                attempt=attempt,
            )


def project_order_status(tenant_id: str, order_id: str, status: CanonicalStatus) -> str | None:
    """Write the order status implied by ``status`` to the order book."""
    order_status = order_status_for(status)
    if not get_order_book().update_status(tenant_id, order_id, order_status):
        logger.warning(
            "Order not known to the order book, status not projected",
            tenant_id=tenant_id,
            order_id=order_id,
            order_status=order_status,
        )
        return None
    return order_status


def record_event(
    tenant_id: str,
    order_id: str,
    carrier: str,
    raw_status: str,
    tracking_number: str | None = None,
    location: str | None = None,
    description: str | None = None,
    raw_response: dict | None = None,
    occurred_at: datetime | str | None = None,
    source: str = EventSource.MANUAL.value,
    require_existing: bool = False,
) -> dict:
    """Record one carrier event.

    Returns:
        dict with keys: shipment_id, event_id, normalized_status, total_events
    """
    result = _append(
        {
            "tenant_id": tenant_id,
            "order_id": order_id,
            "carrier": carrier,
            "raw_status": raw_status,
            "tracking_number": tracking_number,
            "location": location,
            "description": description,
            "raw_response": json.dumps(raw_response, default=str) if raw_response is not None else None,
            "occurred_at": occurred_at,
            "source": source,
            "require_existing": require_existing,
        }
    )
    status = CanonicalStatus(result["normalized_status"])
    order_id = parse_order_reference(order_id)

    logger.info(
        "Tracking event recorded",
        tenant_id=tenant_id,
        order_id=order_id,
        shipment_id=result["shipment_id"],
        carrier=carrier,
        source=source,
        normalized_status=status.value,
        total_events=result["total_events"],
    )

    project_order_status(tenant_id, order_id, status)

    automation_type = _AUTOMATION_FOR_STATUS.get(status)
    if automation_type is not None:
        enqueue_automation(
            tenant_id=tenant_id,
            event_type=automation_type,
            shipment_id=result["shipment_id"],
            order_id=order_id,
            dedupe_key=f"{automation_type.value}:{result['shipment_id']}:{result['event_id']}",
            payload={
                "carrier": carrier,
                "tracking_number": tracking_number,
                "raw_status": raw_status,
                "event_id": result["event_id"],
            },
        )

    return result


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ValidationError) and isinstance(exc.messages, dict):
        return "; ".join(f"{field}: {', '.join(map(str, msgs))}" for field, msgs in exc.messages.items())
    return str(exc) or exc.__class__.__name__


_BULK_REQUIRED = ("order_id", "carrier", "raw_status")


def _check_bulk_item(item) -> None:
    if not isinstance(item, dict):
        raise ValidationError({"item": [f"Expected an event object, got {type(item).__name__}"]})
    missing = [name for name in _BULK_REQUIRED if item.get(name) in (None, "")]
    if missing:
        raise ValidationError({"item": [f"Missing required fields: {', '.join(missing)}"]})
    if item.get("raw_response") is not None and not isinstance(item["raw_response"], dict):
        raise ValidationError({"raw_response": ["Must be a JSON object"]})


def bulk_record_events(tenant_id: str, items: list) -> dict:
    """Record a batch of polled carrier events, isolating per-item failures.

    Items are processed in order; a failing item is reported in the results
    and the batch carries on.
    """
    results = []
    for item in items:
        fields = item if isinstance(item, dict) else {}
        order_id = fields.get("order_id")
        if order_id is not None:
            order_id = str(order_id)
        carrier = fields.get("carrier")
        with carrier_context(carrier if isinstance(carrier, str) and carrier else "unknown"):
            try:
                _check_bulk_item(item)
                result = record_event(
                    tenant_id=tenant_id,
                    order_id=order_id,
                    carrier=carrier,
                    raw_status=fields["raw_status"],
                    tracking_number=fields.get("tracking_number"),
                    location=fields.get("location"),
                    description=fields.get("description"),
                    raw_response=fields.get("raw_response"),
                    occurred_at=fields.get("occurred_at"),
                    source=fields.get("source") or EventSource.POLLING.value,
                )
            except Exception as e:
                logger.warning("Bulk item failed", tenant_id=tenant_id, order_id=order_id, error=str(e))
                results.append({"order_id": order_id, "success": False, "error": _error_message(e)})
                continue

        results.append({"order_id": order_id, "success": True, "normalized_status": result["normalized_status"]})

    logger.info(
        "Bulk tracking events processed",
        tenant_id=tenant_id,
        processed=len(results),
        failed=sum(1 for r in results if not r["success"]),
    )
    return {"processed": len(results), "results": results}
