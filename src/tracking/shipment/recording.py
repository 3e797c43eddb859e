"""Shipment ledger commands and handlers.

``OpenShipment`` registers a shipment before any carrier event arrives.
``RecordTrackingEvent`` appends one carrier event, opening the shipment
lazily unless the caller requires it to exist already (carrier webhooks).
"""

import json

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from tracking.domain import tracking
from tracking.shipment.shipment import EventSource, Shipment

logger = structlog.get_logger(__name__)


@tracking.command(part_of="Shipment")
class OpenShipment:
    """Open a shipment for an order at carrier handoff."""

    tenant_id = Identifier(required=True)
    order_id = String(required=True, max_length=255)
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)


@tracking.command(part_of="Shipment")
class RecordTrackingEvent:
    """Append a carrier-reported status change to an order's shipment."""

    tenant_id = Identifier(required=True)
    order_id = String(required=True, max_length=255)
    carrier = String(required=True, max_length=100)
    raw_status = String(required=True, max_length=255)
    tracking_number = String(max_length=255)
    location = String(max_length=255)
    description = String(max_length=1000)
    raw_response = Text()  # JSON object
    occurred_at = DateTime()
    source = String(max_length=20, choices=EventSource, default=EventSource.MANUAL.value)
    require_existing = Boolean(default=False)


def _add(repo, shipment: Shipment, opened: bool) -> None:
    """Persist ``shipment``, reporting a lost race to open it as a version conflict."""
    try:
        repo.add(shipment)
    except ValidationError as exc:
        if not opened or "id" not in (exc.messages or {}):
            raise
        raise ExpectedVersionError(
            f"Shipment for order {shipment.order_id} was opened concurrently"
        ) from exc


@tracking.command_handler(part_of=Shipment)
class ShipmentLedgerHandler:
    @handle(OpenShipment)
    def open_shipment(self, command):
        repo = current_domain.repository_for(Shipment)
        existing = repo.find_by_order(command.tenant_id, command.order_id)
        if existing is not None:
            return str(existing.id)

        shipment = Shipment.open(
            tenant_id=command.tenant_id,
            order_id=command.order_id,
            carrier=command.carrier,
            tracking_number=command.tracking_number,
        )
        try:
            _add(repo, shipment, opened=True)
        except ExpectedVersionError:
            logger.info("Shipment already opened by a concurrent writer", shipment_id=str(shipment.id))
        return str(shipment.id)

    @handle(RecordTrackingEvent)
    def record_tracking_event(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.find_by_order(command.tenant_id, command.order_id)
        is_new = shipment is None
        if is_new:
            if command.require_existing:
                raise ObjectNotFoundError(f"Shipment for order {command.order_id} not found")
            shipment = Shipment.open(
                tenant_id=command.tenant_id,
                order_id=command.order_id,
                carrier=command.carrier,
                tracking_number=command.tracking_number,
            )

        raw_response = json.loads(command.raw_response) if command.raw_response else None
        event = shipment.record_event(
            carrier=command.carrier,
            raw_status=command.raw_status,
            source=command.source,
            tracking_number=command.tracking_number,
            location=command.location,
            description=command.description,
            raw_response=raw_response,
            occurred_at=command.occurred_at,
        )
        _add(repo, shipment, opened=is_new)

        return {
            "shipment_id": str(shipment.id),
            "event_id": str(event.id),
            "normalized_status": event.normalized_status,
            "total_events": shipment.event_count,
        }
