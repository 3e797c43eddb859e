"""Shipment aggregate (CQRS): one order's delivery record.

A shipment owns an append-only ledger of carrier tracking events. The
ledger is ordered by insertion (``sequence``), and the shipment's current
status is always the canonical status of the most recently appended event,
regardless of the carrier-reported ``occurred_at``.

Shipments are opened lazily on the first event for an order, under an id
derived from the tenant and order (see ``shipment_id_for``). They never
transition through a guarded state machine: carriers own the delivery
state, and a terminal shipment still accepts correcting events.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import NAMESPACE_URL, UUID, uuid5

import structlog
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from tracking.domain import tracking
from tracking.risk.detector import as_utc
from tracking.shipment.events import ShipmentOpened, TrackingEventRecorded
from tracking.status.normalizer import (
    TERMINAL_STATUSES,
    CanonicalStatus,
    MatchStage,
    classify,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class EventSource(Enum):
    WEBHOOK = "webhook"
    POLLING = "polling"
    MANUAL = "manual"


_SHIPPED_STATUSES = {CanonicalStatus.PICKED_UP, CanonicalStatus.IN_TRANSIT}


def parse_order_reference(order_id) -> str:
    """Return the canonical form of an order reference, which must be a UUID."""
    try:
        return str(UUID(str(order_id)))
    except (TypeError, ValueError, AttributeError) as exc:
        raise ValidationError({"order_id": [f"Malformed order reference: {order_id!r}"]}) from exc


def shipment_id_for(tenant_id: str, order_id) -> str:
    """Stable shipment identity for a tenant's order.

    An order has at most one shipment per tenant: two writers opening the
    same order build the same id, and the second insert is rejected.
    """
    return str(uuid5(NAMESPACE_URL, f"shiptrack://{tenant_id}/{parse_order_reference(order_id)}"))


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@tracking.entity(part_of="Shipment")
class TrackingEvent:
    """One carrier-reported status change. Never mutated once appended."""

    sequence = Integer(required=True, min_value=1)
    raw_status = String(required=True, max_length=255)
    normalized_status = String(required=True, max_length=50, choices=CanonicalStatus)
    matched_by = String(max_length=50, choices=MatchStage, default=MatchStage.EXACT.value)
    carrier = String(required=True, max_length=100)
    location = String(max_length=255)
    description = String(max_length=1000)
    raw_response = Text()  # JSON object as reported by the carrier
    source = String(max_length=20, choices=EventSource, default=EventSource.MANUAL.value)
    occurred_at = DateTime(required=True)
    recorded_at = DateTime(required=True)

    @property
    def status(self) -> CanonicalStatus:
        return CanonicalStatus(self.normalized_status)

    def raw_response_data(self) -> dict | None:
        return json.loads(self.raw_response) if self.raw_response else None

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "sequence": self.sequence,
            "raw_status": self.raw_status,
            "normalized_status": self.normalized_status,
            "matched_by": self.matched_by,
            "carrier": self.carrier,
            "location": self.location or None,
            "description": self.description or None,
            "raw_response": self.raw_response_data(),
            "source": self.source,
            "occurred_at": self.occurred_at,
            "recorded_at": self.recorded_at,
        }


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@tracking.aggregate
class Shipment:
    tenant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    current_status = String(max_length=50, choices=CanonicalStatus)
    tracking_events = HasMany(TrackingEvent)
    shipped_at = DateTime()
    delivered_at = DateTime()
    opened_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def open(
        cls,
        tenant_id: str,
        order_id: str,
        carrier: str | None = None,
        tracking_number: str | None = None,
    ):
        """Open a shipment with an empty ledger."""
        if not tenant_id:
            raise ValidationError({"tenant_id": ["Tenant is required"]})
        order_ref = parse_order_reference(order_id)

        now = datetime.now(UTC)
        shipment = cls(
            id=shipment_id_for(tenant_id, order_ref),
            tenant_id=tenant_id,
            order_id=order_ref,
            carrier=carrier or "",
            tracking_number=tracking_number or "",
            opened_at=now,
            updated_at=now,
        )
        shipment.raise_(
            ShipmentOpened(
                shipment_id=str(shipment.id),
                tenant_id=tenant_id,
                order_id=order_ref,
                carrier=carrier or "",
                tracking_number=tracking_number or "",
                opened_at=now,
            )
        )
        return shipment

    # -------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------
    @property
    def ledger(self) -> list[TrackingEvent]:
        """Tracking events in insertion order."""
        return sorted(self.tracking_events or [], key=lambda e: e.sequence)

    @property
    def latest_event(self) -> TrackingEvent | None:
        ledger = self.ledger
        return ledger[-1] if ledger else None

    @property
    def event_count(self) -> int:
        return len(self.tracking_events or [])

    @property
    def is_terminal(self) -> bool:
        return self.current_status is not None and CanonicalStatus(self.current_status) in TERMINAL_STATUSES

    def record_event(
        self,
        carrier: str,
        raw_status: str,
        source: str = EventSource.MANUAL.value,
        tracking_number: str | None = None,
        location: str | None = None,
        description: str | None = None,
        raw_response: dict | None = None,
        occurred_at: datetime | None = None,
    ) -> TrackingEvent:
        """Normalize a carrier status and append it to the ledger."""
        if not raw_status:
            raise ValidationError({"raw_status": ["Raw status is required"]})
        if not carrier:
            raise ValidationError({"carrier": ["Carrier is required"]})

        match = classify(carrier, raw_status)
        now = datetime.now(UTC)
        occurred = as_utc(occurred_at) if occurred_at else now
        next_sequence = max((e.sequence for e in self.tracking_events or []), default=0) + 1

        if match.is_fallback:
            logger.warning(
                "Unrecognized carrier status mapped to fallback",
                shipment_id=str(self.id),
                carrier=carrier,
                raw_status=raw_status,
                normalized_status=match.status.value,
            )

        event = TrackingEvent(
            sequence=next_sequence,
            raw_status=raw_status,
            normalized_status=match.status.value,
            matched_by=match.stage.value,
            carrier=carrier,
            location=location or "",
            description=description or "",
            raw_response=json.dumps(raw_response, default=str) if raw_response is not None else None,
            source=source,
            occurred_at=occurred,
            recorded_at=now,
        )
        self.add_tracking_events(event)

        self.current_status = match.status.value
        if not self.carrier:
            self.carrier = carrier
        if tracking_number and not self.tracking_number:
            self.tracking_number = tracking_number
        if match.status in _SHIPPED_STATUSES and self.shipped_at is None:
            self.shipped_at = occurred
        if match.status == CanonicalStatus.DELIVERED and self.delivered_at is None:
            self.delivered_at = occurred
        self.updated_at = now

        self.raise_(
            TrackingEventRecorded(
                shipment_id=str(self.id),
                tenant_id=str(self.tenant_id),
                order_id=str(self.order_id),
                event_id=str(event.id),
                sequence=next_sequence,
                carrier=carrier,
                raw_status=raw_status,
                normalized_status=match.status.value,
                matched_by=match.stage.value,
                source=source,
                location=location or "",
                occurred_at=occurred,
                recorded_at=now,
            )
        )
        return event
