"""Shipment domain events: immutable facts about a shipment's ledger.

All events are past tense, versioned, and carry enough data for the
unmapped-status projection and downstream consumers.
"""

from protean.fields import DateTime, Identifier, Integer, String

from tracking.domain import tracking


@tracking.event(part_of="Shipment")
class ShipmentOpened:
    """A shipment record was opened for an order."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    carrier = String()
    tracking_number = String()
    opened_at = DateTime(required=True)


@tracking.event(part_of="Shipment")
class TrackingEventRecorded:
    """A carrier status change was appended to a shipment's ledger."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    event_id = Identifier(required=True)
    sequence = Integer(required=True)
    carrier = String(required=True)
    raw_status = String(required=True)
    normalized_status = String(required=True)
    matched_by = String(required=True)
    source = String(required=True)
    location = String()
    occurred_at = DateTime(required=True)
    recorded_at = DateTime(required=True)
