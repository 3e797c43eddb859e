"""Automation outbox domain events."""

from protean.fields import DateTime, Identifier, String

from tracking.domain import tracking


@tracking.event(part_of="AutomationEvent")
class AutomationTriggered:
    """A delayed/failed/returned signal was queued for the workflow consumer."""

    __version__ = 1

    automation_event_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    event_type = String(required=True)
    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    triggered_at = DateTime(required=True)


@tracking.event(part_of="AutomationEvent")
class AutomationEventAcknowledged:
    """The workflow consumer confirmed it has read the signal."""

    __version__ = 1

    automation_event_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    acknowledged_at = DateTime(required=True)
