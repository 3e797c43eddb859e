"""AutomationEvent aggregate: durable outbox row for the workflow consumer.

Signals stay pending until the consumer acknowledges them, so they survive
process restarts. The event id doubles as the consumer's deduplication key;
``dedupe_key`` keeps the engine from queueing the same signal twice.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from tracking.automation.events import AutomationEventAcknowledged, AutomationTriggered
from tracking.domain import tracking


class AutomationEventType(Enum):
    DELAYED_ORDER = "delayed_order"
    FAILED_DELIVERY = "failed_delivery"
    RETURNED_SHIPMENT = "returned_shipment"


@tracking.aggregate
class AutomationEvent:
    tenant_id = Identifier(required=True)
    event_type = String(required=True, max_length=50, choices=AutomationEventType)
    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    payload = Text()  # JSON object
    dedupe_key = String(required=True, max_length=255)
    triggered_at = DateTime(required=True)
    acknowledged_at = DateTime()

    @classmethod
    def trigger(
        cls,
        tenant_id: str,
        event_type: str,
        shipment_id: str,
        order_id: str,
        dedupe_key: str,
        payload: dict | None = None,
    ):
        """Queue a new signal."""
        now = datetime.now(UTC)
        event = cls(
            tenant_id=tenant_id,
            event_type=AutomationEventType(event_type).value,
            shipment_id=shipment_id,
            order_id=order_id,
            payload=json.dumps(payload or {}, default=str),
            dedupe_key=dedupe_key,
            triggered_at=now,
        )
        event.raise_(
            AutomationTriggered(
                automation_event_id=str(event.id),
                tenant_id=tenant_id,
                event_type=event.event_type,
                shipment_id=shipment_id,
                order_id=order_id,
                triggered_at=now,
            )
        )
        return event

    @property
    def is_acknowledged(self) -> bool:
        return self.acknowledged_at is not None

    def acknowledge(self) -> None:
        if self.is_acknowledged:
            raise ValidationError({"acknowledged_at": ["Automation event has already been acknowledged"]})

        now = datetime.now(UTC)
        self.acknowledged_at = now
        self.raise_(
            AutomationEventAcknowledged(
                automation_event_id=str(self.id),
                tenant_id=str(self.tenant_id),
                acknowledged_at=now,
            )
        )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "type": self.event_type,
            "tenant_id": str(self.tenant_id),
            "shipment_id": str(self.shipment_id),
            "order_id": str(self.order_id),
            "payload": json.loads(self.payload) if self.payload else {},
            "triggered_at": self.triggered_at,
            "acknowledged_at": self.acknowledged_at,
        }
