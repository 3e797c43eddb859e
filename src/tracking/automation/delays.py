"""Delay scan: queue ``delayed_order`` signals for stale shipments.

Run periodically (``manage.py check-delays`` or the HTTP endpoint). Only
delay reasons queue a signal here; failed deliveries are signalled when the
FAILED event is recorded. ``delayed_orders`` counts every delayed shipment
found by the scan. The dedupe key includes the latest event and the reason,
so a repeated scan does not queue the same delay twice, while escalation to
a critical delay or a fresh delay after a new carrier event does.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain

from tracking.automation.automation import AutomationEvent, AutomationEventType
from tracking.automation.queue import enqueue_automation
from tracking.domain import tracking
from tracking.risk.detector import assess_risk
from tracking.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


@tracking.command(part_of="AutomationEvent")
class CheckDelays:
    tenant_id = Identifier(required=True)
    as_of = DateTime()


@tracking.command_handler(part_of=AutomationEvent)
class DelayScanHandler:
    @handle(CheckDelays)
    def check_delays(self, command):
        now = command.as_of or datetime.now(UTC)
        shipments = current_domain.repository_for(Shipment).non_terminal(command.tenant_id)

        delayed = 0
        for shipment in shipments:
            latest = shipment.latest_event
            if latest is None:
                continue

            risk = assess_risk(latest.occurred_at, latest.normalized_status, now=now)
            if not (risk.is_at_risk and risk.is_delay):
                continue

            delayed += 1
            enqueue_automation(
                tenant_id=command.tenant_id,
                event_type=AutomationEventType.DELAYED_ORDER,
                shipment_id=str(shipment.id),
                order_id=str(shipment.order_id),
                dedupe_key=(
                    f"{AutomationEventType.DELAYED_ORDER.value}:{shipment.id}:{latest.id}:{risk.risk_reason}"
                ),
                payload={
                    "risk_reason": risk.risk_reason,
                    "hours_since_update": round(risk.hours_since_update, 1),
                    "current_status": latest.normalized_status,
                    "carrier": shipment.carrier,
                },
            )

        logger.info(
            "Delay scan completed",
            tenant_id=command.tenant_id,
            checked_shipments=len(shipments),
            delayed_orders=delayed,
        )
        return {"checked_shipments": len(shipments), "delayed_orders": delayed}


def check_delays(tenant_id: str, as_of: datetime | None = None) -> dict:
    """Scan a tenant's open shipments and queue delay signals.

    Returns:
        dict with keys: checked_shipments, delayed_orders
    """
    return current_domain.process(CheckDelays(tenant_id=tenant_id, as_of=as_of), asynchronous=False)
