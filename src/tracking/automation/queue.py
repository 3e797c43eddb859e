"""Automation outbox: enqueue, poll and acknowledge.

Enqueueing is best-effort: a failure to queue a signal is logged and never
propagates to the request that triggered it. Polling returns pending
signals of one tenant, oldest first; with ``clear_after_read`` exactly the
returned signals are acknowledged.
"""

import json
from datetime import datetime

import structlog
from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from tracking.automation.automation import AutomationEvent, AutomationEventType
from tracking.domain import tracking
from tracking.risk.detector import as_utc

logger = structlog.get_logger(__name__)


def _existing(tenant_id: str, dedupe_key: str) -> AutomationEvent | None:
    repo = current_domain.repository_for(AutomationEvent)
    return repo._dao.query.filter(tenant_id=tenant_id, dedupe_key=dedupe_key).all().first


def enqueue_automation(
    tenant_id: str,
    event_type: AutomationEventType | str,
    shipment_id: str,
    order_id: str,
    dedupe_key: str,
    payload: dict | None = None,
) -> AutomationEvent | None:
    """Queue a signal unless one with the same dedupe key exists. Never raises."""
    event_type = AutomationEventType(event_type).value
    try:
        if _existing(tenant_id, dedupe_key) is not None:
            logger.debug("Automation event already queued", tenant_id=tenant_id, dedupe_key=dedupe_key)
            return None

        event = AutomationEvent.trigger(
            tenant_id=tenant_id,
            event_type=event_type,
            shipment_id=shipment_id,
            order_id=order_id,
            dedupe_key=dedupe_key,
            payload=payload,
        )
        current_domain.repository_for(AutomationEvent).add(event)
    except Exception as e:
        logger.error(
            "Automation enqueue failed",
            tenant_id=tenant_id,
            event_type=event_type,
            shipment_id=shipment_id,
            order_id=order_id,
            error=str(e),
        )
        return None

    logger.info(
        "Automation triggered",
        tenant_id=tenant_id,
        event_type=event_type,
        order_id=order_id,
        automation_event_id=str(event.id),
    )
    return event


def pending_automation_events(
    tenant_id: str,
    event_type: AutomationEventType | str | None = None,
    since: datetime | None = None,
) -> list[AutomationEvent]:
    """Unacknowledged signals for a tenant, oldest first."""
    repo = current_domain.repository_for(AutomationEvent)
    events = [e for e in repo._dao.query.filter(tenant_id=tenant_id).all().items if not e.is_acknowledged]

    if event_type:
        wanted = AutomationEventType(event_type).value
        events = [e for e in events if e.event_type == wanted]

    if since is not None:
        since = as_utc(since)
        events = [e for e in events if as_utc(e.triggered_at) >= since]

    return sorted(events, key=lambda e: as_utc(e.triggered_at))


def poll_automation_events(
    tenant_id: str,
    event_type: AutomationEventType | str | None = None,
    since: datetime | None = None,
    clear_after_read: bool = False,
) -> list[dict]:
    """Poll/drain interface for the external workflow consumer."""
    events = pending_automation_events(tenant_id, event_type, since)
    results = [e.to_dict() for e in events]

    if clear_after_read and events:
        current_domain.process(
            AcknowledgeAutomationEvents(
                tenant_id=tenant_id,
                event_ids=json.dumps([str(e.id) for e in events]),
            ),
            asynchronous=False,
        )

    return results


@tracking.command(part_of="AutomationEvent")
class AcknowledgeAutomationEvents:
    """Mark the listed signals as read by the workflow consumer."""

    tenant_id = Identifier(required=True)
    event_ids = Text(required=True)  # JSON list of AutomationEvent ids


@tracking.command_handler(part_of=AutomationEvent)
class AcknowledgeAutomationEventsHandler:
    @handle(AcknowledgeAutomationEvents)
    def acknowledge(self, command):
        event_ids = json.loads(command.event_ids) if isinstance(command.event_ids, str) else command.event_ids
        repo = current_domain.repository_for(AutomationEvent)

        acknowledged = 0
        for event_id in event_ids:
            event = repo.get(event_id)
            # Another tenant's id or an already-read signal is left untouched
            if str(event.tenant_id) != str(command.tenant_id) or event.is_acknowledged:
                continue
            event.acknowledge()
            repo.add(event)
            acknowledged += 1

        return acknowledged
