"""Read-side queries over a tenant's shipments."""

from datetime import UTC, datetime

from protean.utils.globals import current_domain

from tracking.collaborators import get_order_book
from tracking.config import get_settings
from tracking.risk.detector import NO_TRACKING_EVENTS, assess_risk, hours_between
from tracking.shipment.shipment import Shipment
from tracking.status.normalizer import CanonicalStatus
from tracking.utils.numbers import round_half_up

_STATS_BUCKETS = {
    None: "pending",
    CanonicalStatus.CREATED.value: "pending",
    CanonicalStatus.PICKED_UP.value: "in_transit",
    CanonicalStatus.IN_TRANSIT.value: "in_transit",
    CanonicalStatus.OUT_FOR_DELIVERY.value: "in_transit",
    CanonicalStatus.DELIVERED.value: "delivered",
    CanonicalStatus.FAILED.value: "failed",
    CanonicalStatus.RETURNED.value: "returned",
}


def _risk_of(shipment: Shipment, now: datetime):
    latest = shipment.latest_event
    if latest is None:
        return None
    return assess_risk(latest.occurred_at, latest.normalized_status, now=now)


def shipment_to_dict(shipment: Shipment) -> dict:
    return {
        "id": str(shipment.id),
        "tenant_id": str(shipment.tenant_id),
        "order_id": str(shipment.order_id),
        "carrier": shipment.carrier or None,
        "tracking_number": shipment.tracking_number or None,
        "current_status": shipment.current_status,
        "shipped_at": shipment.shipped_at,
        "delivered_at": shipment.delivered_at,
        "opened_at": shipment.opened_at,
        "updated_at": shipment.updated_at,
    }


def get_shipment(tenant_id: str, order_id: str, now: datetime | None = None) -> dict | None:
    """A shipment with its full ledger, latest status and risk, or None."""
    shipment = current_domain.repository_for(Shipment).find_by_order(tenant_id, order_id)
    if shipment is None:
        return None

    latest = shipment.latest_event
    risk = _risk_of(shipment, now or datetime.now(UTC))
    return {
        **shipment_to_dict(shipment),
        "events": [event.to_dict() for event in shipment.ledger],
        "latest_status": latest.normalized_status if latest else None,
        "risk_info": risk.to_dict() if risk else None,
    }


def get_at_risk_orders(tenant_id: str, now: datetime | None = None) -> list[dict]:
    """Open shipments that need attention.

    A shipment without any carrier event is flagged ``no_tracking_events``
    once it has been open for longer than the warning threshold. Otherwise
    the latest event decides.
    """
    now = now or datetime.now(UTC)
    warning_hours = get_settings().delay_warning_hours
    order_book = get_order_book()

    at_risk = []
    for shipment in current_domain.repository_for(Shipment).non_terminal(tenant_id):
        order = order_book.get_order(tenant_id, str(shipment.order_id))
        latest = shipment.latest_event

        if latest is None:
            age = hours_between(shipment.opened_at, now)
            if age > warning_hours:
                at_risk.append(
                    {
                        "shipment_id": str(shipment.id),
                        "order_id": str(shipment.order_id),
                        "order": order,
                        "risk_reason": NO_TRACKING_EVENTS,
                        "hours_since_creation": round_half_up(age),
                    }
                )
            continue

        risk = assess_risk(latest.occurred_at, latest.normalized_status, now=now)
        if risk.is_at_risk:
            at_risk.append(
                {
                    "shipment_id": str(shipment.id),
                    "order_id": str(shipment.order_id),
                    "order": order,
                    "latest_status": latest.normalized_status,
                    "risk_reason": risk.risk_reason,
                    "hours_since_update": round_half_up(risk.hours_since_update),
                    "carrier": latest.carrier,
                    "tracking_number": shipment.tracking_number or None,
                }
            )

    return at_risk


def shipping_stats(tenant_id: str, now: datetime | None = None) -> dict:
    """Shipment counts per status bucket, plus how many are at risk."""
    now = now or datetime.now(UTC)
    stats = {
        "total": 0,
        "pending": 0,
        "in_transit": 0,
        "delivered": 0,
        "failed": 0,
        "returned": 0,
        "at_risk": 0,
    }

    for shipment in current_domain.repository_for(Shipment).for_tenant(tenant_id):
        stats["total"] += 1
        stats[_STATS_BUCKETS.get(shipment.current_status or None, "pending")] += 1

        risk = _risk_of(shipment, now)
        if risk is not None and risk.is_at_risk:
            stats["at_risk"] += 1

    return stats

