"""Carrier performance reports.

Read-only and tenant-scoped. Timelines, metrics and scores are recomputed
from the shipment ledgers on every call; nothing here is cached or stored.
Shipments whose ledger is still empty contribute to shipment totals only.
"""

from datetime import UTC, datetime

from protean.utils.globals import current_domain

from tracking.analytics.insights import generate_insights
from tracking.analytics.metrics import aggregate, aggregate_all, carriers_in
from tracking.analytics.routing import recommend_routing
from tracking.analytics.scoring import rank, score
from tracking.analytics.timeline import ShipmentTimeline, compute_timeline
from tracking.risk.detector import as_utc, hours_between
from tracking.shipment.shipment import Shipment
from tracking.utils.numbers import round_half_up

STALE_ASSIGNMENT_HOURS = 72


def _shipments(tenant_id: str, date_from: datetime | None = None, date_to: datetime | None = None) -> list[Shipment]:
    shipments = current_domain.repository_for(Shipment).for_tenant(tenant_id)
    if date_from is not None:
        date_from = as_utc(date_from)
        shipments = [s for s in shipments if as_utc(s.opened_at) >= date_from]
    if date_to is not None:
        date_to = as_utc(date_to)
        shipments = [s for s in shipments if as_utc(s.opened_at) <= date_to]
    return shipments


def _timelines(shipments: list[Shipment]) -> list[ShipmentTimeline]:
    return [compute_timeline(s) for s in shipments if s.event_count > 0]


def shipment_timeline(tenant_id: str, order_id: str) -> dict | None:
    shipment = current_domain.repository_for(Shipment).find_by_order(tenant_id, order_id)
    if shipment is None:
        return None
    return compute_timeline(shipment).to_dict()


def carrier_metrics(
    tenant_id: str,
    carrier: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[dict]:
    timelines = _timelines(_shipments(tenant_id, date_from, date_to))
    carriers = [c for c in carriers_in(timelines) if carrier is None or c == carrier]
    return [aggregate(c, timelines).to_dict() for c in carriers]


def carrier_scores(tenant_id: str, date_from: datetime | None = None, date_to: datetime | None = None) -> list[dict]:
    """Carrier scores, best first."""
    metrics = aggregate_all(_timelines(_shipments(tenant_id, date_from, date_to)))
    return [s.to_dict() for s in rank([score(m) for m in metrics])]


def carrier_insights(tenant_id: str, date_from: datetime | None = None, date_to: datetime | None = None) -> dict:
    metrics = aggregate_all(_timelines(_shipments(tenant_id, date_from, date_to)))
    scores = [score(m) for m in metrics]
    return {
        "insights": [i.to_dict() for i in generate_insights(metrics, scores)],
        "recommendations": [r.to_dict() for r in recommend_routing(scores, metrics)],
    }


def routing_recommendations(tenant_id: str, payment_method: str | None = None) -> list[dict]:
    metrics = aggregate_all(_timelines(_shipments(tenant_id)))
    scores = [score(m) for m in metrics]
    return [r.to_dict() for r in recommend_routing(scores, metrics, payment_method=payment_method)]


def dashboard_summary(tenant_id: str, now: datetime | None = None) -> dict:
    """Headline numbers for the carrier performance dashboard.

    ``at_risk_count`` here is a coarse signal: shipments neither delivered
    nor returned more than 72 hours after assignment, regardless of recent
    carrier activity.
    """
    now = now or datetime.now(UTC)
    shipments = _shipments(tenant_id)
    timelines = _timelines(shipments)
    metrics = aggregate_all(timelines)
    ranked = rank([score(m) for m in metrics])

    avg_rate = sum(m.delivery_success_rate for m in metrics) / len(metrics) if metrics else 0
    delivery_times = [m.avg_delivery_time for m in metrics if m.avg_delivery_time is not None]
    avg_time = sum(delivery_times) / len(delivery_times) if delivery_times else None

    at_risk = [
        t
        for t in timelines
        if t.delivery_time is None
        and t.returned_time is None
        and t.assignment_time is not None
        and hours_between(t.assignment_time, now) > STALE_ASSIGNMENT_HOURS
    ]

    return {
        "total_shipments": len(shipments),
        "total_carriers": len(metrics),
        "avg_delivery_rate": round_half_up(avg_rate),
        "avg_delivery_time": round_half_up(avg_time) if avg_time is not None else None,
        "top_carrier": ranked[0].to_dict() if ranked else None,
        "worst_carrier": ranked[-1].to_dict() if ranked else None,
        "at_risk_count": len(at_risk),
    }
