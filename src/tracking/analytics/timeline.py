"""Shipment timeline calculation.

Walks a shipment's ledger in insertion order and keeps the first
occurrence of each canonical status; later repeats are ignored. Durations
are in hours and only present when both endpoints exist. They are never
clamped: an out-of-order carrier report surfaces as a negative duration.
"""

from dataclasses import dataclass, fields
from datetime import datetime

from tracking.risk.detector import as_utc, hours_between
from tracking.status.normalizer import CanonicalStatus

UNKNOWN_CARRIER = "unknown"

_PHASE_FOR_STATUS = {
    CanonicalStatus.CREATED: "assignment_time",
    CanonicalStatus.PICKED_UP: "pickup_time",
    CanonicalStatus.IN_TRANSIT: "in_transit_time",
    CanonicalStatus.OUT_FOR_DELIVERY: "out_for_delivery_time",
    CanonicalStatus.DELIVERED: "delivery_time",
    CanonicalStatus.FAILED: "failed_time",
    CanonicalStatus.RETURNED: "returned_time",
}


@dataclass(frozen=True)
class ShipmentTimeline:
    shipment_id: str
    order_id: str
    carrier: str
    assignment_time: datetime | None = None
    pickup_time: datetime | None = None
    in_transit_time: datetime | None = None
    out_for_delivery_time: datetime | None = None
    delivery_time: datetime | None = None
    failed_time: datetime | None = None
    returned_time: datetime | None = None
    failure_reason: str | None = None
    pickup_delay: float | None = None
    transit_time: float | None = None
    delivery_duration: float | None = None
    return_cycle_time: float | None = None

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _duration(start: datetime | None, end: datetime | None) -> float | None:
    if start is None or end is None:
        return None
    return hours_between(start, end)


def compute_timeline(shipment) -> ShipmentTimeline:
    """Derive phase timestamps and durations from a shipment's ledger.

    The assignment phase is the first CREATED event; shipments whose ledger
    has none fall back to the time the shipment was opened.
    """
    ledger = shipment.ledger
    phases: dict[str, datetime] = {}
    failure_reason = None

    for event in ledger:
        status = CanonicalStatus(event.normalized_status)
        phase = _PHASE_FOR_STATUS[status]
        if phase in phases:
            continue
        phases[phase] = as_utc(event.occurred_at)
        if status == CanonicalStatus.FAILED:
            failure_reason = event.description or event.raw_status

    if "assignment_time" not in phases and shipment.opened_at is not None:
        phases["assignment_time"] = as_utc(shipment.opened_at)

    assignment = phases.get("assignment_time")
    pickup = phases.get("pickup_time")
    delivery = phases.get("delivery_time")
    returned = phases.get("returned_time")

    return ShipmentTimeline(
        shipment_id=str(shipment.id),
        order_id=str(shipment.order_id),
        carrier=(ledger[0].carrier if ledger else shipment.carrier) or UNKNOWN_CARRIER,
        failure_reason=failure_reason,
        pickup_delay=_duration(assignment, pickup),
        transit_time=_duration(pickup, delivery),
        delivery_duration=_duration(assignment, delivery),
        return_cycle_time=_duration(assignment, returned),
        **phases,
    )
