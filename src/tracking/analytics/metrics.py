"""Carrier metrics aggregation over shipment timelines.

Outcome buckets:
    delivered   : has a delivery time
    failed      : has a failed time and no delivery time
    returned    : has a returned time
    in transit  : none of delivery, failed or returned

Rates are percentages of the carrier's shipments. Averages only include
shipments that have the duration; no samples means ``None``, never zero.
"""

from collections import Counter
from dataclasses import dataclass, field, fields
from typing import Iterable

from tracking.analytics.timeline import ShipmentTimeline


@dataclass(frozen=True)
class CarrierMetrics:
    carrier: str
    total_shipments: int = 0
    delivered_count: int = 0
    failed_count: int = 0
    returned_count: int = 0
    in_transit_count: int = 0
    delivery_success_rate: float = 0.0
    return_rate: float = 0.0
    failure_rate: float = 0.0
    avg_pickup_time: float | None = None
    avg_transit_time: float | None = None
    avg_delivery_time: float | None = None
    avg_return_cycle_time: float | None = None
    failure_reasons: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["failure_reasons"] = dict(self.failure_reasons)
        return data


def _mean(values: Iterable[float | None]) -> float | None:
    samples = [v for v in values if v is not None]
    if not samples:
        return None
    return sum(samples) / len(samples)


def aggregate(carrier: str, timelines: Iterable[ShipmentTimeline]) -> CarrierMetrics:
    """Reduce the timelines belonging to ``carrier`` into rate and duration statistics."""
    own = [t for t in timelines if t.carrier == carrier]
    total = len(own)
    if total == 0:
        return CarrierMetrics(carrier=carrier)

    delivered = [t for t in own if t.delivery_time is not None]
    failed = [t for t in own if t.failed_time is not None and t.delivery_time is None]
    returned = [t for t in own if t.returned_time is not None]
    in_transit = [
        t for t in own if t.delivery_time is None and t.failed_time is None and t.returned_time is None
    ]

    reasons = Counter(t.failure_reason for t in failed if t.failure_reason)

    return CarrierMetrics(
        carrier=carrier,
        total_shipments=total,
        delivered_count=len(delivered),
        failed_count=len(failed),
        returned_count=len(returned),
        in_transit_count=len(in_transit),
        delivery_success_rate=len(delivered) / total * 100,
        return_rate=len(returned) / total * 100,
        failure_rate=len(failed) / total * 100,
        avg_pickup_time=_mean(t.pickup_delay for t in own),
        avg_transit_time=_mean(t.transit_time for t in own),
        avg_delivery_time=_mean(t.delivery_duration for t in own),
        avg_return_cycle_time=_mean(t.return_cycle_time for t in own),
        failure_reasons=dict(reasons),
    )


def carriers_in(timelines: Iterable[ShipmentTimeline]) -> list[str]:
    """Distinct carriers in order of first appearance."""
    return list(dict.fromkeys(t.carrier for t in timelines))


def aggregate_all(timelines: list[ShipmentTimeline]) -> list[CarrierMetrics]:
    return [aggregate(carrier, timelines) for carrier in carriers_in(timelines)]
