"""Carrier insights: per-carrier findings against fleet benchmarks.

Benchmarks are plain means across the carriers in the analysis window:
delivery success rate and return rate over all carriers, average delivery
time over carriers that have one.
"""

from dataclasses import asdict, dataclass
from enum import Enum

from tracking.analytics.metrics import CarrierMetrics
from tracking.analytics.scoring import CarrierScore

DELIVERY_RATE_MARGIN = 10
RETURN_RATE_MARGIN = 5
FAST_DELIVERY_MARGIN_HOURS = 12
SLOW_DELIVERY_MARGIN_HOURS = 24


class InsightType(Enum):
    STRENGTH = "strength"
    WEAKNESS = "weakness"
    WARNING = "warning"


@dataclass(frozen=True)
class CarrierInsight:
    type: str
    carrier: str
    metric: str
    value: float
    benchmark: float
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def generate_insights(metrics: list[CarrierMetrics], scores: list[CarrierScore] | None = None) -> list[CarrierInsight]:
    """Compare each carrier with the fleet and report notable deviations."""
    if not metrics:
        return []

    avg_rate = _mean([m.delivery_success_rate for m in metrics])
    avg_return = _mean([m.return_rate for m in metrics])
    avg_time = _mean([m.avg_delivery_time for m in metrics if m.avg_delivery_time is not None])

    insights = []
    for m in metrics:
        if m.delivery_success_rate > avg_rate + DELIVERY_RATE_MARGIN:
            insights.append(
                CarrierInsight(
                    type=InsightType.STRENGTH.value,
                    carrier=m.carrier,
                    metric="delivery_success_rate",
                    value=m.delivery_success_rate,
                    benchmark=avg_rate,
                    message=(
                        f"{m.carrier} excels at successful delivery "
                        f"({m.delivery_success_rate:.1f}% vs average {avg_rate:.1f}%)"
                    ),
                )
            )

        if m.delivery_success_rate < avg_rate - DELIVERY_RATE_MARGIN:
            insights.append(
                CarrierInsight(
                    type=InsightType.WEAKNESS.value,
                    carrier=m.carrier,
                    metric="delivery_success_rate",
                    value=m.delivery_success_rate,
                    benchmark=avg_rate,
                    message=(
                        f"{m.carrier} has a low delivery success rate "
                        f"({m.delivery_success_rate:.1f}% vs average {avg_rate:.1f}%)"
                    ),
                )
            )

        if m.return_rate > avg_return + RETURN_RATE_MARGIN:
            insights.append(
                CarrierInsight(
                    type=InsightType.WARNING.value,
                    carrier=m.carrier,
                    metric="return_rate",
                    value=m.return_rate,
                    benchmark=avg_return,
                    message=f"{m.carrier} has a high return rate ({m.return_rate:.1f}% vs average {avg_return:.1f}%)",
                )
            )

        if avg_time is None or m.avg_delivery_time is None:
            continue

        if m.avg_delivery_time < avg_time - FAST_DELIVERY_MARGIN_HOURS:
            insights.append(
                CarrierInsight(
                    type=InsightType.STRENGTH.value,
                    carrier=m.carrier,
                    metric="delivery_time",
                    value=m.avg_delivery_time,
                    benchmark=avg_time,
                    message=f"{m.carrier} delivers faster ({m.avg_delivery_time:.1f}h vs average {avg_time:.1f}h)",
                )
            )

        if m.avg_delivery_time > avg_time + SLOW_DELIVERY_MARGIN_HOURS:
            insights.append(
                CarrierInsight(
                    type=InsightType.WEAKNESS.value,
                    carrier=m.carrier,
                    metric="delivery_time",
                    value=m.avg_delivery_time,
                    benchmark=avg_time,
                    message=f"{m.carrier} delivers slowly ({m.avg_delivery_time:.1f}h vs average {avg_time:.1f}h)",
                )
            )

    return insights
