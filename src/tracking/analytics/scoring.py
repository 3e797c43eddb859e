"""Carrier scoring.

Sub-scores are on a 0-100 scale:

    speed        100 at a 48h average delivery, 0 at 144h, clamped.
                 100 when there is no delivery data yet.
    reliability  the delivery success rate.
    return rate  100 minus five points per percent of returns, floored at 0.

The overall score weighs them 0.3 / 0.5 / 0.2. Reported scores are rounded
half-up; the tier is decided on the unrounded overall score.
"""

from dataclasses import asdict, dataclass
from enum import Enum

from tracking.analytics.metrics import CarrierMetrics
from tracking.utils.numbers import round_half_up

SPEED_BASELINE_HOURS = 48
SPEED_RANGE_HOURS = 96

SPEED_WEIGHT = 0.3
RELIABILITY_WEIGHT = 0.5
RETURN_RATE_WEIGHT = 0.2


class CarrierTier(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


_TIER_FLOORS = (
    (85, CarrierTier.EXCELLENT),
    (70, CarrierTier.GOOD),
    (50, CarrierTier.AVERAGE),
)


@dataclass(frozen=True)
class CarrierScore:
    carrier: str
    speed_score: int
    reliability_score: int
    return_rate_score: int
    overall_score: int
    tier: str

    def to_dict(self) -> dict:
        return asdict(self)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def speed_score(avg_delivery_time: float | None) -> float:
    if avg_delivery_time is None:
        return 100.0
    return _clamp(100 - ((avg_delivery_time - SPEED_BASELINE_HOURS) / SPEED_RANGE_HOURS) * 100)


def return_rate_score(return_rate: float) -> float:
    return _clamp(100 - return_rate * 5)


def tier_for(overall: float) -> CarrierTier:
    for floor, tier in _TIER_FLOORS:
        if overall >= floor:
            return tier
    return CarrierTier.POOR


def score(metrics: CarrierMetrics) -> CarrierScore:
    speed = speed_score(metrics.avg_delivery_time)
    reliability = metrics.delivery_success_rate
    returns = return_rate_score(metrics.return_rate)
    overall = speed * SPEED_WEIGHT + reliability * RELIABILITY_WEIGHT + returns * RETURN_RATE_WEIGHT

    return CarrierScore(
        carrier=metrics.carrier,
        speed_score=round_half_up(speed),
        reliability_score=round_half_up(reliability),
        return_rate_score=round_half_up(returns),
        overall_score=round_half_up(overall),
        tier=tier_for(overall).value,
    )


def rank(scores: list[CarrierScore]) -> list[CarrierScore]:
    """Scores ordered best first (stable for ties)."""
    return sorted(scores, key=lambda s: s.overall_score, reverse=True)
