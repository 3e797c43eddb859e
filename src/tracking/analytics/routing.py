"""Carrier routing recommendations.

Three scenarios, each ranking carriers by a different dimension:

    general   overall score
    cod       reliability (cash-on-delivery needs the parcel to arrive)
    prepaid   speed

Every recommendation names the top carrier and up to two alternatives.
"""

from dataclasses import dataclass, field
from enum import Enum

from tracking.analytics.metrics import CarrierMetrics
from tracking.analytics.scoring import CarrierScore

MAX_ALTERNATIVES = 2


class RoutingScenario(Enum):
    GENERAL = "general"
    COD = "cod"
    PREPAID = "prepaid"


class PaymentMethod(Enum):
    COD = "cod"
    PREPAID = "prepaid"


@dataclass(frozen=True)
class RoutingRecommendation:
    scenario: str
    recommended_carrier: str
    score: int
    reason: str
    payment_method: str | None = None
    alternatives: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "scenario": self.scenario,
            "payment_method": self.payment_method,
            "recommended_carrier": self.recommended_carrier,
            "score": self.score,
            "reason": self.reason,
            "alternatives": [dict(a) for a in self.alternatives],
        }


def _recommend(scores, dimension, scenario, payment_method, reason) -> RoutingRecommendation:
    ranked = sorted(scores, key=lambda s: getattr(s, dimension), reverse=True)
    best = ranked[0]
    return RoutingRecommendation(
        scenario=scenario.value,
        payment_method=payment_method.value if payment_method else None,
        recommended_carrier=best.carrier,
        score=getattr(best, dimension),
        reason=reason(best),
        alternatives=[
            {"carrier": s.carrier, "score": getattr(s, dimension)} for s in ranked[1 : 1 + MAX_ALTERNATIVES]
        ],
    )


def recommend_routing(
    scores: list[CarrierScore],
    metrics: list[CarrierMetrics] | None = None,
    payment_method: PaymentMethod | str | None = None,
) -> list[RoutingRecommendation]:
    """Rank carriers per scenario. No carriers with data means no recommendations.

    With ``payment_method`` only the general recommendation and the one for
    that payment method are returned.
    """
    if not scores:
        return []

    recommendations = [
        _recommend(
            scores,
            "overall_score",
            RoutingScenario.GENERAL,
            None,
            lambda s: f"Best overall performance ({s.tier})",
        ),
        _recommend(
            scores,
            "reliability_score",
            RoutingScenario.COD,
            PaymentMethod.COD,
            lambda s: f"Highest successful delivery rate ({s.reliability_score}%)",
        ),
        _recommend(
            scores,
            "speed_score",
            RoutingScenario.PREPAID,
            PaymentMethod.PREPAID,
            lambda s: "Fastest delivery",
        ),
    ]

    if payment_method:
        wanted = PaymentMethod(payment_method).value
        recommendations = [r for r in recommendations if r.payment_method in (None, wanted)]

    return recommendations
