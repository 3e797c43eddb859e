"""Tests for carrier insight generation."""

import pytest
from tracking.analytics.insights import generate_insights
from tracking.analytics.metrics import CarrierMetrics


def _metrics(carrier, success=80.0, returns=5.0, avg_delivery=None):
    return CarrierMetrics(
        carrier=carrier,
        total_shipments=10,
        delivery_success_rate=success,
        return_rate=returns,
        avg_delivery_time=avg_delivery,
    )


def _find(insights, carrier, metric, kind):
    return [i for i in insights if i.carrier == carrier and i.metric == metric and i.type == kind]


class TestGenerateInsights:
    def test_no_metrics_no_insights(self):
        assert generate_insights([]) == []

    def test_single_carrier_has_no_deviation(self):
        assert generate_insights([_metrics("aramex", avg_delivery=40)]) == []

    def test_delivery_rate_strength_and_weakness(self):
        # average success rate = 70
        insights = generate_insights([_metrics("a", success=95), _metrics("b", success=70), _metrics("c", success=45)])

        strength = _find(insights, "a", "delivery_success_rate", "strength")
        weakness = _find(insights, "c", "delivery_success_rate", "weakness")
        assert len(strength) == 1
        assert len(weakness) == 1
        assert strength[0].value == 95
        assert strength[0].benchmark == pytest.approx(70)
        assert "a excels at successful delivery (95.0% vs average 70.0%)" == strength[0].message
        assert not _find(insights, "b", "delivery_success_rate", "strength")

    def test_margin_is_strict(self):
        # exactly 10 points above average is not notable
        insights = generate_insights([_metrics("a", success=90), _metrics("b", success=70)])
        assert not [i for i in insights if i.metric == "delivery_success_rate"]

    def test_high_return_rate_warning(self):
        insights = generate_insights([_metrics("a", returns=20), _metrics("b", returns=2), _metrics("c", returns=2)])
        warnings = _find(insights, "a", "return_rate", "warning")
        assert len(warnings) == 1
        assert warnings[0].benchmark == pytest.approx(8)

    def test_delivery_time_insights(self):
        # average delivery time = 60h
        insights = generate_insights(
            [_metrics("fast", avg_delivery=30), _metrics("mid", avg_delivery=60), _metrics("slow", avg_delivery=90)]
        )
        assert len(_find(insights, "fast", "delivery_time", "strength")) == 1
        assert len(_find(insights, "slow", "delivery_time", "weakness")) == 1
        assert not _find(insights, "mid", "delivery_time", "strength")

    def test_delivery_time_skipped_without_samples(self):
        insights = generate_insights([_metrics("a", avg_delivery=None), _metrics("b", avg_delivery=None)])
        assert not [i for i in insights if i.metric == "delivery_time"]

    def test_carrier_without_delivery_time_is_not_compared(self):
        insights = generate_insights([_metrics("a", avg_delivery=None), _metrics("b", avg_delivery=100)])
        assert not _find(insights, "a", "delivery_time", "strength")

    def test_to_dict(self):
        insights = generate_insights([_metrics("a", success=100), _metrics("b", success=50)])
        data = insights[0].to_dict()
        assert set(data) == {"type", "carrier", "metric", "value", "benchmark", "message"}
