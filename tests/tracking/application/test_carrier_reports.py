"""Application tests for carrier performance reports."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from tracking.analytics import reports
from tracking.shipment.ingestion import record_event
from tracking.shipment.recording import OpenShipment

START = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)


def _lifecycle(tenant_id, carrier, statuses, hours_apart=12):
    """Record ``statuses`` for a new order, ``hours_apart`` hours between events."""
    order_id = str(uuid.uuid4())
    for index, raw_status in enumerate(statuses):
        record_event(
            tenant_id=tenant_id,
            order_id=order_id,
            carrier=carrier,
            raw_status=raw_status,
            occurred_at=START + timedelta(hours=index * hours_apart),
        )
    return order_id


@pytest.fixture()
def performance(tenant_id):
    # aramex: 2 delivered in 36h, 1 failed
    for _ in range(2):
        _lifecycle(tenant_id, "aramex", ["Shipment Created", "Picked Up", "In Transit", "Delivered"])
    _lifecycle(tenant_id, "aramex", ["Shipment Created", "Picked Up", "Delivery Failed"])
    # smsa: 1 delivered in 72h, 1 returned
    _lifecycle(tenant_id, "smsa", ["Created", "Picked", "In Transit", "Delivered"], hours_apart=24)
    _lifecycle(tenant_id, "smsa", ["Created", "Picked", "Returned"], hours_apart=24)


class TestShipmentTimeline:
    def test_timeline(self, tenant_id):
        order_id = _lifecycle(tenant_id, "aramex", ["Shipment Created", "Picked Up", "In Transit", "Delivered"])
        timeline = reports.shipment_timeline(tenant_id, order_id)
        assert timeline["carrier"] == "aramex"
        assert timeline["pickup_delay"] == pytest.approx(12)
        assert timeline["transit_time"] == pytest.approx(24)
        assert timeline["delivery_duration"] == pytest.approx(36)

    def test_unknown_order(self, tenant_id):
        assert reports.shipment_timeline(tenant_id, str(uuid.uuid4())) is None


class TestCarrierMetrics:
    def test_per_carrier(self, tenant_id, performance):
        metrics = {m["carrier"]: m for m in reports.carrier_metrics(tenant_id)}
        assert set(metrics) == {"aramex", "smsa"}
        assert metrics["aramex"]["total_shipments"] == 3
        assert metrics["aramex"]["delivered_count"] == 2
        assert metrics["aramex"]["failed_count"] == 1
        assert metrics["aramex"]["avg_delivery_time"] == pytest.approx(36)
        assert metrics["smsa"]["returned_count"] == 1
        assert metrics["smsa"]["avg_delivery_time"] == pytest.approx(72)

    def test_single_carrier(self, tenant_id, performance):
        metrics = reports.carrier_metrics(tenant_id, carrier="smsa")
        assert [m["carrier"] for m in metrics] == ["smsa"]

    def test_shipments_without_events_ignored(self, tenant_id, performance):
        current_domain.process(OpenShipment(tenant_id=tenant_id, order_id=str(uuid.uuid4())), asynchronous=False)
        assert sum(m["total_shipments"] for m in reports.carrier_metrics(tenant_id)) == 5

    def test_date_window(self, tenant_id, performance):
        tomorrow = datetime.now(UTC) + timedelta(days=1)
        assert reports.carrier_metrics(tenant_id, date_from=tomorrow) == []
        assert len(reports.carrier_metrics(tenant_id, date_to=tomorrow)) == 2

    def test_tenant_isolation(self, tenant_id, performance):
        assert reports.carrier_metrics("tenant-other") == []


class TestCarrierScores:
    def test_ranked_best_first(self, tenant_id, performance):
        scores = reports.carrier_scores(tenant_id)
        assert [s["carrier"] for s in scores] == ["aramex", "smsa"]
        assert scores[0]["overall_score"] >= scores[1]["overall_score"]
        assert {"speed_score", "reliability_score", "return_rate_score", "tier"} <= set(scores[0])


class TestInsightsAndRouting:
    def test_insights_include_recommendations(self, tenant_id, performance):
        result = reports.carrier_insights(tenant_id)
        assert set(result) == {"insights", "recommendations"}
        assert [r["scenario"] for r in result["recommendations"]] == ["general", "cod", "prepaid"]

    def test_routing(self, tenant_id, performance):
        recommendations = reports.routing_recommendations(tenant_id)
        general = recommendations[0]
        assert general["recommended_carrier"] == "aramex"
        assert general["alternatives"] == [{"carrier": "smsa", "score": 48}]

    def test_routing_for_payment_method(self, tenant_id, performance):
        recommendations = reports.routing_recommendations(tenant_id, payment_method="prepaid")
        assert [r["scenario"] for r in recommendations] == ["general", "prepaid"]

    def test_no_data_no_recommendations(self, tenant_id):
        assert reports.routing_recommendations(tenant_id) == []


class TestDashboard:
    def test_summary(self, tenant_id, performance):
        summary = reports.dashboard_summary(tenant_id, now=START + timedelta(days=2))

        assert summary["total_shipments"] == 5
        assert summary["total_carriers"] == 2
        assert summary["top_carrier"]["carrier"] == "aramex"
        assert summary["worst_carrier"]["carrier"] == "smsa"
        assert summary["avg_delivery_time"] == 54
        # The failed aramex shipment is 48h past assignment
        assert summary["at_risk_count"] == 0

    def test_at_risk_after_72_hours(self, tenant_id, performance):
        summary = reports.dashboard_summary(tenant_id, now=START + timedelta(days=10))
        assert summary["at_risk_count"] == 1

    def test_empty_tenant(self, tenant_id):
        summary = reports.dashboard_summary(tenant_id)
        assert summary == {
            "total_shipments": 0,
            "total_carriers": 0,
            "avg_delivery_rate": 0,
            "avg_delivery_time": None,
            "top_carrier": None,
            "worst_carrier": None,
            "at_risk_count": 0,
        }
