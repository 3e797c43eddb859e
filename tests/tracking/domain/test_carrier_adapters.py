"""Tests for carrier webhook payload adapters."""

from tracking.carrier import get_adapter, register_adapter, reset_adapters
from tracking.carrier.adapters import AramexAdapter, GenericAdapter, SmsaAdapter
from tracking.carrier.port import CarrierWebhookAdapter, WebhookFields


class TestAramexAdapter:
    def test_parse(self):
        fields = AramexAdapter().parse_webhook(
            {"reference": "ord-1", "waybill": "WB1", "status": "Delivered", "location": "Riyadh"}
        )
        assert fields == WebhookFields("ord-1", "WB1", "Delivered", "Riyadh")
        assert fields.missing == []

    def test_missing_status(self):
        fields = AramexAdapter().parse_webhook({"reference": "ord-1"})
        assert fields.missing == ["raw_status"]


class TestSmsaAdapter:
    def test_parse(self):
        fields = SmsaAdapter().parse_webhook({"refNo": "ord-2", "awb": "AWB2", "activity": "Picked", "city": "Jeddah"})
        assert fields == WebhookFields("ord-2", "AWB2", "Picked", "Jeddah")

    def test_aramex_keys_are_not_read(self):
        fields = SmsaAdapter().parse_webhook({"reference": "ord-2", "status": "Picked"})
        assert fields.missing == ["order_id", "raw_status"]


class TestGenericAdapter:
    def test_snake_case_keys(self):
        fields = GenericAdapter().parse_webhook(
            {"order_id": "ord-3", "tracking_number": "T3", "status": "delivered", "location": "Dubai"}
        )
        assert fields == WebhookFields("ord-3", "T3", "delivered", "Dubai")

    def test_alternative_keys(self):
        fields = GenericAdapter().parse_webhook({"orderId": "ord-4", "trackingNumber": "T4", "event": "in_transit"})
        assert fields.order_id == "ord-4"
        assert fields.tracking_number == "T4"
        assert fields.raw_status == "in_transit"

    def test_reference_and_awb_fallbacks(self):
        fields = GenericAdapter().parse_webhook({"reference": "ord-5", "awb": "A5", "status": "created"})
        assert fields.order_id == "ord-5"
        assert fields.tracking_number == "A5"

    def test_blank_values_are_missing(self):
        fields = GenericAdapter().parse_webhook({"order_id": "  ", "status": ""})
        assert fields.missing == ["order_id", "raw_status"]


class TestRegistry:
    def test_builtin_adapters(self):
        assert isinstance(get_adapter("aramex"), AramexAdapter)
        assert isinstance(get_adapter("SMSA"), SmsaAdapter)

    def test_unknown_carrier_gets_generic(self):
        assert isinstance(get_adapter("fastway"), GenericAdapter)
        assert isinstance(get_adapter(None), GenericAdapter)

    def test_register_new_carrier(self):
        class DhlAdapter(CarrierWebhookAdapter):
            carrier = "dhl"

            def parse_webhook(self, payload):
                return WebhookFields(payload.get("ref"), payload.get("piece"), payload.get("code"))

        register_adapter("DHL", DhlAdapter())
        assert get_adapter("dhl").parse_webhook({"ref": "o", "code": "PU"}).raw_status == "PU"

        reset_adapters()
        assert isinstance(get_adapter("dhl"), GenericAdapter)
