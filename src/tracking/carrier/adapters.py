"""Carrier webhook adapters for the carriers with dedicated payload shapes."""

from tracking.carrier.port import CarrierWebhookAdapter, WebhookFields, first_of, text


class AramexAdapter(CarrierWebhookAdapter):
    carrier = "aramex"

    def parse_webhook(self, payload: dict) -> WebhookFields:
        return WebhookFields(
            order_id=text(payload.get("reference")),
            tracking_number=text(payload.get("waybill")),
            raw_status=text(payload.get("status")),
            location=text(payload.get("location")),
        )


class SmsaAdapter(CarrierWebhookAdapter):
    carrier = "smsa"

    def parse_webhook(self, payload: dict) -> WebhookFields:
        return WebhookFields(
            order_id=text(payload.get("refNo")),
            tracking_number=text(payload.get("awb")),
            raw_status=text(payload.get("activity")),
            location=text(payload.get("city")),
        )


class GenericAdapter(CarrierWebhookAdapter):
    """Default payload shape, also used for carriers without a dedicated adapter."""

    carrier = "generic"

    def parse_webhook(self, payload: dict) -> WebhookFields:
        return WebhookFields(
            order_id=first_of(payload, "order_id", "orderId", "reference"),
            tracking_number=first_of(payload, "tracking_number", "trackingNumber", "awb"),
            raw_status=first_of(payload, "status", "event"),
            location=text(payload.get("location")),
        )
