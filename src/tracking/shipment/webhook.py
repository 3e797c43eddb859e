"""Carrier webhook intake.

The secret identifies the tenant. When the carrier also signs the request,
the signature and timestamp are verified before the payload is trusted.
Webhooks never open shipments: the order's shipment must already exist.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from tracking.carrier import get_adapter
from tracking.carrier.signature import verify_signature
from tracking.collaborators import get_tenant_directory
from tracking.exceptions import WebhookAuthenticationError
from tracking.shipment.ingestion import record_event
from tracking.shipment.shipment import EventSource, parse_order_reference
from tracking.utils.logging import carrier_context

logger = structlog.get_logger(__name__)


def authenticate_webhook(
    carrier: str,
    secret: str,
    raw_body: bytes | str | None = None,
    signature: str | None = None,
    timestamp: str | None = None,
) -> str:
    """Resolve the tenant for a webhook, verifying the signature when one is sent."""
    tenant_id = get_tenant_directory().tenant_for_secret(secret)
    if tenant_id is None:
        logger.warning("Webhook rejected", carrier=carrier, reason="unknown_secret")
        raise WebhookAuthenticationError("Invalid webhook secret")

    if signature or timestamp:
        if raw_body is None or not verify_signature(raw_body, signature or "", timestamp or "", secret):
            logger.warning("Webhook rejected", carrier=carrier, tenant_id=tenant_id, reason="bad_signature")
            raise WebhookAuthenticationError("Invalid webhook signature")

    return tenant_id


def receive_webhook(
    carrier: str,
    secret: str,
    payload: dict,
    raw_body: bytes | str | None = None,
    signature: str | None = None,
    timestamp: str | None = None,
) -> dict:
    """Authenticate, parse and record one carrier webhook.

    Raises:
        WebhookAuthenticationError: unknown secret or bad signature
        ValidationError: order id or status missing from the payload
        ObjectNotFoundError: the tenant has no shipment for the order, or the
            carrier's order reference is not one of ours
    """
    with carrier_context(carrier):
        tenant_id = authenticate_webhook(carrier, secret, raw_body, signature, timestamp)
        fields = get_adapter(carrier).parse_webhook(payload or {})

        if fields.missing:
            logger.warning("Webhook rejected", carrier=carrier, tenant_id=tenant_id, missing=fields.missing)
            raise ValidationError({"payload": [f"Missing required fields: {', '.join(fields.missing)}"]})

        try:
            parse_order_reference(fields.order_id)
        except ValidationError as exc:
            logger.warning("Webhook for unknown order", carrier=carrier, tenant_id=tenant_id, reference=fields.order_id)
            raise ObjectNotFoundError(f"Shipment for order {fields.order_id} not found") from exc

        result = record_event(
            tenant_id=tenant_id,
            order_id=fields.order_id,
            carrier=carrier,
            raw_status=fields.raw_status,
            tracking_number=fields.tracking_number,
            location=fields.location,
            raw_response=payload,
            source=EventSource.WEBHOOK.value,
            require_existing=True,
        )
        return {"success": True, **result}
