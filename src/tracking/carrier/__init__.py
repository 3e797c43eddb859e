"""Carrier webhook adapters: registry keyed by carrier name."""

from tracking.carrier.adapters import AramexAdapter, GenericAdapter, SmsaAdapter
from tracking.carrier.port import CarrierWebhookAdapter

_DEFAULT_ADAPTER = GenericAdapter()
_adapters: dict[str, CarrierWebhookAdapter] = {}


def register_adapter(carrier: str, adapter: CarrierWebhookAdapter) -> None:
    """Register (or replace) the webhook adapter for a carrier."""
    _adapters[carrier.strip().lower()] = adapter


def get_adapter(carrier: str | None) -> CarrierWebhookAdapter:
    """Return the adapter registered for ``carrier``, or the generic one."""
    return _adapters.get((carrier or "").strip().lower(), _DEFAULT_ADAPTER)


def reset_adapters():
    """Restore the built-in adapter registrations (useful for testing)."""
    _adapters.clear()
    register_adapter("aramex", AramexAdapter())
    register_adapter("smsa", SmsaAdapter())


reset_adapters()
