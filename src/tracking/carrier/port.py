"""Carrier webhook port: abstract interface for carrier payload parsing.

Every carrier posts its own payload shape. Adapters extract the four
fields the ledger needs; dispatch code only ever talks to this port.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class WebhookFields:
    """Fields extracted from a carrier webhook payload."""

    order_id: str | None
    tracking_number: str | None
    raw_status: str | None
    location: str | None = None

    @property
    def missing(self) -> list[str]:
        return [name for name in ("order_id", "raw_status") if not getattr(self, name)]


class CarrierWebhookAdapter(ABC):
    """Abstract interface for carrier webhook adapters."""

    carrier: str = ""

    @abstractmethod
    def parse_webhook(self, payload: dict) -> WebhookFields:
        """Extract ledger fields from a raw webhook payload. Must not raise on missing keys."""
        ...


def text(value) -> str | None:
    """Coerce a payload value to a stripped string; empty values become None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def first_of(payload: dict, *keys: str) -> str | None:
    """The first key in ``keys`` whose payload value is non-empty."""
    for key in keys:
        value = text(payload.get(key))
        if value is not None:
            return value
    return None
