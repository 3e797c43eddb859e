"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; nothing is shared
across users. State tracks the order and shipment returned by the API so
follow-up events can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class ShipmentState:
    """Tracks one simulated shipment through its carrier lifecycle."""

    order_id: str | None = None
    shipment_id: str | None = None
    carrier: str | None = None
    statuses_sent: list[str] = field(default_factory=list)
    last_normalized_status: str | None = None
