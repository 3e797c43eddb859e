"""Repository for the Shipment aggregate."""

from tracking.config import get_settings
from tracking.domain import tracking
from tracking.shipment.shipment import Shipment, parse_order_reference
from tracking.status.normalizer import TERMINAL_STATUSES


@tracking.repository(part_of=Shipment)
class ShipmentRepository:
    """Tenant-scoped lookups over shipments.

    The base repository provides ``get``/``add``; every query here filters
    by tenant so one tenant never sees another's shipments.
    """

    def find_by_order(self, tenant_id: str, order_id: str) -> Shipment | None:
        """Find the tenant's shipment for an order, or None."""
        return self._dao.query.filter(tenant_id=tenant_id, order_id=parse_order_reference(order_id)).all().first

    def for_tenant(self, tenant_id: str) -> list[Shipment]:
        """All shipments of a tenant (bounded by the configured scan limit)."""
        limit = get_settings().scan_limit
        return self._dao.query.filter(tenant_id=tenant_id).limit(limit).all().items

    def non_terminal(self, tenant_id: str) -> list[Shipment]:
        """Shipments that are neither delivered nor returned, including those with no events yet."""
        terminal = {status.value for status in TERMINAL_STATUSES}
        return [s for s in self.for_tenant(tenant_id) if s.current_status not in terminal]
