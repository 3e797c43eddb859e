"""In-memory collaborator adapters: used in development and tests.

Orders and tenants are registered explicitly; nothing is persisted.
"""

import hmac
from datetime import UTC, datetime

from tracking.collaborators.port import OrderBook, TenantDirectory


class InMemoryOrderBook(OrderBook):
    def __init__(self):
        self._orders: dict[tuple[str, str], dict] = {}

    def register(self, tenant_id: str, order_id: str, status: str = "processing", **attrs) -> dict:
        """Register an order so status projections can reach it."""
        order = {"id": str(order_id), "tenant_id": tenant_id, "status": status, **attrs}
        self._orders[(tenant_id, str(order_id))] = order
        return order

    def get_order(self, tenant_id: str, order_id: str) -> dict | None:
        order = self._orders.get((tenant_id, str(order_id)))
        return dict(order) if order else None

    def update_status(self, tenant_id: str, order_id: str, status: str) -> bool:
        order = self._orders.get((tenant_id, str(order_id)))
        if order is None:
            return False
        order["status"] = status
        order["updated_at"] = datetime.now(UTC)
        return True

    def clear(self):
        self._orders.clear()


class InMemoryTenantDirectory(TenantDirectory):
    def __init__(self):
        self._secrets: dict[str, str] = {}

    def register(self, tenant_id: str, webhook_secret: str) -> None:
        self._secrets[tenant_id] = webhook_secret

    def secret_for(self, tenant_id: str) -> str | None:
        return self._secrets.get(tenant_id)

    def tenant_for_secret(self, secret: str) -> str | None:
        if not secret:
            return None
        for tenant_id, stored in self._secrets.items():
            if hmac.compare_digest(stored.encode(), secret.encode()):
                return tenant_id
        return None

    def clear(self):
        self._secrets.clear()
