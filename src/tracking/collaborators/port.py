"""Collaborator ports: interfaces to systems the tracking engine does not own.

The order-management system owns orders and their status field; the tenant
settings store owns per-tenant webhook secrets. The engine programs against
these ports; adapters are swapped via configuration.
"""

from abc import ABC, abstractmethod


class OrderBook(ABC):
    """Access to the external order-management system."""

    @abstractmethod
    def get_order(self, tenant_id: str, order_id: str) -> dict | None:
        """Return the order as a dict (at least ``id`` and ``status``), or None if unknown."""
        ...

    @abstractmethod
    def update_status(self, tenant_id: str, order_id: str, status: str) -> bool:
        """Set the order's status field.

        Returns:
            True if the order was updated, False if it is unknown.
        """
        ...


class TenantDirectory(ABC):
    """Access to per-tenant settings."""

    @abstractmethod
    def tenant_for_secret(self, secret: str) -> str | None:
        """Return the tenant whose webhook secret equals ``secret``, or None."""
        ...
