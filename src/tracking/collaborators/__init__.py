"""Collaborator adapters: order book and tenant directory singletons."""

import os

_order_book_instance = None
_tenant_directory_instance = None


def _seeded_secrets(raw: str) -> list[tuple[str, str]]:
    pairs = []
    for entry in raw.split(","):
        tenant_id, sep, secret = entry.strip().partition(":")
        if not sep or not tenant_id or not secret:
            continue
        pairs.append((tenant_id, secret))
    return pairs


def get_order_book():
    """Return the configured order book adapter (singleton).

    Uses InMemoryOrderBook by default. Configure via the ORDER_BOOK_ADAPTER
    environment variable.
    """
    global _order_book_instance
    if _order_book_instance is None:
        adapter = os.environ.get("ORDER_BOOK_ADAPTER", "memory")
        if adapter == "memory":
            from tracking.collaborators.memory_adapter import InMemoryOrderBook

            _order_book_instance = InMemoryOrderBook()
        else:
            raise ValueError(f"Unknown order book adapter: {adapter}")
    return _order_book_instance


def get_tenant_directory():
    """Return the configured tenant directory adapter (singleton).

    Uses InMemoryTenantDirectory by default. Configure via the
    TENANT_DIRECTORY_ADAPTER environment variable. The in-memory directory is
    seeded from TRACKING_WEBHOOK_SECRETS ("tenant:secret,tenant:secret").
    """
    global _tenant_directory_instance
    if _tenant_directory_instance is None:
        adapter = os.environ.get("TENANT_DIRECTORY_ADAPTER", "memory")
        if adapter == "memory":
            from tracking.collaborators.memory_adapter import InMemoryTenantDirectory

            _tenant_directory_instance = InMemoryTenantDirectory()
            for tenant_id, secret in _seeded_secrets(os.environ.get("TRACKING_WEBHOOK_SECRETS", "")):
                _tenant_directory_instance.register(tenant_id, secret)
        else:
            raise ValueError(f"Unknown tenant directory adapter: {adapter}")
    return _tenant_directory_instance


def reset_collaborators():
    """Reset both collaborator singletons (useful for testing)."""
    global _order_book_instance, _tenant_directory_instance
    _order_book_instance = None
    _tenant_directory_instance = None
