import uuid

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from tracking.carrier import reset_adapters
from tracking.collaborators import get_order_book, get_tenant_directory, reset_collaborators
from tracking.config import reset_settings


@pytest.fixture(scope="session")
def tracking_bed():
    from tracking.domain import tracking

    bed = DomainFixture(tracking)
    bed.setup()
    yield bed
    bed.teardown()


def _wipe_stores(domain):
    """Empty every provider, broker and the event store between tests."""
    for provider in domain.providers.values():
        provider._data_reset()
    for broker in domain.brokers.values():
        broker._data_reset()
    domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def tracking_context(tracking_bed):
    with tracking_bed.domain_context():
        yield
        _wipe_stores(current_domain)


@pytest.fixture(autouse=True)
def _reset_singletons():
    reset_settings()
    reset_collaborators()
    reset_adapters()
    yield
    reset_settings()
    reset_collaborators()
    reset_adapters()


@pytest.fixture()
def tenant_id():
    return f"tenant-{uuid.uuid4().hex[:8]}"


@pytest.fixture()
def order_id():
    return str(uuid.uuid4())


@pytest.fixture()
def order_book():
    return get_order_book()


@pytest.fixture()
def tenant_directory():
    return get_tenant_directory()
