"""Tracking bounded context: Shipment Tracking and Carrier Performance.

Ingests delivery events from heterogeneous carrier sources (webhooks,
polling jobs, manual entry), normalizes them into a canonical delivery
state and keeps an append-only ledger per shipment. Analytics over those
ledgers produce carrier scores, insights and routing recommendations.
"""

from protean.domain import Domain

from tracking.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
tracking = Domain(name="tracking")
