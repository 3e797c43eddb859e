"""Tracking domain API package."""

from tracking.api.routes import automation_router, carrier_router, shipment_router

__all__ = ["shipment_router", "automation_router", "carrier_router"]
