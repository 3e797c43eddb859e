"""Unmapped carrier statuses: raw statuses that only the fallback rule matched.

Operators use this view to extend the carrier status tables. One row per
tenant, carrier and raw status.
"""

from uuid import NAMESPACE_URL, uuid5

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from tracking.domain import tracking
from tracking.shipment.events import TrackingEventRecorded
from tracking.shipment.shipment import Shipment
from tracking.status.normalizer import MatchStage


@tracking.projection
class UnmappedStatusView:
    id = Identifier(identifier=True)
    tenant_id = Identifier(required=True)
    carrier = String(required=True, max_length=100)
    raw_status = String(required=True, max_length=255)
    occurrences = Integer(default=0)
    first_seen_at = DateTime()
    last_seen_at = DateTime()
    last_shipment_id = Identifier()


def _view_id(tenant_id: str, carrier: str, raw_status: str) -> str:
    return str(uuid5(NAMESPACE_URL, f"{tenant_id}/{carrier.lower()}/{raw_status}"))


@tracking.projector(projector_for=UnmappedStatusView, aggregates=[Shipment])
class UnmappedStatusProjector:
    @on(TrackingEventRecorded)
    def on_tracking_event_recorded(self, event):
        if event.matched_by != MatchStage.FALLBACK.value:
            return

        repo = current_domain.repository_for(UnmappedStatusView)
        view_id = _view_id(str(event.tenant_id), event.carrier, event.raw_status)
        try:
            view = repo.get(view_id)
            view.occurrences = (view.occurrences or 0) + 1
        except ObjectNotFoundError:
            view = UnmappedStatusView(
                id=view_id,
                tenant_id=event.tenant_id,
                carrier=event.carrier.lower(),
                raw_status=event.raw_status,
                occurrences=1,
                first_seen_at=event.recorded_at,
            )
        view.last_seen_at = event.recorded_at
        view.last_shipment_id = event.shipment_id
        repo.add(view)


def unmapped_statuses(tenant_id: str, carrier: str | None = None) -> list[dict]:
    """Fallback-mapped raw statuses of a tenant, most frequent first."""
    repo = current_domain.repository_for(UnmappedStatusView)
    views = repo._dao.query.filter(tenant_id=tenant_id).all().items
    if carrier:
        views = [v for v in views if v.carrier == carrier.lower()]

    return [
        {
            "carrier": v.carrier,
            "raw_status": v.raw_status,
            "occurrences": v.occurrences,
            "first_seen_at": v.first_seen_at,
            "last_seen_at": v.last_seen_at,
            "last_shipment_id": str(v.last_shipment_id) if v.last_shipment_id else None,
        }
        for v in sorted(views, key=lambda v: v.occurrences or 0, reverse=True)
    ]
