"""Shipment risk detection.

A shipment is at risk when its latest canonical status is FAILED, or when
a non-terminal shipment has not produced a carrier event for longer than
the warning/critical thresholds. Threshold comparisons are inclusive.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from tracking.config import get_settings
from tracking.status.normalizer import TERMINAL_STATUSES, CanonicalStatus

DELIVERY_FAILED = "delivery_failed"
CRITICAL_DELAY = "critical_delay"
DELAY_WARNING = "delay_warning"
NO_TRACKING_EVENTS = "no_tracking_events"


@dataclass(frozen=True)
class RiskAssessment:
    is_at_risk: bool
    risk_reason: str | None
    hours_since_update: float

    @property
    def is_delay(self) -> bool:
        return self.risk_reason is not None and "delay" in self.risk_reason

    def to_dict(self) -> dict:
        return {
            "is_at_risk": self.is_at_risk,
            "risk_reason": self.risk_reason,
            "hours_since_update": self.hours_since_update,
        }


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so stored and computed times compare cleanly."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def hours_between(start: datetime, end: datetime) -> float:
    return (as_utc(end) - as_utc(start)).total_seconds() / 3600


def assess_risk(
    last_event_at: datetime,
    current_status: CanonicalStatus | str,
    now: datetime | None = None,
) -> RiskAssessment:
    """Classify a shipment by its latest canonical status and staleness."""
    settings = get_settings()
    status = CanonicalStatus(current_status)
    hours = hours_between(last_event_at, now or datetime.now(UTC))

    if status in TERMINAL_STATUSES:
        return RiskAssessment(False, None, hours)

    if status == CanonicalStatus.FAILED:
        return RiskAssessment(True, DELIVERY_FAILED, hours)

    if hours >= settings.delay_critical_hours:
        return RiskAssessment(True, CRITICAL_DELAY, hours)

    if hours >= settings.delay_warning_hours:
        return RiskAssessment(True, DELAY_WARNING, hours)

    return RiskAssessment(False, None, hours)
