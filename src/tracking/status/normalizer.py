"""Carrier status normalization.

Maps a carrier-specific raw status string onto one of seven canonical
delivery states. Resolution runs in four stages and stops at the first hit:

1. exact match in the carrier's lookup table
2. case-insensitive match in the same table
3. ordered substring rules (first matching rule wins)
4. the named fallback rule

Unknown carriers use the generic table. Normalization never raises; the
stage that decided is reported by ``classify`` so fallback-mapped events
can be found later.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable


class CanonicalStatus(Enum):
    CREATED = "CREATED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    RETURNED = "RETURNED"


class MatchStage(Enum):
    EXACT = "exact"
    CASE_INSENSITIVE = "case_insensitive"
    FUZZY = "fuzzy"
    FALLBACK = "fallback"


TERMINAL_STATUSES = frozenset({CanonicalStatus.DELIVERED, CanonicalStatus.RETURNED})

# ---------------------------------------------------------------------------
# Carrier lookup tables
# ---------------------------------------------------------------------------
GENERIC_CARRIER = "generic"

CARRIER_STATUS_TABLES: dict[str, dict[str, CanonicalStatus]] = {
    "aramex": {
        "Shipment Created": CanonicalStatus.CREATED,
        "Picked Up": CanonicalStatus.PICKED_UP,
        "In Transit": CanonicalStatus.IN_TRANSIT,
        "Out for Delivery": CanonicalStatus.OUT_FOR_DELIVERY,
        "Delivered": CanonicalStatus.DELIVERED,
        "Delivery Failed": CanonicalStatus.FAILED,
        "Returned to Shipper": CanonicalStatus.RETURNED,
    },
    "smsa": {
        "Created": CanonicalStatus.CREATED,
        "Picked": CanonicalStatus.PICKED_UP,
        "In Transit": CanonicalStatus.IN_TRANSIT,
        "Out For Delivery": CanonicalStatus.OUT_FOR_DELIVERY,
        "Delivered": CanonicalStatus.DELIVERED,
        "Not Delivered": CanonicalStatus.FAILED,
        "Returned": CanonicalStatus.RETURNED,
    },
    "dhl": {
        "Shipment information received": CanonicalStatus.CREATED,
        "Picked up": CanonicalStatus.PICKED_UP,
        "In transit": CanonicalStatus.IN_TRANSIT,
        "With delivery courier": CanonicalStatus.OUT_FOR_DELIVERY,
        "Delivered": CanonicalStatus.DELIVERED,
        "Delivery attempt unsuccessful": CanonicalStatus.FAILED,
        "Returned to shipper": CanonicalStatus.RETURNED,
    },
    GENERIC_CARRIER: {
        "created": CanonicalStatus.CREATED,
        "picked_up": CanonicalStatus.PICKED_UP,
        "in_transit": CanonicalStatus.IN_TRANSIT,
        "out_for_delivery": CanonicalStatus.OUT_FOR_DELIVERY,
        "delivered": CanonicalStatus.DELIVERED,
        "failed": CanonicalStatus.FAILED,
        "returned": CanonicalStatus.RETURNED,
    },
}


def _casefolded(table: dict[str, CanonicalStatus]) -> dict[str, CanonicalStatus]:
    folded = {}
    for key, status in table.items():
        # First key wins when two differ only by case
        folded.setdefault(key.lower(), status)
    return folded


_CASEFOLDED_TABLES = {carrier: _casefolded(table) for carrier, table in CARRIER_STATUS_TABLES.items()}


# ---------------------------------------------------------------------------
# Substring rules
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class StatusRule:
    name: str
    matches: Callable[[str], bool]
    status: CanonicalStatus


def _contains_all(*needles: str) -> Callable[[str], bool]:
    return lambda text: all(needle in text for needle in needles)


def _contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda text: any(needle in text for needle in needles)


# Evaluated top to bottom against the lower-cased raw status.
FUZZY_RULES: tuple[StatusRule, ...] = (
    StatusRule("delivery_failure", _contains_all("deliver", "fail"), CanonicalStatus.FAILED),
    StatusRule("delivered", _contains_any("delivered"), CanonicalStatus.DELIVERED),
    StatusRule("returned", _contains_any("return"), CanonicalStatus.RETURNED),
    StatusRule("out_for_delivery", _contains_any("out for delivery"), CanonicalStatus.OUT_FOR_DELIVERY),
    StatusRule("in_transit", _contains_any("transit"), CanonicalStatus.IN_TRANSIT),
    StatusRule("picked_up", _contains_any("picked", "pickup"), CanonicalStatus.PICKED_UP),
    StatusRule("created", _contains_any("created", "received"), CanonicalStatus.CREATED),
)

# Unrecognized vocabulary is treated as movement. Events mapped this way are
# tagged with MatchStage.FALLBACK so they can be surfaced to operators.
FALLBACK_RULE = StatusRule("unrecognized_status", lambda _text: True, CanonicalStatus.IN_TRANSIT)


@dataclass(frozen=True)
class StatusMatch:
    status: CanonicalStatus
    stage: MatchStage
    rule: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.stage == MatchStage.FALLBACK


def carrier_table_key(carrier: str | None) -> str:
    """Return the lookup-table key used for ``carrier`` (generic when unknown)."""
    key = (carrier or "").strip().lower()
    return key if key in CARRIER_STATUS_TABLES else GENERIC_CARRIER


def classify(carrier: str | None, raw_status: str | None) -> StatusMatch:
    """Resolve a raw carrier status and report which stage decided it."""
    table_key = carrier_table_key(carrier)
    raw = raw_status or ""

    exact = CARRIER_STATUS_TABLES[table_key].get(raw)
    if exact is not None:
        return StatusMatch(exact, MatchStage.EXACT)

    lowered = raw.lower()
    folded = _CASEFOLDED_TABLES[table_key].get(lowered)
    if folded is not None:
        return StatusMatch(folded, MatchStage.CASE_INSENSITIVE)

    for rule in FUZZY_RULES:
        if rule.matches(lowered):
            return StatusMatch(rule.status, MatchStage.FUZZY, rule.name)

    return StatusMatch(FALLBACK_RULE.status, MatchStage.FALLBACK, FALLBACK_RULE.name)


def normalize(carrier: str | None, raw_status: str | None) -> CanonicalStatus:
    """Map a carrier's raw status string to a canonical status. Never raises."""
    return classify(carrier, raw_status).status


# ---------------------------------------------------------------------------
# Order status projection
# ---------------------------------------------------------------------------
ORDER_STATUS_BY_CANONICAL = {
    CanonicalStatus.CREATED: "processing",
    CanonicalStatus.PICKED_UP: "processing",
    CanonicalStatus.IN_TRANSIT: "shipped",
    CanonicalStatus.OUT_FOR_DELIVERY: "shipped",
    CanonicalStatus.DELIVERED: "delivered",
    # A failed attempt is still retryable by the carrier
    CanonicalStatus.FAILED: "shipped",
    CanonicalStatus.RETURNED: "returned",
}


def order_status_for(status: CanonicalStatus | str) -> str:
    """Order status an order should carry while its shipment is in ``status``."""
    return ORDER_STATUS_BY_CANONICAL[CanonicalStatus(status)]
