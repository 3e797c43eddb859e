"""Signed webhook verification.

Signatures are ``sha256=<hex>`` HMAC-SHA256 digests of the raw request body
keyed by the tenant's webhook secret. The timestamp header carries epoch
milliseconds and must lie within the tolerance window (inclusive) of the
server clock, which bounds signature replay.
"""

import hashlib
import hmac
from datetime import UTC, datetime

from tracking.config import get_settings

SIGNATURE_PREFIX = "sha256="


def compute_signature(body: bytes | str, secret: str) -> str:
    if isinstance(body, str):
        body = body.encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def timestamp_within_tolerance(timestamp: str | int, now: datetime | None = None) -> bool:
    try:
        request_ms = int(timestamp)
    except (TypeError, ValueError):
        return False

    now_ms = int((now or datetime.now(UTC)).timestamp() * 1000)
    tolerance_ms = get_settings().webhook_tolerance_seconds * 1000
    return abs(now_ms - request_ms) <= tolerance_ms


def verify_signature(
    body: bytes | str,
    signature: str,
    timestamp: str | int,
    secret: str,
    now: datetime | None = None,
) -> bool:
    """Return True when the timestamp is fresh and the signature matches the body."""
    if not signature or not secret:
        return False
    if not timestamp_within_tolerance(timestamp, now):
        return False

    expected = compute_signature(body, secret)
    return hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8"))
