"""Tests for signed webhook verification."""

import hashlib
import hmac
from datetime import UTC, datetime, timedelta

from tracking.carrier.signature import compute_signature, timestamp_within_tolerance, verify_signature

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
SECRET = "whsec-test"
BODY = b'{"reference": "abc", "status": "Delivered"}'


def _ms(dt):
    return str(int(dt.timestamp() * 1000))


class TestComputeSignature:
    def test_hmac_sha256_over_body(self):
        expected = hmac.new(SECRET.encode(), BODY, hashlib.sha256).hexdigest()
        assert compute_signature(BODY, SECRET) == f"sha256={expected}"

    def test_str_body_is_utf8_encoded(self):
        assert compute_signature(BODY.decode(), SECRET) == compute_signature(BODY, SECRET)


class TestTimestampTolerance:
    def test_exactly_300_seconds_accepted(self):
        assert timestamp_within_tolerance(_ms(NOW - timedelta(seconds=300)), now=NOW)
        assert timestamp_within_tolerance(_ms(NOW + timedelta(seconds=300)), now=NOW)

    def test_301_seconds_rejected(self):
        assert not timestamp_within_tolerance(_ms(NOW - timedelta(seconds=301)), now=NOW)
        assert not timestamp_within_tolerance(_ms(NOW + timedelta(seconds=301)), now=NOW)

    def test_non_numeric_rejected(self):
        assert not timestamp_within_tolerance("yesterday", now=NOW)
        assert not timestamp_within_tolerance(None, now=NOW)


class TestVerifySignature:
    def test_valid(self):
        signature = compute_signature(BODY, SECRET)
        assert verify_signature(BODY, signature, _ms(NOW), SECRET, now=NOW)

    def test_wrong_secret(self):
        signature = compute_signature(BODY, "other-secret")
        assert not verify_signature(BODY, signature, _ms(NOW), SECRET, now=NOW)

    def test_tampered_body(self):
        signature = compute_signature(BODY, SECRET)
        assert not verify_signature(BODY + b" ", signature, _ms(NOW), SECRET, now=NOW)

    def test_stale_timestamp(self):
        signature = compute_signature(BODY, SECRET)
        assert not verify_signature(BODY, signature, _ms(NOW - timedelta(minutes=10)), SECRET, now=NOW)

    def test_missing_signature(self):
        assert not verify_signature(BODY, "", _ms(NOW), SECRET, now=NOW)

    def test_signature_without_prefix_rejected(self):
        bare = compute_signature(BODY, SECRET).removeprefix("sha256=")
        assert not verify_signature(BODY, bare, _ms(NOW), SECRET, now=NOW)
