"""ShipTrack load tests.

Locust picks up every user class imported below; name one or more classes
on the command line to run a subset.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Webhook intake only (server seeded with the webhook tenant):
    TRACKING_WEBHOOK_SECRETS=lt-webhook-tenant:lt-webhook-secret uvicorn src.app:app
    locust -f loadtests/locustfile.py CarrierWebhookUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py --headless -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
from collections import Counter

import requests
from locust import events

from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.tracking import (  # noqa: F401
    CarrierAnalyticsUser,
    CarrierWebhookUser,
    PollingIntegrationUser,
    ShipmentTrackingUser,
)

logger = logging.getLogger("loadtest")

# (request name, status code) -> count; 0 stands for a transport exception
_failures: Counter = Counter()


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    if exception:
        _failures[(name, 0)] += 1
        logger.error("%s %s raised %s", request_type, name, exception)
        return
    if response is not None and response.status_code >= 400:
        _failures[(name, response.status_code)] += 1
        logger.error("%s %s -> %s: %s", request_type, name, response.status_code, extract_error_detail(response))


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    _failures.clear()
    if not environment.host:
        return
    try:
        resp = requests.get(f"{environment.host}/health", timeout=5)
        logger.info("ShipTrack at %s answered /health with %s", environment.host, resp.status_code)
    except requests.RequestException as e:
        logger.warning("ShipTrack at %s is unreachable: %s", environment.host, e)


@events.test_stop.add_listener
def on_test_stop(**_kwargs):
    if not _failures:
        logger.info("No failed tracking requests")
        return
    for (name, status), count in _failures.most_common():
        logger.info("%6d x %s %s", count, status or "EXC", name)
