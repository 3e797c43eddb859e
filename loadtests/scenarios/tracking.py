"""Tracking domain load test scenarios.

ShipmentTrackingUser walks shipments through a carrier lifecycle via manual
event entry. CarrierWebhookUser does the same through the public webhook,
using the tenant/secret pair the server was seeded with
(``TRACKING_WEBHOOK_SECRETS``). PollingIntegrationUser plays the external
workflow consumer: bulk polling imports, delay scans and automation polls.
CarrierAnalyticsUser reads the analytics endpoints, which recompute from
every ledger on each call and dominate latency as the data set grows.
"""

import os
import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    CARRIER_LIFECYCLES,
    CARRIERS,
    FAILURE_STATUSES,
    aramex_webhook,
    bulk_events_data,
    event_data,
    load_test_tenant,
    order_reference,
    smsa_webhook,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ShipmentState

WEBHOOK_TENANT = os.environ.get("LOADTEST_WEBHOOK_TENANT", "lt-webhook-tenant")
WEBHOOK_SECRET = os.environ.get("LOADTEST_WEBHOOK_SECRET", "lt-webhook-secret")


class ShipmentLifecycleJourney(SequentialTaskSet):
    """Open -> carrier events (created .. delivered, sometimes failed) -> read back."""

    def on_start(self):
        self.state = ShipmentState(order_id=order_reference(), carrier=random.choice(CARRIERS))

    @task
    def open_shipment(self):
        with self.client.post(
            "/shipments",
            json={"order_id": self.state.order_id, "carrier": self.state.carrier},
            headers=self.user.tenant_headers,
            catch_response=True,
            name="POST /shipments",
        ) as resp:
            if resp.status_code == 201:
                self.state.shipment_id = resp.json()["shipment_id"]
            else:
                resp.failure(f"Open shipment failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def record_lifecycle(self):
        statuses = list(CARRIER_LIFECYCLES[self.state.carrier])
        if random.random() < 0.2:
            statuses = statuses[:3] + [random.choice(FAILURE_STATUSES)]

        hours_ago = len(statuses) * 12
        for raw_status in statuses:
            with self.client.post(
                "/shipments/events",
                json=event_data(self.state.order_id, self.state.carrier, raw_status, hours_ago=hours_ago),
                headers=self.user.tenant_headers,
                catch_response=True,
                name="POST /shipments/events",
            ) as resp:
                if resp.status_code == 201:
                    self.state.statuses_sent.append(raw_status)
                    self.state.last_normalized_status = resp.json()["normalized_status"]
                else:
                    resp.failure(f"Record event failed: {resp.status_code}: {extract_error_detail(resp)}")
                    self.interrupt()
            hours_ago -= 12

    @task
    def read_shipment(self):
        with self.client.get(
            f"/shipments/{self.state.order_id}",
            headers=self.user.tenant_headers,
            catch_response=True,
            name="GET /shipments/{order_id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Get shipment failed: {resp.status_code}: {extract_error_detail(resp)}")
            elif resp.json()["latest_status"] != self.state.last_normalized_status:
                resp.failure("Latest status does not match the last recorded event")

    @task
    def read_timeline(self):
        self.client.get(
            f"/shipments/{self.state.order_id}/timeline",
            headers=self.user.tenant_headers,
            name="GET /shipments/{order_id}/timeline",
        )
        self.interrupt()


class ShipmentTrackingUser(HttpUser):
    wait_time = between(0.5, 2)
    tasks = [ShipmentLifecycleJourney]

    def on_start(self):
        self.tenant_headers = {"X-Tenant-ID": load_test_tenant()}


class CarrierWebhookJourney(SequentialTaskSet):
    """Open a shipment for the webhook tenant, then let the carrier report on it."""

    def on_start(self):
        self.state = ShipmentState(order_id=order_reference(), carrier=random.choice(["aramex", "smsa"]))

    @task
    def open_shipment(self):
        with self.client.post(
            "/shipments",
            json={"order_id": self.state.order_id, "carrier": self.state.carrier},
            headers={"X-Tenant-ID": WEBHOOK_TENANT},
            catch_response=True,
            name="POST /shipments (webhook tenant)",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Open shipment failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def send_webhooks(self):
        build = aramex_webhook if self.state.carrier == "aramex" else smsa_webhook
        for raw_status in CARRIER_LIFECYCLES[self.state.carrier]:
            with self.client.post(
                f"/shipments/webhook/{self.state.carrier}",
                json=build(self.state.order_id, raw_status),
                headers={"X-Webhook-Secret": WEBHOOK_SECRET},
                catch_response=True,
                name="POST /shipments/webhook/{carrier}",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Webhook failed: {resp.status_code}: {extract_error_detail(resp)}")
                    self.interrupt()
        self.interrupt()


class CarrierWebhookUser(HttpUser):
    wait_time = between(0.2, 1)
    tasks = [CarrierWebhookJourney]


class PollingIntegrationUser(HttpUser):
    """External workflow consumer: bulk imports, delay scans, automation polls."""

    wait_time = between(1, 3)

    def on_start(self):
        self.tenant_headers = {"X-Tenant-ID": load_test_tenant()}

    @task(5)
    def bulk_import(self):
        with self.client.post(
            "/shipments/events/bulk",
            json=bulk_events_data(size=random.randint(5, 25)),
            headers=self.tenant_headers,
            catch_response=True,
            name="POST /shipments/events/bulk",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Bulk import failed: {resp.status_code}: {extract_error_detail(resp)}")
            elif any(not r["success"] for r in resp.json()["results"]):
                resp.failure("Bulk import reported failed items")

    @task(2)
    def check_delays(self):
        self.client.post(
            "/automation/check-delays",
            json={},
            headers=self.tenant_headers,
            name="POST /automation/check-delays",
        )

    @task(2)
    def poll_automation(self):
        self.client.get(
            "/automation/events",
            params={"clear_after_read": "true"},
            headers=self.tenant_headers,
            name="GET /automation/events",
        )


class CarrierAnalyticsUser(HttpUser):
    """Dashboard reader hitting the recompute-on-read analytics."""

    wait_time = between(2, 5)

    def on_start(self):
        self.tenant_headers = {"X-Tenant-ID": load_test_tenant()}
        # Seed a little data so analytics have something to chew on
        self.client.post(
            "/shipments/events/bulk",
            json=bulk_events_data(size=30),
            headers=self.tenant_headers,
            name="[SEED] POST /shipments/events/bulk",
        )

    @task(3)
    def dashboard(self):
        self.client.get("/carriers/dashboard", headers=self.tenant_headers, name="GET /carriers/dashboard")

    @task(2)
    def scores(self):
        self.client.get("/carriers/scores", headers=self.tenant_headers, name="GET /carriers/scores")

    @task(2)
    def insights(self):
        self.client.get("/carriers/insights", headers=self.tenant_headers, name="GET /carriers/insights")

    @task(1)
    def routing(self):
        self.client.get(
            "/carriers/routing",
            params={"payment_method": random.choice(["cod", "prepaid"])},
            headers=self.tenant_headers,
            name="GET /carriers/routing",
        )

    @task(2)
    def stats(self):
        self.client.get("/shipments/stats", headers=self.tenant_headers, name="GET /shipments/stats")

    @task(1)
    def at_risk(self):
        self.client.get("/shipments/at-risk", headers=self.tenant_headers, name="GET /shipments/at-risk")
