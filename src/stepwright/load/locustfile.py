"""
Locust entry point for the reqres users API.

Run through ``stepwright load run PROFILE`` or directly:

    LOAD_PROFILE=spike locust -f src/stepwright/load/locustfile.py --headless \
        --host https://reqres.in/api

The profile named by LOAD_PROFILE (default ``load``) drives the user count.
When locust quits, the profile's thresholds are checked against the run's
statistics and a breach sets the exit code to 1.
"""
import logging
import os
import random
import threading

from locust import HttpUser, LoadTestShape, between, events, task

from stepwright.core.constants import DEFAULT_API_BASE_URL
from stepwright.load.profiles import evaluate_thresholds, get_profile

logger = logging.getLogger(__name__)

PROFILE = get_profile(os.environ.get("LOAD_PROFILE", "load"))


class CheckCounter:
    """Counts response checks so the ``errors`` rate can be evaluated"""

    def __init__(self):
        self.lock = threading.Lock()
        self.total = 0
        self.failed = 0

    def record(self, passed: bool):
        with self.lock:
            self.total += 1
            if not passed:
                self.failed += 1

    @property
    def failure_rate(self) -> float:
        return self.failed / self.total if self.total else 0.0


CHECKS = CheckCounter()


class ReqresUser(HttpUser):
    host = os.environ.get("API_BASE_URL", DEFAULT_API_BASE_URL)
    wait_time = between(1, 2)

    def _check(self, response, passed: bool, message: str):
        CHECKS.record(passed)
        if passed:
            response.success()
        else:
            response.failure(message)

    @task(3)
    def list_users(self):
        with self.client.get("/users?page=1", name="GET /users", catch_response=True) as response:
            data = response.json().get("data") if response.status_code == 200 else None
            self._check(response, bool(data), f"list users failed with status {response.status_code}")

    @task(2)
    def get_user(self):
        user_id = random.randint(1, 10)
        with self.client.get(f"/users/{user_id}", name="GET /users/{id}", catch_response=True) as response:
            data = response.json().get("data", {}) if response.status_code == 200 else {}
            self._check(response, data.get("id") == user_id, f"user {user_id} not returned")

    @task(1)
    def create_user(self):
        payload = {"name": f"LoadTest_User_{random.randint(1, 10_000)}", "job": "QA Engineer"}
        with self.client.post("/users", json=payload, name="POST /users", catch_response=True) as response:
            created = response.status_code == 201 and "id" in response.json()
            self._check(response, created, f"create user failed with status {response.status_code}")


class ProfileShape(LoadTestShape):
    """Follows the stages of PROFILE, then stops the test"""

    def tick(self):
        target = PROFILE.target_at(self.get_run_time())
        if target is None:
            return None
        return target, max(1, PROFILE.peak_users // 10)


def collect_metrics(stats) -> dict:
    """Locust totals in the metric names used by profile thresholds"""
    return {
        "http_req_duration": {
            "avg": stats.avg_response_time,
            "max": stats.max_response_time,
            "p(90)": stats.get_response_time_percentile(0.90),
            "p(95)": stats.get_response_time_percentile(0.95),
            "p(99)": stats.get_response_time_percentile(0.99),
        },
        "http_req_failed": {"rate": stats.fail_ratio},
        "errors": {"rate": CHECKS.failure_rate},
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    logger.info(f"Load profile '{PROFILE.name}' started: {PROFILE.description}")


@events.quitting.add_listener
def on_quitting(environment, **kwargs):
    metrics = collect_metrics(environment.stats.total)
    breached = evaluate_thresholds(PROFILE, metrics)
    if breached:
        logger.error(f"Thresholds breached: {', '.join(breached)}")
        environment.process_exit_code = 1
    else:
        logger.info("All thresholds passed")
