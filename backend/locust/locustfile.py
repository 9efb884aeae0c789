"""
Locust Load Test Suite

Needs a seeded catalog (python -m gamerent.db.seed).

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking of the last copy
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

Environment:
  GAME_ID        game every concurrency user fights over (default 6, stock 1 when seeded)
  TARGET_DATE    ISO date they all want (default 30 days from now)
"""

import os
import random
import string
from datetime import date, timedelta

from locust import HttpUser, between, events, tag, task

CONCURRENCY_GAME_ID = int(os.environ.get("GAME_ID", "6"))
TARGET_DATE = os.environ.get("TARGET_DATE") or (date.today() + timedelta(days=30)).isoformat()

# Shared state
GAME_IDS = []


def random_email():
    return f"load_{random.randint(10000, 99999)}_{random.randint(0, 999)}@test.com"


def random_username():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


def future_date(max_days: int = 90) -> str:
    return (date.today() + timedelta(days=random.randint(1, max_days))).isoformat()


def register(client) -> dict:
    """Register a throwaway account. Registration already returns a token."""
    resp = client.post("/api/v1/auth/register", json={
        "email": random_email(),
        "username": random_username(),
        "password": "test123",
    })
    if resp.status_code == 201:
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return {}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Concurrency target: game {CONCURRENCY_GAME_ID} on {TARGET_DATE}")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many users -> stock copies of one game on one date

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM reservations
      WHERE game_id = X AND reservation_date = 'D' AND status = 'active';
    Should be <= the game's stock
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = register(self.client)

    @tag("concurrency")
    @task
    def reserve_last_copy(self):
        """All users fight for the same date."""
        if not self.headers:
            return

        with self.client.post("/api/v1/reservations/",
            json={"game_id": CONCURRENCY_GAME_ID, "reservation_date": TARGET_DATE},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: date fully booked
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_games_cached(self):
        """Hammer the cached endpoint."""
        resp = self.client.get("/api/v1/games/", name="/api/v1/games/ [cached]")
        if resp.status_code == 200:
            for game in resp.json().get("games", []):
                if game["id"] not in GAME_IDS:
                    GAME_IDS.append(game["id"])

    @tag("throughput", "read")
    @task(5)
    def check_availability(self):
        if GAME_IDS:
            self.client.get(
                f"/api/v1/games/{random.choice(GAME_IDS)}/availability?date={future_date()}",
                name="/api/v1/games/{id}/availability",
            )

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = register(self.client)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_game(self):
        with self.client.post("/api/v1/reservations/",
            json={"game_id": 999999, "reservation_date": future_date()},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def past_date(self):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        with self.client.post("/api/v1/reservations/",
            json={"game_id": CONCURRENCY_GAME_ID, "reservation_date": yesterday},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def return_before_start(self):
        with self.client.post("/api/v1/reservations/",
            json={
                "game_id": CONCURRENCY_GAME_ID,
                "reservation_date": future_date(),
                "return_date": date.today().isoformat(),
            },
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def garbage_date(self):
        with self.client.get(
            f"/api/v1/games/{CONCURRENCY_GAME_ID}/availability?date=someday",
            name="/api/v1/games/{id}/availability [bad date]",
            catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/reservations/",
            data="not json at all",
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/reservations/",
            json={"game_id": CONCURRENCY_GAME_ID, "reservation_date": future_date()},
            catch_response=True
        ) as resp:
            self._expect(resp, [401])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Mostly browsing, some reservations, occasional changes of plan.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = register(self.client)
        self.reservation_ids = []

    @task(40)
    def browse_games(self):
        resp = self.client.get("/api/v1/games/")
        if resp.status_code == 200:
            for game in resp.json().get("games", []):
                if game["id"] not in GAME_IDS:
                    GAME_IDS.append(game["id"])

    @task(20)
    def view_game(self):
        if GAME_IDS:
            self.client.get(f"/api/v1/games/{random.choice(GAME_IDS)}", name="/api/v1/games/{id}")

    @task(10)
    def reserve(self):
        if GAME_IDS and self.headers:
            resp = self.client.post("/api/v1/reservations/",
                json={"game_id": random.choice(GAME_IDS), "reservation_date": future_date()},
                headers=self.headers)
            if resp.status_code == 201:
                self.reservation_ids.append(resp.json()["id"])

    @task(5)
    def my_reservations(self):
        if self.headers:
            self.client.get("/api/v1/reservations/", headers=self.headers)

    @task(3)
    def move_reservation(self):
        if self.reservation_ids:
            self.client.patch(f"/api/v1/reservations/{random.choice(self.reservation_ids)}",
                json={"reservation_date": future_date()},
                headers=self.headers,
                name="/api/v1/reservations/{id} [move]")

    @task(2)
    def cancel_reservation(self):
        if self.reservation_ids:
            reservation_id = self.reservation_ids.pop(random.randrange(len(self.reservation_ids)))
            self.client.delete(f"/api/v1/reservations/{reservation_id}",
                headers=self.headers,
                name="/api/v1/reservations/{id} [cancel]")
