"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags lifecycle    # Organizers create/edit/delete events
  locust -f locustfile.py --tags browse       # Public reads (cached listings)
  locust -f locustfile.py --tags edge         # Invalid event forms
  locust -f locustfile.py --tags concurrency  # Test overbooking
  locust -f locustfile.py                     # All tests
"""

import random
import string
from datetime import date, timedelta

from locust import HttpUser, between, events, tag, task

# Shared state
EVENT_IDS = []
CATEGORY_IDS = []
VENUE_IDS = []
CONCURRENCY_EVENT_ID = None

PASSWORD = "loadtest123"


def random_email():
    return f"load_{random.randint(10000, 99999)}@test.com"


def random_username():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


def event_form(**overrides):
    """Create-form fields as the web client sends them (all strings)."""
    start = date.today() + timedelta(days=random.randint(1, 90))
    form = {
        "title": f"Event {random.randint(1, 10000)}",
        "description": "Load test event",
        "category_id": str(random.choice(CATEGORY_IDS)),
        "venue_id": str(random.choice(VENUE_IDS)),
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=random.randint(0, 2))).isoformat(),
        "start_time": "18:00",
        "total_seats": str(random.randint(10, 500)),
        "price": str(random.choice([0, 500, 1500])),
        "tags": "load, test",
    }
    form.update(overrides)
    return form


def login(client):
    """Register a fresh account and return auth headers, or {} on failure."""
    email = random_email()
    client.post("/api/v1/auth/register", json={
        "email": email,
        "username": random_username(),
        "password": PASSWORD,
    })
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    if resp.status_code == 200:
        return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}
    return {}


def load_reference_data(client):
    if not CATEGORY_IDS:
        resp = client.get("/api/v1/events/categories")
        if resp.status_code == 200:
            CATEGORY_IDS.extend(c["id"] for c in resp.json()["data"])
    if not VENUE_IDS:
        resp = client.get("/api/v1/events/venues")
        if resp.status_code == 200:
            VENUE_IDS.extend(v["id"] for v in resp.json()["data"]["venues"])


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: categories and venues must be seeded (alembic upgrade head)")
    print("=" * 60)


class OrganizerUser(HttpUser):
    """
    TEST 1: Event lifecycle - create, edit, list own, delete

    Run: locust -f locustfile.py --tags lifecycle -u 50 -r 10 --run-time 60s

    Every created event is owned by this user, so edits and deletes
    should all succeed; any 403 means ownership is broken.
    """
    wait_time = between(0.5, 2)

    def on_start(self):
        self.headers = login(self.client)
        load_reference_data(self.client)
        self.my_event_ids = []

    @tag("lifecycle")
    @task(3)
    def create_event(self):
        if not self.headers or not CATEGORY_IDS or not VENUE_IDS:
            return
        resp = self.client.post("/api/v1/events/", data=event_form(), headers=self.headers)
        if resp.status_code == 201:
            event_id = resp.json()["data"]["id"]
            self.my_event_ids.append(event_id)
            EVENT_IDS.append(event_id)

    @tag("lifecycle")
    @task(3)
    def edit_event(self):
        if not self.my_event_ids:
            return
        event_id = random.choice(self.my_event_ids)
        with self.client.put(f"/api/v1/events/{event_id}",
            json={"title": f"Edited {random.randint(1, 10000)}", "price": random.randint(0, 3000)},
            headers=self.headers,
            name="/api/v1/events/{id} [edit]",
            catch_response=True
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            else:
                resp.failure(f"Edit failed: {resp.status_code}")

    @tag("lifecycle")
    @task(2)
    def my_events(self):
        if self.headers:
            self.client.get("/api/v1/events/my/events", headers=self.headers)

    @tag("lifecycle")
    @task(1)
    def delete_event(self):
        if not self.my_event_ids:
            return
        event_id = self.my_event_ids.pop(random.randrange(len(self.my_event_ids)))
        with self.client.delete(f"/api/v1/events/{event_id}",
            headers=self.headers,
            name="/api/v1/events/{id} [delete]",
            catch_response=True
        ) as resp:
            if resp.status_code == 200:
                if event_id in EVENT_IDS:
                    EVENT_IDS.remove(event_id)
                resp.success()
            else:
                resp.failure(f"Delete failed: {resp.status_code}")


class BrowsingUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags browse -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("browse")
    @task(10)
    def list_events(self):
        page = random.randint(1, 5)
        resp = self.client.get(f"/api/v1/events/?page={page}&page_size=20",
            name="/api/v1/events/ [list]")
        if resp.status_code == 200:
            for event in resp.json()["data"]["events"]:
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("browse")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}",
                name="/api/v1/events/{id}")

    @tag("browse")
    @task(2)
    def reference_data(self):
        self.client.get("/api/v1/events/categories")
        self.client.get("/api/v1/events/venues")

    @tag("browse")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Invalid event forms

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    Every request here must be rejected with the expected code and
    must never create or modify an event.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = login(self.client)
        load_reference_data(self.client)

    def _expect(self, resp, *codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_title(self):
        if not CATEGORY_IDS or not VENUE_IDS:
            return
        form = event_form()
        del form["title"]
        with self.client.post("/api/v1/events/", data=form, headers=self.headers,
            name="/api/v1/events/ [missing title]", catch_response=True) as resp:
            self._expect(resp, 422)

    @tag("edge")
    @task
    def end_before_start(self):
        if not CATEGORY_IDS or not VENUE_IDS:
            return
        form = event_form(start_date="2030-01-10", end_date="2030-01-01")
        with self.client.post("/api/v1/events/", data=form, headers=self.headers,
            name="/api/v1/events/ [bad dates]", catch_response=True) as resp:
            self._expect(resp, 422)

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/events/", data={"title": "x"},
            name="/api/v1/events/ [no auth]", catch_response=True) as resp:
            self._expect(resp, 401)

    @tag("edge")
    @task
    def edit_someone_elses_event(self):
        if not EVENT_IDS or not self.headers:
            return
        with self.client.put(f"/api/v1/events/{random.choice(EVENT_IDS)}",
            json={"title": "Hijacked"},
            headers=self.headers,
            name="/api/v1/events/{id} [not owner]",
            catch_response=True
        ) as resp:
            self._expect(resp, 403, 404)

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.put("/api/v1/events/1",
            data="not json at all",
            headers={**self.headers, "Content-Type": "application/json"},
            name="/api/v1/events/{id} [malformed]",
            catch_response=True
        ) as resp:
            self._expect(resp, 403, 404, 422)


class ConcurrencyUser(HttpUser):
    """
    TEST 4: Concurrency - 100 users → 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT SUM(seat_count) FROM bookings WHERE event_id = X AND status = 'confirmed';
    Should be ≤ 10
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = login(self.client)
        load_reference_data(self.client)

        if self.headers and not CONCURRENCY_EVENT_ID and CATEGORY_IDS and VENUE_IDS:
            resp = self.client.post("/api/v1/events/",
                data=event_form(title="Concurrency Test Event", total_seats="10"),
                headers=self.headers,
            )
            if resp.status_code == 201:
                globals()["CONCURRENCY_EVENT_ID"] = resp.json()["data"]["id"]
                print(f"\n✓ Created event {CONCURRENCY_EVENT_ID} with 10 seats\n")

    @tag("concurrency")
    @task
    def book_limited_seats(self):
        """All users fight for same 10 seats."""
        if not CONCURRENCY_EVENT_ID or not self.headers:
            return

        with self.client.post("/api/v1/bookings/",
            json={"event_id": CONCURRENCY_EVENT_ID, "seat_count": 1},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409 expected once sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")
