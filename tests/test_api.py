"""End-to-end API tests for the request / submit / overlap / book flow."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from slotmatch.domain.models import AvailabilityRequest, Owner, RequestStatus, Team
from slotmatch.main import app, store

OWNER = {"X-Owner-Id": "owner-1"}


@pytest.fixture(autouse=True)
def _reset_store():
    """Reset in-memory repos before each test."""
    store.clear()
    store.owners.add(Owner(id="owner-1", name="Olive Owner", email="olive@example.com"))
    store.owners.add(Owner(id="owner-2", name="Other Owner", email="other@example.com"))
    store.teams.add(Team(id="team-1", owner_id="owner-1", name="Design Crew"))
    store.teams.add(Team(id="team-2", owner_id="owner-2", name="Elsewhere"))
    yield
    store.clear()


@pytest.fixture()
def client():
    return TestClient(app)


def _set_owner_windows(client: TestClient, windows: list[dict]) -> None:
    resp = client.put("/owner/availability", json={"windows": windows}, headers=OWNER)
    assert resp.status_code == 200


def _create(client: TestClient) -> dict:
    resp = client.post(
        "/availability-requests",
        json={
            "team_id": "team-1",
            "guest": {"name": "Gabe Guest", "email": "gabe@example.com"},
        },
        headers=OWNER,
    )
    assert resp.status_code == 201
    return resp.json()


def _submitted_token(client: TestClient) -> str:
    _set_owner_windows(
        client, [{"day_of_week": 1, "start_time": "09:00", "end_time": "11:00"}]
    )
    token = _create(client)["request"]["token"]
    resp = client.post(
        f"/availability-requests/{token}/submit",
        json={"windows": [{"day_of_week": 1, "start_time": "10:00", "end_time": "12:00"}]},
    )
    assert resp.status_code == 200
    return token


# ---------------------------------------------------------------------------
# Owner routes
# ---------------------------------------------------------------------------


def test_create_request_returns_capability_url(client: TestClient):
    body = _create(client)

    token = body["request"]["token"]
    assert body["request"]["status"] == "pending"
    assert body["capability_url"].endswith(f"/availability-request/{token}")
    assert len(token) >= 43


def test_create_request_denial_does_not_leak_team_existence(client: TestClient):
    guest = {"name": "Gabe", "email": "gabe@example.com"}
    foreign = client.post(
        "/availability-requests", json={"team_id": "team-2", "guest": guest}, headers=OWNER
    )
    missing = client.post(
        "/availability-requests", json={"team_id": "nope", "guest": guest}, headers=OWNER
    )

    assert foreign.status_code == missing.status_code == 403
    assert foreign.json() == missing.json() == {"detail": "Team not found or access denied"}


def test_create_request_requires_owner_header(client: TestClient):
    resp = client.post(
        "/availability-requests",
        json={"team_id": "team-1", "guest": {"name": "G", "email": "g@example.com"}},
    )
    assert resp.status_code == 422


def test_create_request_validates_guest_email(client: TestClient):
    resp = client.post(
        "/availability-requests",
        json={"team_id": "team-1", "guest": {"name": "G", "email": "not-an-email"}},
        headers=OWNER,
    )
    assert resp.status_code == 422


def test_list_requests_only_shows_own_teams(client: TestClient):
    _create(client)
    client.post(
        "/availability-requests",
        json={"team_id": "team-2", "guest": {"name": "X", "email": "x@example.com"}},
        headers={"X-Owner-Id": "owner-2"},
    )

    resp = client.get("/availability-requests", headers=OWNER)

    assert resp.status_code == 200
    entries = resp.json()
    assert len(entries) == 1
    assert entries[0]["team_name"] == "Design Crew"


def test_owner_availability_round_trip_is_sorted(client: TestClient):
    _set_owner_windows(
        client,
        [
            {"day_of_week": 5, "start_time": "13:00", "end_time": "17:00"},
            {"day_of_week": 2, "start_time": "09:00", "end_time": "12:00"},
        ],
    )

    resp = client.get("/owner/availability", headers=OWNER)

    assert resp.json() == [
        {"day_of_week": 2, "start_time": "09:00", "end_time": "12:00"},
        {"day_of_week": 5, "start_time": "13:00", "end_time": "17:00"},
    ]


@pytest.mark.parametrize(
    "window",
    [
        {"day_of_week": 0, "start_time": "09:00", "end_time": "10:00"},
        {"day_of_week": 8, "start_time": "09:00", "end_time": "10:00"},
        {"day_of_week": 1, "start_time": "11:00", "end_time": "10:00"},
    ],
)
def test_invalid_windows_are_rejected(client: TestClient, window):
    resp = client.put("/owner/availability", json={"windows": [window]}, headers=OWNER)
    assert resp.status_code == 422


def test_unknown_owner_cannot_set_availability(client: TestClient):
    resp = client.put(
        "/owner/availability", json={"windows": []}, headers={"X-Owner-Id": "ghost"}
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Guest routes
# ---------------------------------------------------------------------------


def test_get_request_shows_summary_and_owner_windows(client: TestClient):
    _set_owner_windows(
        client, [{"day_of_week": 3, "start_time": "09:00", "end_time": "11:00"}]
    )
    token = _create(client)["request"]["token"]

    resp = client.get(f"/availability-requests/{token}")

    assert resp.status_code == 200
    body = resp.json()
    assert body["request"]["team_name"] == "Design Crew"
    assert body["request"]["owner_name"] == "Olive Owner"
    assert "token" not in body["request"]
    assert body["owner_availability"] == [
        {"day_of_week": 3, "start_time": "09:00", "end_time": "11:00"}
    ]


def test_unknown_token_is_404(client: TestClient):
    resp = client.get("/availability-requests/does-not-exist")
    assert resp.status_code == 404


def test_expired_request_is_410_and_persisted(client: TestClient):
    request = AvailabilityRequest(
        team_id="team-1",
        guest_name="Late Guest",
        guest_email="late@example.com",
        token="expired-token",
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )
    store.requests.add(request)

    resp = client.get("/availability-requests/expired-token")

    assert resp.status_code == 410
    assert resp.json()["detail"] == "This availability request has expired"
    assert store.requests.get(request.id).status == RequestStatus.EXPIRED


def test_submit_returns_overlap_slots(client: TestClient):
    _set_owner_windows(
        client, [{"day_of_week": 1, "start_time": "09:00", "end_time": "11:00"}]
    )
    token = _create(client)["request"]["token"]

    resp = client.post(
        f"/availability-requests/{token}/submit",
        json={"windows": [{"day_of_week": 1, "start_time": "10:00", "end_time": "12:00"}]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    slot = body["overlap"][0]
    assert slot["day_name"] == "Monday"
    assert slot["time"] == "10:00"
    assert slot["time_display"] == "10:00 AM"
    assert slot["duration_minutes"] == 60
    assert datetime.strptime(slot["date"], "%Y-%m-%d").isoweekday() == 1


def test_resubmit_is_409(client: TestClient):
    token = _submitted_token(client)

    resp = client.post(f"/availability-requests/{token}/submit", json={"windows": []})

    assert resp.status_code == 409


def test_overlap_before_submit_is_409(client: TestClient):
    token = _create(client)["request"]["token"]

    resp = client.get(f"/availability-requests/{token}/overlap")

    assert resp.status_code == 409
    assert resp.json()["detail"] == "Guest has not submitted availability yet"


def test_book_slot_from_overlap(client: TestClient):
    token = _submitted_token(client)
    slot = client.get(f"/availability-requests/{token}/overlap").json()["overlap"][0]

    resp = client.post(
        f"/availability-requests/{token}/book",
        json={"date": slot["date"], "time": slot["time"]},
    )

    assert resp.status_code == 201
    reservation = resp.json()
    assert reservation["status"] == "confirmed"
    assert reservation["guest_email"] == "gabe@example.com"
    assert reservation["booking_date"] == slot["date"]
    assert reservation["booking_time"] == "10:00"

    detail = client.get(f"/availability-requests/{token}").json()
    assert detail["request"]["status"] == "booked"


def test_book_twice_is_409(client: TestClient):
    token = _submitted_token(client)
    slot = client.get(f"/availability-requests/{token}/overlap").json()["overlap"][0]
    payload = {"date": slot["date"], "time": slot["time"]}

    assert client.post(f"/availability-requests/{token}/book", json=payload).status_code == 201
    second = client.post(f"/availability-requests/{token}/book", json=payload)

    assert second.status_code == 409
    assert len(store.reservations.list_all()) == 1


def test_book_stale_selection_is_409(client: TestClient):
    token = _submitted_token(client)
    slot = client.get(f"/availability-requests/{token}/overlap").json()["overlap"][0]
    _set_owner_windows(
        client, [{"day_of_week": 2, "start_time": "09:00", "end_time": "11:00"}]
    )

    resp = client.post(
        f"/availability-requests/{token}/book",
        json={"date": slot["date"], "time": slot["time"]},
    )

    assert resp.status_code == 409
    assert resp.json()["detail"] == "Selected time is not in the available overlap"


def test_request_id_header_is_echoed(client: TestClient):
    resp = client.get("/availability-requests/missing", headers={"X-Request-ID": "trace-1"})
    assert resp.headers["X-Request-ID"] == "trace-1"
