from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from sessionbook.database import get_db
from sessionbook.main import app


@pytest.fixture
def api(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _client(api, name="Anna"):
    response = api.post("/clients", json={"full_name": name})
    assert response.status_code == 201
    return response.json()


def _session(api, client_id, day, price=20):
    response = api.post(
        "/sessions",
        json={"client_id": client_id, "date": day, "start_time": "10:00", "price_override": price},
    )
    assert response.status_code == 201
    return response.json()


def test_health(api):
    assert api.get("/health").json() == {"status": "healthy"}


def test_client_crud_and_lifecycle(api):
    client = _client(api)
    assert client["status"] == "active"

    response = api.patch(f"/clients/{client['id']}", json={"phone": "+123"})
    assert response.json()["phone"] == "+123"

    paused = api.post(
        f"/clients/{client['id']}/pause", json={"pause_from": "2024-05-10", "pause_to": "2024-05-20"}
    )
    assert paused.json()["status"] == "paused"

    resumed = api.post(f"/clients/{client['id']}/resume")
    assert resumed.json()["pause_from"] is None

    archived = api.delete(f"/clients/{client['id']}")
    assert archived.json()["status"] == "archived"

    assert [c["id"] for c in api.get("/clients", params={"status": "archived"}).json()] == [client["id"]]


def test_unknown_client_is_404(api):
    response = api.get("/clients/999")

    assert response.status_code == 404
    assert response.json()["detail"] == "Client with id 999 not found"


def test_invalid_pause_window_is_422(api):
    client = _client(api)

    response = api.post(
        f"/clients/{client['id']}/pause", json={"pause_from": "2024-05-20", "pause_to": "2024-05-10"}
    )

    assert response.status_code == 422


def test_template_generates_sessions(api):
    client = _client(api)
    next_week = (date.today() + timedelta(days=7)).isoformat()

    response = api.post(
        f"/clients/{client['id']}/template",
        json={"rules": [{"weekday": 1, "start_time": "09:00", "base_price": 25}], "generation_horizon_days": 14},
    )
    assert response.status_code == 201
    template = response.json()
    assert template["auto_extend"] is True
    assert template["rules"][0]["rule_id"]

    sessions = api.get("/sessions", params={"client_id": client["id"]}).json()
    assert len(sessions) == 2
    assert all(s["start_time"] == "09:00" and s["price_override"] == 25 for s in sessions)

    again = api.post(f"/templates/{template['id']}/generate").json()
    assert again["created"] == 0

    ensured = api.post("/schedule/ensure", json={"date_to": next_week, "client_ids": [client["id"]]})
    assert ensured.status_code == 200


def test_malformed_rule_is_422(api):
    client = _client(api)

    response = api.post(
        f"/clients/{client['id']}/template", json={"rules": [{"weekday": 9, "start_time": "09:00"}]}
    )

    assert response.status_code == 422


def test_payment_flow_with_allocations(api):
    client = _client(api)
    sessions = [_session(api, client["id"], day) for day in ("2024-01-01", "2024-01-03", "2024-01-10")]

    response = api.post("/payments", json={"client_id": client["id"], "amount": 30})
    assert response.status_code == 201
    payment = response.json()

    states = [api.get(f"/sessions/{s['id']}/payment-state").json() for s in sessions]
    assert [s["effective_allocated"] for s in states] == [20, 10, 0]
    assert [s["allocated"] for s in states] == [0, 0, 0]

    auto = api.post(f"/payments/{payment['id']}/auto-allocate").json()
    assert [a["allocated_amount"] for a in auto] == [20, 10]

    replaced = api.put(
        f"/payments/{payment['id']}/allocations",
        json={"allocations": [{"session_id": sessions[2]["id"], "amount": 30}]},
    ).json()
    assert [(a["session_id"], a["allocated_amount"]) for a in replaced] == [(sessions[2]["id"], 30)]

    assert api.delete(f"/allocations/{replaced[0]['id']}").status_code == 204
    assert api.get(f"/payments/{payment['id']}/allocations").json() == []

    stats = api.get(f"/analytics/clients/{client['id']}").json()
    assert stats["balance"] == 30
    assert stats["total_debt"] == 60


def test_allocation_errors(api):
    client = _client(api)
    session = _session(api, client["id"], "2024-01-01")
    payment = api.post("/payments", json={"client_id": client["id"], "amount": 30}).json()

    missing = api.post(f"/payments/{payment['id']}/allocations", json={"session_id": 999, "amount": 5})
    assert missing.status_code == 404

    negative = api.post(
        f"/payments/{payment['id']}/allocations", json={"session_id": session["id"], "amount": -5}
    )
    assert negative.status_code == 422


def test_sessions_conflicts_and_edits(api):
    anna = _client(api, "Anna")
    boris = _client(api, "Boris")
    booked = _session(api, anna["id"], "2024-05-09")

    conflicts = api.get("/sessions/conflicts", params={"date": "2024-05-09", "start_time": "10:00"}).json()
    assert [s["id"] for s in conflicts] == [booked["id"]]

    moved = api.post(f"/sessions/{booked['id']}/move", json={"date": "2024-05-10", "start_time": "11:00"})
    assert moved.json()["is_edited"] is True

    canceled = api.post(f"/sessions/{booked['id']}/cancel")
    assert canceled.json()["status"] == "canceled"

    ranged = api.get("/sessions", params={"date_from": "2024-05-01", "date_to": "2024-05-31"}).json()
    assert [s["id"] for s in ranged] == [booked["id"]]
    assert api.get("/sessions").status_code == 400
    assert boris["id"] != anna["id"]


def test_packages_and_monthly_analytics(api):
    client = _client(api)
    package = api.post(
        "/packages", json={"client_id": client["id"], "total_price": 200, "sessions_count": 5}
    ).json()
    assert package["price_per_session"] == 40

    session = _session(api, client["id"], "2024-05-09", price=None)
    state = api.get(f"/sessions/{session['id']}/payment-state").json()
    assert state["price"] == 40

    monthly = api.get("/analytics/monthly", params={"month": "2024-05-15"}).json()
    assert monthly["total_clients"] == 1
    assert monthly["total_sessions"] == 1
    assert monthly["total_debt"] == 40

    recalculated = api.post("/recalculate").json()
    assert recalculated == {"clients": 1, "sessions": 1}


def test_hard_delete(api):
    client = _client(api)
    _session(api, client["id"], "2024-01-01")
    api.post("/payments", json={"client_id": client["id"], "amount": 30, "auto_allocate": True})

    summary = api.delete(f"/clients/{client['id']}/hard").json()

    assert summary["sessions"] == 1
    assert summary["allocations"] == 1
    assert api.get(f"/clients/{client['id']}").status_code == 404
