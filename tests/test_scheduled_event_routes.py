import uuid

from services import scheduled_event_service as svc
from services.exceptions import ConflictError


def _headers(user):
    return {"X-User-Id": str(user)}


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_requests_without_identity_are_rejected(client, sprint_review):
    assert client.get("/scheduled-events").status_code == 401
    assert client.post("/scheduled-events", json=sprint_review).status_code == 401
    assert client.get("/scheduled-events", headers={"X-User-Id": "not-a-uuid"}).status_code == 401


def test_sprint_review_over_http(client, owner_a, owner_b, sprint_review):
    r = client.post("/scheduled-events", json={**sprint_review, "created_by": str(owner_b)}, headers=_headers(owner_a))
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "scheduled"
    assert body["reminder_minutes"] == 15
    assert body["created_by"] == str(owner_a)
    assert body["time"].startswith("14:00")
    event_id = body["id"]

    assert client.get(f"/scheduled-events/{event_id}", headers=_headers(owner_b)).status_code == 404

    r = client.patch(f"/scheduled-events/{event_id}", json={"status": "completed"}, headers=_headers(owner_a))
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    assert r.json()["updated_at"] != body["updated_at"]

    assert client.delete(f"/scheduled-events/{event_id}", headers=_headers(owner_a)).status_code == 204
    assert client.get(f"/scheduled-events/{event_id}", headers=_headers(owner_a)).status_code == 404


def test_unknown_type_is_rejected_and_not_stored(client, owner_a, sprint_review):
    r = client.post("/scheduled-events", json={**sprint_review, "type": "unknown"}, headers=_headers(owner_a))
    assert r.status_code == 422
    assert client.get("/scheduled-events", headers=_headers(owner_a)).json() == []


def test_invalid_merged_patch_returns_422(client, owner_a, sprint_review):
    event_id = client.post("/scheduled-events", json=sprint_review, headers=_headers(owner_a)).json()["id"]
    r = client.patch(f"/scheduled-events/{event_id}", json={"duration": 0}, headers=_headers(owner_a))
    assert r.status_code == 422
    assert r.json()["detail"]["errors"][0]["loc"] == ["duration"]


def test_foreign_and_missing_ids_look_the_same(client, owner_a, owner_b, sprint_review):
    event_id = client.post("/scheduled-events", json=sprint_review, headers=_headers(owner_a)).json()["id"]
    foreign = client.delete(f"/scheduled-events/{event_id}", headers=_headers(owner_b))
    missing = client.delete(f"/scheduled-events/{uuid.uuid4()}", headers=_headers(owner_b))
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()


def test_list_filters_by_date_and_owner(client, owner_a, owner_b, sprint_review):
    client.post("/scheduled-events", json=sprint_review, headers=_headers(owner_a))
    client.post("/scheduled-events", json={**sprint_review, "date": "2024-06-02"}, headers=_headers(owner_a))
    client.post("/scheduled-events", json=sprint_review, headers=_headers(owner_b))

    r = client.get(
        "/scheduled-events",
        params={"date_from": "2024-06-01", "date_to": "2024-06-01"},
        headers=_headers(owner_a),
    )
    assert r.status_code == 200
    rows = r.json()
    assert len(rows) == 1
    assert rows[0]["date"] == "2024-06-01"
    assert rows[0]["created_by"] == str(owner_a)


def test_list_rejects_reversed_date_range(client, owner_a):
    r = client.get(
        "/scheduled-events",
        params={"date_from": "2024-06-02", "date_to": "2024-06-01"},
        headers=_headers(owner_a),
    )
    assert r.status_code == 422


def test_conflict_maps_to_409(client, owner_a, sprint_review, monkeypatch):
    def _conflict(db, payload, user):
        raise ConflictError("CHECK constraint failed")

    monkeypatch.setattr(svc, "create", _conflict)
    r = client.post("/scheduled-events", json=sprint_review, headers=_headers(owner_a))
    assert r.status_code == 409


def test_oversized_duration_is_422(client, owner_a, sprint_review):
    r = client.post("/scheduled-events", json={**sprint_review, "duration": 2**63}, headers=_headers(owner_a))
    assert r.status_code == 422
    assert client.get("/scheduled-events", headers=_headers(owner_a)).json() == []
