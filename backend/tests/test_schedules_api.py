from sqlalchemy.exc import OperationalError

from app.api.routes import schedules as schedule_routes
from app.models.user import User
from app.services import schedule_locking


def test_create_and_fetch_schedule(client, coordinator_headers, make_schedule):
    response = client.post("/api/schedules", json=make_schedule(), headers=coordinator_headers)
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "confirmed"
    assert created["start_time"] == "09:00:00"

    detail = client.get(f"/api/schedules/{created['id']}", headers=coordinator_headers)
    assert detail.status_code == 200
    body = detail.json()
    assert body["room_code"] == "R101"
    assert body["course_name"] == "Algorithms"
    assert body["instructor_name"] == "Dr. Smith"


def test_conflicting_create_returns_409_with_errors(client, coordinator_headers, make_schedule):
    assert client.post("/api/schedules", json=make_schedule(), headers=coordinator_headers).status_code == 201

    response = client.post(
        "/api/schedules",
        json=make_schedule(start_time="10:00", end_time="11:00"),
        headers=coordinator_headers,
    )

    assert response.status_code == 409
    payload = response.json()
    assert payload["message"] == "Schedule validation failed"
    assert len(payload["details"]["errors"]) == 2
    assert "roomConflicts" in payload["details"]["details"]


def test_validate_endpoint_is_advisory(client, instructor_headers, make_schedule):
    response = client.post(
        "/api/schedules/validate",
        json=make_schedule(start_time="12:00", end_time="11:00"),
        headers=instructor_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "isValid": False,
        "errors": ["End time must be after start time"],
        "details": {},
    }


def test_malformed_time_is_rejected_before_validation(client, coordinator_headers, make_schedule):
    response = client.post("/api/schedules", json=make_schedule(start_time="9am"), headers=coordinator_headers)
    assert response.status_code == 422


def test_writes_require_coordinator_or_admin(client, instructor_headers, make_schedule):
    response = client.post("/api/schedules", json=make_schedule(), headers=instructor_headers)
    assert response.status_code == 403

    anonymous = client.post("/api/schedules", json=make_schedule())
    assert anonymous.status_code in {401, 403}


def test_update_and_cancel(client, admin_headers, coordinator_headers, make_schedule):
    created = client.post("/api/schedules", json=make_schedule(), headers=coordinator_headers).json()

    updated = client.put(
        f"/api/schedules/{created['id']}",
        json={"start_time": "14:00", "end_time": "15:00"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["end_time"] == "15:00:00"

    cancelled = client.delete(f"/api/schedules/{created['id']}", headers=admin_headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["success"] is True

    detail = client.get(f"/api/schedules/{created['id']}", headers=admin_headers)
    assert detail.json()["status"] == "cancelled"


def test_missing_schedule_returns_404(client, admin_headers):
    response = client.put("/api/schedules/missing", json={"start_time": "10:00"}, headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Schedule with id missing not found"

    assert client.get("/api/schedules/missing", headers=admin_headers).status_code == 404


def test_bulk_create(client, catalog, coordinator_headers, make_schedule):
    items = [
        make_schedule(),
        make_schedule(room_id=catalog.lab_id, course_id=catalog.seminar_id, instructor_id=catalog.jones_id),
    ]

    response = client.post("/api/schedules/bulk", json=items, headers=coordinator_headers)

    assert response.status_code == 201
    assert response.json()["created"] == 2
    assert len(response.json()["ids"]) == 2


def test_bulk_rejection_lists_failing_lines(client, coordinator_headers, make_schedule):
    items = [make_schedule(), make_schedule(start_time="10:00", end_time="11:00")]

    response = client.post("/api/schedules/bulk", json=items, headers=coordinator_headers)

    assert response.status_code == 409
    payload = response.json()
    assert payload["message"] == "2 schedule(s) failed validation. Transaction not executed."
    assert [entry["line"] for entry in payload["details"]["errors"]] == [1, 2]


def test_bulk_requires_items(client, coordinator_headers):
    response = client.post("/api/schedules/bulk", json=[], headers=coordinator_headers)
    assert response.status_code == 422


def test_lock_contention_surfaces_as_503(client, coordinator_headers, make_schedule, monkeypatch):
    def contended(db, items):
        raise OperationalError("SELECT ... FOR UPDATE", {}, Exception("lock timeout"))

    monkeypatch.setattr(schedule_locking, "acquire_booking_locks", contended)

    response = client.post("/api/schedules", json=make_schedule(), headers=coordinator_headers)

    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"
    assert response.json()["details"] == {"retryable": True}


def test_validate_reports_busy_storage_as_503(client, instructor_headers, make_schedule, monkeypatch):
    def busy(db, data, exclude_id=None):
        raise OperationalError("SELECT schedules", {}, Exception("database is locked"))

    monkeypatch.setattr(schedule_routes, "validate_schedule", busy)

    response = client.post("/api/schedules/validate", json=make_schedule(), headers=instructor_headers)

    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"


def test_writes_record_the_acting_user(client, catalog, coordinator_headers, make_schedule):
    response = client.post("/api/schedules", json=make_schedule(), headers=coordinator_headers)

    assert response.status_code == 201
    assert response.json()["created_by"] == catalog.coordinator_id


def test_inactive_user_is_forbidden(client, db_session, catalog, coordinator_headers, make_schedule):
    db_session.get(User, catalog.coordinator_id).is_active = False
    db_session.commit()

    response = client.post("/api/schedules", json=make_schedule(), headers=coordinator_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "User account is inactive"
