import datetime as dt

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from conftest import FAR_COORDS, TOKYO, add_shift, assign, auth_headers, punch_body
from staffpunch.core.tokens import create_access_token
from staffpunch.db.session import build_engine, get_db
from staffpunch.models import AttendanceEvent, Event, Staff


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_punch_requires_authentication(client, catalog):
    r = client.post("/api/v1/attendance/punch", json=punch_body())
    assert r.status_code == 401
    assert r.json() == {"error": "unauthorized", "code": "UNAUTHENTICATED"}


@pytest.mark.parametrize(
    "headers",
    [
        {"Authorization": "Token abc"},
        {"Authorization": "Bearer not-a-jwt"},
        {"Authorization": f"Bearer {create_access_token(sub='staff-user-1', expires_minutes=-5)}"},
        {"Authorization": f"Bearer {create_access_token(sub='nobody')}"},
    ],
)
def test_bad_or_unknown_identity_is_unauthenticated(client, catalog, headers):
    r = client.post("/api/v1/attendance/punch", json=punch_body(), headers=headers)
    assert r.status_code == 401


def test_inactive_staff_cannot_punch(client, catalog, db):
    db.get(Staff, catalog.staff.id).active = False
    db.commit()
    r = client.post("/api/v1/attendance/punch", json=punch_body(), headers=auth_headers())
    assert r.status_code == 401


def test_checkin_then_checkout_over_http(client, catalog):
    r = client.post("/api/v1/attendance/punch", json=punch_body("checkin"), headers=auth_headers())
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["ok"] is True
    assert body["attendance"]["action"] == "checkin"
    assert set(body["attendance"]) == {"attendance_id", "action", "timestamp"}

    again = client.post("/api/v1/attendance/punch", json=punch_body("checkin"), headers=auth_headers())
    assert again.status_code == 400
    assert again.json()["code"] == "ALREADY_CHECKED_IN"

    out = client.post("/api/v1/attendance/punch", json=punch_body("checkout"), headers=auth_headers())
    assert out.status_code == 200
    assert out.json()["attendance"]["attendance_id"] == body["attendance"]["attendance_id"]

    done = client.post("/api/v1/attendance/punch", json=punch_body("checkout"), headers=auth_headers())
    assert done.status_code == 400
    assert done.json()["code"] == "TERMINAL_STATE"


def test_client_supplied_staff_id_is_ignored(client, catalog, db):
    body = {**punch_body("checkin"), "staff_id": catalog.other_staff.id}
    r = client.post("/api/v1/attendance/punch", json=body, headers=auth_headers())
    assert r.status_code == 200

    row = db.execute(select(AttendanceEvent)).scalar_one()
    assert row.staff_id == catalog.staff.id


def test_other_staff_cannot_punch_someone_elses_shift(client, catalog):
    r = client.post("/api/v1/attendance/punch", json=punch_body(), headers=auth_headers("staff-user-2"))
    assert r.status_code == 400
    assert r.json() == {"error": "No shift found", "code": "NO_SHIFT_FOUND"}


def test_out_of_range_message_carries_distance(client, catalog, db):
    r = client.post("/api/v1/attendance/punch", json=punch_body(coords=FAR_COORDS), headers=auth_headers())
    assert r.status_code == 400
    assert r.json()["code"] == "OUT_OF_RANGE"
    assert r.json()["error"].startswith("Too far from venue: ")
    assert db.execute(select(func.count()).select_from(AttendanceEvent)).scalar_one() == 0


def test_unknown_qr_is_generic(client, catalog):
    r = client.post("/api/v1/attendance/punch", json=punch_body(qr="QR-RETIRED-0001"), headers=auth_headers())
    assert r.status_code == 400
    assert r.json() == {"error": "Equipment not found", "code": "EQUIPMENT_NOT_FOUND"}


@pytest.mark.parametrize(
    "override,field",
    [
        ({"lat": 91}, "lat"),
        ({"lon": 181}, "lon"),
        ({"equipment_qr": ""}, "equipment_qr"),
        ({"purpose": "invalid"}, "purpose"),
    ],
)
def test_validation_errors_are_bad_requests_listing_the_field(client, catalog, override, field):
    r = client.post("/api/v1/attendance/punch", json={**punch_body(), **override}, headers=auth_headers())
    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert [f["field"] for f in body["fields"]] == [field]


def test_my_attendance_for_shift(client, catalog):
    r = client.get(f"/api/v1/attendance/{catalog.shift.id}", headers=auth_headers())
    assert r.status_code == 200
    assert r.json()["state"] == "not_started"
    assert r.json()["attendance_id"] is None

    client.post("/api/v1/attendance/punch", json=punch_body("checkin"), headers=auth_headers())
    r = client.get(f"/api/v1/attendance/{catalog.shift.id}", headers=auth_headers())
    body = r.json()
    assert body["state"] == "checked_in"
    assert body["check_in_geo"] == {"lat": punch_body()["lat"], "lon": punch_body()["lon"]}
    assert body["check_out_at"] is None


def test_my_attendance_hides_unassigned_shifts(client, catalog):
    r = client.get(f"/api/v1/attendance/{catalog.shift.id}", headers=auth_headers("staff-user-2"))
    assert r.status_code == 404
    assert r.json()["code"] == "NO_SHIFT_FOUND"


def test_assignments_today(client, catalog, db):
    now_local = dt.datetime.now(TOKYO)
    midnight = dt.datetime.combine(now_local.date(), dt.time.min, tzinfo=TOKYO)

    event = Event(venue_id=catalog.venue.id, name="Late Show", event_date=now_local.date())
    db.add(event)
    db.flush()
    today_shift = add_shift(db, event, midnight + dt.timedelta(minutes=1), midnight + dt.timedelta(hours=2))
    tomorrow_shift = add_shift(db, event, midnight + dt.timedelta(days=1, hours=9),
                               midnight + dt.timedelta(days=1, hours=12))
    assign(db, today_shift, catalog.staff)
    assign(db, tomorrow_shift, catalog.staff)
    db.commit()

    r = client.get("/api/v1/assignments/today", headers=auth_headers())
    assert r.status_code == 200
    body = r.json()
    assert body["business_date"] == now_local.date().isoformat()

    shift_ids = [a["shift"]["id"] for a in body["assignments"]]
    assert today_shift.id in shift_ids
    assert tomorrow_shift.id not in shift_ids

    entry = next(a for a in body["assignments"] if a["shift"]["id"] == today_shift.id)
    assert entry["status"] == "confirmed"
    assert entry["shift"]["venue"]["name"] == catalog.venue.name
    assert entry["attendance"]["state"] == "not_started"


def test_assignments_today_requires_auth(client):
    assert client.get("/api/v1/assignments/today").status_code == 401


@pytest.fixture
def unreachable_db_client(client, tmp_path):
    from staffpunch.main import api

    # the parent directory never exists, so sqlite cannot open the file
    dead = build_engine(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
    factory = sessionmaker(bind=dead, autoflush=False)

    def _get_db():
        session = factory()
        try:
            yield session
        finally:
            session.close()

    api.dependency_overrides[get_db] = _get_db
    yield client
    dead.dispose()


@pytest.mark.parametrize(
    "method,path,kwargs",
    [
        ("post", "/api/v1/attendance/punch", {"json": punch_body()}),
        ("get", "/api/v1/attendance/1", {}),
        ("get", "/api/v1/assignments/today", {}),
    ],
)
def test_database_outage_is_a_temporary_error(unreachable_db_client, method, path, kwargs):
    r = getattr(unreachable_db_client, method)(path, headers=auth_headers(), **kwargs)
    assert r.status_code == 503
    assert r.json() == {"error": "Temporary failure, please retry", "code": "TEMPORARY_ERROR"}


def _punch_count(purpose, outcome):
    labels = {"purpose": purpose, "outcome": outcome}
    return REGISTRY.get_sample_value("attendance_punch_total", labels) or 0.0


def test_punch_outcomes_are_counted_over_http(client, catalog):
    before = {
        key: _punch_count(*key)
        for key in [
            ("checkin", "accepted"),
            ("checkin", "ALREADY_CHECKED_IN"),
            ("unknown", "VALIDATION_ERROR"),
            ("unknown", "UNAUTHENTICATED"),
        ]
    }

    client.post("/api/v1/attendance/punch", json=punch_body("checkin"), headers=auth_headers())
    client.post("/api/v1/attendance/punch", json=punch_body("checkin"), headers=auth_headers())
    client.post("/api/v1/attendance/punch", json={**punch_body(), "lat": 91}, headers=auth_headers())
    client.post("/api/v1/attendance/punch", json=punch_body())

    for key, value in before.items():
        assert _punch_count(*key) == value + 1, key


def test_non_punch_rejections_are_not_counted(client, catalog):
    before = _punch_count("unknown", "UNAUTHENTICATED")
    client.get("/api/v1/assignments/today")
    client.get(f"/api/v1/attendance/{catalog.shift.id}")
    assert _punch_count("unknown", "UNAUTHENTICATED") == before
