import datetime as dt
import os
import tempfile
from types import SimpleNamespace
from zoneinfo import ZoneInfo

# settings and the default engine are built at import time
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="staffpunch-tests-")
os.environ.pop("DATABASE_URL", None)
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["TIMEZONE"] = "Asia/Tokyo"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from staffpunch.core.tokens import create_access_token
from staffpunch.db.base import Base
from staffpunch.db.session import build_engine, get_db
from staffpunch.models import Assignment, AssignmentStatus, Equipment, Event, Shift, Staff, Venue

TOKYO = ZoneInfo("Asia/Tokyo")
VENUE_COORDS = (33.5904, 130.4017)
# ~220 m north of the venue
NEAR_COORDS = (33.5924, 130.4017)
# ~550 m north of the venue
FAR_COORDS = (33.59535, 130.4017)

ACTIVE_QR = "QR-ACTIVE-0001"
RETIRED_QR = "QR-RETIRED-0001"


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def add_shift(db, event, start_at, end_at, name=None):
    shift = Shift(event_id=event.id, name=name, start_at=start_at, end_at=end_at, required_count=1)
    db.add(shift); db.flush()
    return shift


def assign(db, shift, staff, status=AssignmentStatus.confirmed.value):
    a = Assignment(shift_id=shift.id, staff_id=staff.id, status=status)
    db.add(a); db.flush()
    return a


@pytest.fixture
def catalog(db):
    """
    One venue with an active and a retired equipment label, one event, two
    staff members and a shift running from one hour ago to eight hours from
    now, confirmed for ``staff``.
    """
    now = dt.datetime.now(dt.timezone.utc).replace(microsecond=0)

    venue = Venue(name="HKT Theater", address="Fukuoka", lat=VENUE_COORDS[0], lon=VENUE_COORDS[1])
    other_venue = Venue(name="Other Hall", lat=35.6762, lon=139.6503)
    db.add_all([venue, other_venue]); db.flush()

    equipment = Equipment(venue_id=venue.id, name="PA Console", qr_token=ACTIVE_QR, active=True)
    retired = Equipment(venue_id=venue.id, name="Old Mixer", qr_token=RETIRED_QR, active=False)
    event = Event(venue_id=venue.id, name="Evening Show", event_date=now.astimezone(TOKYO).date())
    staff = Staff(user_id="staff-user-1", name="Aiko", email="aiko@example.com", active=True)
    other_staff = Staff(user_id="staff-user-2", name="Ren", email="ren@example.com", active=True)
    db.add_all([equipment, retired, event, staff, other_staff]); db.flush()

    shift = add_shift(db, event, now - dt.timedelta(hours=1), now + dt.timedelta(hours=8), name="Main")
    assign(db, shift, staff)
    db.commit()

    return SimpleNamespace(
        now=now,
        venue=venue,
        other_venue=other_venue,
        equipment=equipment,
        retired=retired,
        event=event,
        staff=staff,
        other_staff=other_staff,
        shift=shift,
    )


def punch_body(purpose="checkin", coords=NEAR_COORDS, qr=ACTIVE_QR):
    return {"equipment_qr": qr, "lat": coords[0], "lon": coords[1], "purpose": purpose}


def auth_headers(user_id="staff-user-1"):
    return {"Authorization": f"Bearer {create_access_token(sub=user_id)}"}


@pytest.fixture
def client(session_factory):
    from staffpunch.main import api

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    api.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(api)
    finally:
        api.dependency_overrides.clear()
