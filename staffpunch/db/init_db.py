# staffpunch/db/init_db.py
"""Demo catalog for local runs; real catalogs come from the admin service."""
import datetime as dt
import logging
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from staffpunch.core.config import settings
from staffpunch.models import Assignment, AssignmentStatus, Equipment, Event, Shift, Skill, Staff, Venue
from staffpunch.services.equipment import generate_qr_token

logger = logging.getLogger(__name__)

DEMO_VENUE = {"name": "Demo Theater", "address": "Fukuoka", "lat": 33.5904, "lon": 130.4017}


def init_db(db: Session, today: dt.date | None = None) -> None:
    venue = db.scalar(select(Venue).where(Venue.name == DEMO_VENUE["name"]))
    if venue:
        return

    tz = ZoneInfo(settings.TIMEZONE)
    today = today or dt.datetime.now(tz).date()

    venue = Venue(**DEMO_VENUE)
    skill = Skill(code="pa", name="PA")
    db.add_all([venue, skill]); db.flush()

    equipment = Equipment(venue_id=venue.id, name="PA Console", qr_token=generate_qr_token(), active=True, skill_id=skill.id)
    event = Event(venue_id=venue.id, name="Demo Show", event_date=today)
    staff = Staff(user_id="demo-staff", name="Demo Staff", email="staff@demo", active=True)
    db.add_all([equipment, event, staff]); db.flush()

    shift = Shift(
        event_id=event.id,
        name="Day shift",
        start_at=dt.datetime.combine(today, dt.time(9, 0), tzinfo=tz),
        end_at=dt.datetime.combine(today, dt.time(18, 0), tzinfo=tz),
        skill_id=skill.id,
        required_count=1,
    )
    db.add(shift); db.flush()
    db.add(Assignment(shift_id=shift.id, staff_id=staff.id, status=AssignmentStatus.confirmed.value))
    db.commit()
    logger.info("Seeded demo catalog; equipment QR token %s", equipment.qr_token)
