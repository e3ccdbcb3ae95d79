# staffpunch/services/attendance.py
from __future__ import annotations

import datetime as dt
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from staffpunch.core.errors import ShiftNotAssigned
from staffpunch.models import Assignment, AssignmentStatus, AttendanceEvent, Event, Shift
from staffpunch.schemas.attendance import (
    AssignmentToday,
    AssignmentsToday,
    AttendanceOut,
    GeoPoint,
    ShiftRef,
    VenueRef,
)
from staffpunch.services.shifts import ShiftResolver
from staffpunch.services.state_machine import current_state


def attendance_out(shift_id: int, event: Optional[AttendanceEvent]) -> AttendanceOut:
    out = AttendanceOut(shift_id=shift_id, state=current_state(event).value)
    if event is None:
        return out
    out.attendance_id = event.id
    out.check_in_at = event.check_in_at
    out.check_out_at = event.check_out_at
    if event.check_in_lat is not None and event.check_in_lon is not None:
        out.check_in_geo = GeoPoint(lat=event.check_in_lat, lon=event.check_in_lon)
    if event.check_out_lat is not None and event.check_out_lon is not None:
        out.check_out_geo = GeoPoint(lat=event.check_out_lat, lon=event.check_out_lon)
    return out


def _confirmed(staff_id: int):
    return (Assignment.staff_id == staff_id, Assignment.status == AssignmentStatus.confirmed.value)


def get_my_attendance(db: Session, staff_id: int, shift_id: int) -> AttendanceOut:
    """The caller's record for one shift; shifts they are not confirmed on look nonexistent."""
    assigned = db.execute(
        select(Assignment.id).where(Assignment.shift_id == shift_id, *_confirmed(staff_id))
    ).scalar_one_or_none()
    if assigned is None:
        raise ShiftNotAssigned()

    event = db.execute(
        select(AttendanceEvent).where(
            AttendanceEvent.staff_id == staff_id,
            AttendanceEvent.shift_id == shift_id,
        )
    ).scalar_one_or_none()
    return attendance_out(shift_id, event)


def todays_assignments(db: Session, staff_id: int, resolver: ShiftResolver, now: dt.datetime) -> AssignmentsToday:
    """Confirmed assignments whose shift starts on the business day containing ``now``."""
    day, start_utc, end_utc = resolver.business_day_bounds(now)

    rows = db.execute(
        select(Assignment)
        .join(Shift, Shift.id == Assignment.shift_id)
        .where(*_confirmed(staff_id), Shift.start_at >= start_utc, Shift.start_at < end_utc)
        .options(joinedload(Assignment.shift).joinedload(Shift.event).joinedload(Event.venue))
        .order_by(Shift.start_at, Shift.id)
    ).scalars().all()

    shift_ids = [a.shift_id for a in rows]
    events = {}
    if shift_ids:
        events = {
            e.shift_id: e
            for e in db.execute(
                select(AttendanceEvent).where(
                    AttendanceEvent.staff_id == staff_id,
                    AttendanceEvent.shift_id.in_(shift_ids),
                )
            ).scalars()
        }

    items: List[AssignmentToday] = []
    for a in rows:
        shift = a.shift
        items.append(
            AssignmentToday(
                assignment_id=a.id,
                status=a.status,
                shift=ShiftRef(
                    id=shift.id,
                    name=shift.name,
                    start_at=shift.start_at,
                    end_at=shift.end_at,
                    event_name=shift.event.name,
                    event_date=shift.event.event_date,
                    venue=VenueRef.model_validate(shift.event.venue),
                ),
                attendance=attendance_out(shift.id, events.get(shift.id)),
            )
        )
    return AssignmentsToday(business_date=day, assignments=items)
