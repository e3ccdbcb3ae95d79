# staffpunch/api/v1/assignments.py
import datetime as dt

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from staffpunch.api.deps import get_db, current_staff_id
from staffpunch.schemas.attendance import AssignmentsToday
from staffpunch.services.attendance import todays_assignments
from staffpunch.services.shifts import ShiftResolver

router = APIRouter()


@router.get("/today", response_model=AssignmentsToday)
def assignments_today(
    db: Session = Depends(get_db),
    staff_id: int = Depends(current_staff_id),
):
    resolver = ShiftResolver.from_settings()
    return todays_assignments(db, staff_id, resolver, dt.datetime.now(dt.timezone.utc))
