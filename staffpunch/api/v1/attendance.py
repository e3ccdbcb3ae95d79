# staffpunch/api/v1/attendance.py
from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from staffpunch.api.deps import get_db, current_staff_id
from staffpunch.schemas.attendance import AttendanceOut
from staffpunch.schemas.punch import PunchRequest, PunchResponse
from staffpunch.services.attendance import get_my_attendance
from staffpunch.services.punch import punch

router = APIRouter()


# POST /attendance/punch  -- self-service for every role
@router.post("/punch", response_model=PunchResponse)
def punch_attendance(
    body: PunchRequest = Body(...),
    db: Session = Depends(get_db),
    staff_id: int = Depends(current_staff_id),
):
    receipt = punch(db, staff_id, body)
    return PunchResponse(ok=True, attendance=receipt)


# GET /attendance/{shift_id}  -- the caller's own record for one shift
@router.get("/{shift_id}", response_model=AttendanceOut)
def my_attendance(
    shift_id: int,
    db: Session = Depends(get_db),
    staff_id: int = Depends(current_staff_id),
):
    return get_my_attendance(db, staff_id, shift_id)
