from __future__ import annotations
from typing import List, Optional
from datetime import datetime, date
from pydantic import BaseModel


class GeoPoint(BaseModel):
    lat: float
    lon: float


class AttendanceOut(BaseModel):
    attendance_id: Optional[int] = None
    shift_id: int
    state: str
    check_in_at: Optional[datetime] = None
    check_in_geo: Optional[GeoPoint] = None
    check_out_at: Optional[datetime] = None
    check_out_geo: Optional[GeoPoint] = None


# ---- today's assignments ----

class VenueRef(BaseModel):
    id: int
    name: str
    address: Optional[str] = None

    model_config = {"from_attributes": True}


class ShiftRef(BaseModel):
    id: int
    name: Optional[str] = None
    start_at: datetime
    end_at: datetime
    event_name: str
    event_date: Optional[date] = None
    venue: VenueRef


class AssignmentToday(BaseModel):
    assignment_id: int
    status: str
    shift: ShiftRef
    attendance: AttendanceOut


class AssignmentsToday(BaseModel):
    business_date: date
    assignments: List[AssignmentToday]
