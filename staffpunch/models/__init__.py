# staffpunch/models/__init__.py
# Importing every model registers its table on Base.metadata (Alembic relies on it).
from staffpunch.models.venue import Venue
from staffpunch.models.skill import Skill
from staffpunch.models.equipment import Equipment
from staffpunch.models.event import Event
from staffpunch.models.shift import Shift
from staffpunch.models.staff import Staff
from staffpunch.models.assignment import Assignment, AssignmentStatus
from staffpunch.models.attendance import AttendanceEvent

__all__ = [
    "Venue", "Skill", "Equipment", "Event", "Shift",
    "Staff", "Assignment", "AssignmentStatus", "AttendanceEvent",
]
