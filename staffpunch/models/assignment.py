from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import ForeignKey, String, UniqueConstraint
from staffpunch.db.base import Base

class AssignmentStatus(str, Enum):
    pending="pending"
    confirmed="confirmed"
    cancelled="cancelled"

class Assignment(Base):
    __tablename__ = "assignments"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    shift_id: Mapped[int] = mapped_column(ForeignKey("shifts.id"))
    staff_id: Mapped[int] = mapped_column(ForeignKey("staff.id"), index=True)
    status: Mapped[str] = mapped_column(String(20), default=AssignmentStatus.pending.value)

    shift = relationship("Shift", back_populates="assignments")
    staff = relationship("Staff")

    __table_args__ = (UniqueConstraint("shift_id","staff_id", name="uq_assignment_shift_staff"),)
