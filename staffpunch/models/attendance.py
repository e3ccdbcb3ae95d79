from typing import Optional
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import ForeignKey, UniqueConstraint, CheckConstraint, String, Float, func
from staffpunch.db.base import Base
from staffpunch.db.types import UTCDateTime

class AttendanceEvent(Base):
    __tablename__ = "attendance_events"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    staff_id: Mapped[int] = mapped_column(ForeignKey("staff.id"))
    shift_id: Mapped[int] = mapped_column(ForeignKey("shifts.id"))

    check_in_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    check_in_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    check_in_lon: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    check_in_equipment_qr: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    check_out_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    check_out_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    check_out_lon: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    check_out_equipment_qr: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    staff = relationship("Staff")
    shift = relationship("Shift")

    __table_args__ = (
        UniqueConstraint("staff_id","shift_id", name="uq_attendance_staff_shift"),
        CheckConstraint("check_out_at IS NULL OR check_in_at IS NOT NULL", name="checkout_after_checkin"),
    )
