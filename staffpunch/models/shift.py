from typing import Optional
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import ForeignKey, Integer, String, CheckConstraint
from staffpunch.db.base import Base
from staffpunch.db.types import UTCDateTime

class Shift(Base):
    __tablename__ = "shifts"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), index=True)
    name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    start_at: Mapped[datetime] = mapped_column(UTCDateTime)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime)
    skill_id: Mapped[Optional[int]] = mapped_column(ForeignKey("skills.id"), nullable=True)
    required_count: Mapped[int] = mapped_column(Integer, default=1)

    event = relationship("Event", back_populates="shifts")
    skill = relationship("Skill")
    assignments = relationship("Assignment", back_populates="shift")

    __table_args__ = (CheckConstraint("end_at > start_at", name="window"),)
