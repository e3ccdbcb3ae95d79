from typing import Optional
from datetime import date
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, ForeignKey, Date
from staffpunch.db.base import Base

class Event(Base):
    __tablename__ = "events"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"))
    name: Mapped[str] = mapped_column(String(200))
    event_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    venue = relationship("Venue", back_populates="events")
    shifts = relationship("Shift", back_populates="event", cascade="all, delete-orphan")
