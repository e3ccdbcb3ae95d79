# staffpunch/services/shifts.py
"""
Which shift is the staff member working right now at this venue?

A shift qualifies when its event is hosted at the venue, the staff member holds
a *confirmed* assignment on it, and ``now`` falls inside its punch window:

    checkin:  start_at - early  <= now <= end_at
    checkout: start_at - early  <= now <= end_at + grace

When several shifts qualify the tightest one (smallest end_at - start_at) wins,
then the latest start, then the lowest id. Every comparison is done in UTC; a
naive ``now`` is read in the business timezone handed to the resolver.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Literal, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from staffpunch.core.config import settings
from staffpunch.core.errors import NoShiftFound
from staffpunch.models import Assignment, AssignmentStatus, Event, Shift

logger = logging.getLogger(__name__)


class ShiftResolver:
    def __init__(
        self,
        tz: dt.tzinfo,
        checkout_grace: dt.timedelta = dt.timedelta(0),
        checkin_early: dt.timedelta = dt.timedelta(0),
    ):
        if checkout_grace < dt.timedelta(0) or checkin_early < dt.timedelta(0):
            raise ValueError("punch windows cannot be negative")
        self.tz = tz
        self.checkout_grace = checkout_grace
        self.checkin_early = checkin_early

    @classmethod
    def from_settings(cls, cfg=settings) -> "ShiftResolver":
        return cls(
            tz=ZoneInfo(cfg.TIMEZONE),
            checkout_grace=dt.timedelta(minutes=cfg.CHECKOUT_GRACE_MINUTES),
            checkin_early=dt.timedelta(minutes=cfg.CHECKIN_EARLY_MINUTES),
        )

    def to_utc(self, now: dt.datetime) -> dt.datetime:
        if now.tzinfo is None:
            now = now.replace(tzinfo=self.tz)
        return now.astimezone(dt.timezone.utc)

    def resolve(
        self,
        db: Session,
        staff_id: int,
        venue_id: int,
        now: dt.datetime,
        purpose: Literal["checkin", "checkout"] = "checkin",
    ) -> Shift:
        now_utc = self.to_utc(now)
        latest_end = now_utc - self.checkout_grace if purpose == "checkout" else now_utc

        candidates = db.execute(
            select(Shift)
            .join(Event, Event.id == Shift.event_id)
            .join(Assignment, Assignment.shift_id == Shift.id)
            .where(
                Event.venue_id == venue_id,
                Assignment.staff_id == staff_id,
                Assignment.status == AssignmentStatus.confirmed.value,
                Shift.start_at <= now_utc + self.checkin_early,
                Shift.end_at >= latest_end,
            )
        ).scalars().all()

        shift = self.pick(candidates)
        if shift is None:
            logger.info("No %s shift for staff=%s venue=%s at %s", purpose, staff_id, venue_id, now_utc.isoformat())
            raise NoShiftFound()
        if len(candidates) > 1:
            logger.warning(
                "Overlapping shifts %s for staff=%s venue=%s; picked %s",
                [s.id for s in candidates], staff_id, venue_id, shift.id,
            )
        return shift

    @staticmethod
    def pick(candidates) -> Optional[Shift]:
        if not candidates:
            return None
        return min(
            candidates,
            key=lambda s: (s.end_at - s.start_at, -s.start_at.timestamp(), s.id),
        )

    def business_day_bounds(self, now: dt.datetime) -> tuple[dt.date, dt.datetime, dt.datetime]:
        """Business-calendar date of ``now`` and its [start, end) in UTC."""
        local = self.to_utc(now).astimezone(self.tz)
        day = local.date()
        start = dt.datetime.combine(day, dt.time.min, tzinfo=self.tz)
        end = start + dt.timedelta(days=1)
        return day, start.astimezone(dt.timezone.utc), end.astimezone(dt.timezone.utc)
