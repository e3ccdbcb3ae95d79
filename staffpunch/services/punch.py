# staffpunch/services/punch.py
"""
The punch transaction: validate, locate, resolve, decide, persist.

Steps 1-4 only read catalogs. Steps 5-7 (load attendance row, decide, write)
run in one database transaction keyed by the (staff_id, shift_id) unique
constraint:

* check-in inserts the row; a concurrent winner makes our INSERT fail on the
  unique key,
* check-out is a conditional UPDATE that matches only a row still open,

and either collision rolls back and re-runs steps 5-7 against the fresh row,
so the loser sees ``AlreadyCheckedIn`` / ``TerminalState`` instead of writing
twice. Transient database failures are retried once, then surface as
``TemporaryError``.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Mapping, Optional, Union

import pydantic
from prometheus_client import Counter
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from staffpunch.core.config import Settings, settings
from staffpunch.core.errors import OutOfRange, PunchError, TemporaryError, ValidationError
from staffpunch.models import AttendanceEvent, Shift
from staffpunch.schemas.punch import PunchReceipt, PunchRequest
from staffpunch.services.equipment import ResolvedEquipment, resolve_equipment
from staffpunch.services.geofence import Coordinate, distance_meters, is_within_range
from staffpunch.services.shifts import ShiftResolver
from staffpunch.services.state_machine import decide

logger = logging.getLogger(__name__)

PUNCH_OUTCOMES = Counter(
    "attendance_punch_total",
    "Punch attempts by purpose and outcome (accepted or error code).",
    ["purpose", "outcome"],
)


class _KeyConflict(Exception):
    """Another punch for the same (staff, shift) committed first."""


def parse_punch_request(payload: Union[PunchRequest, Mapping[str, Any]]) -> PunchRequest:
    if isinstance(payload, PunchRequest):
        return payload
    try:
        return PunchRequest.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError.from_pydantic(exc.errors()) from None


def punch(
    db: Session,
    staff_id: int,
    payload: Union[PunchRequest, Mapping[str, Any]],
    *,
    now: Optional[dt.datetime] = None,
    cfg: Settings = settings,
    resolver: Optional[ShiftResolver] = None,
) -> PunchReceipt:
    try:
        req = parse_punch_request(payload)
    except ValidationError as exc:
        PUNCH_OUTCOMES.labels(purpose="unknown", outcome=exc.code).inc()
        raise

    resolver = resolver or ShiftResolver.from_settings(cfg)
    now_utc = resolver.to_utc(now or dt.datetime.now(dt.timezone.utc))

    attempts = 0
    transient_retried = False
    while True:
        attempts += 1
        try:
            receipt = _attempt(db, staff_id, req, now_utc, cfg, resolver)
        except _KeyConflict:
            db.rollback()
            if attempts >= cfg.PUNCH_MAX_ATTEMPTS:
                logger.error("Punch for staff=%s gave up after %d conflicting attempts", staff_id, attempts)
                PUNCH_OUTCOMES.labels(purpose=req.purpose, outcome=TemporaryError.code).inc()
                raise TemporaryError()
            logger.warning("Concurrent %s for staff=%s; re-evaluating (attempt %d)", req.purpose, staff_id, attempts)
            continue
        except PunchError as exc:
            db.rollback()
            logger.info("Punch %s rejected for staff=%s: %s", req.purpose, staff_id, exc.code)
            PUNCH_OUTCOMES.labels(purpose=req.purpose, outcome=exc.code).inc()
            raise
        except (OperationalError, PoolTimeoutError) as exc:
            db.rollback()
            if not transient_retried:
                transient_retried = True
                logger.warning("Transient database failure during punch, retrying once: %s", exc)
                continue
            logger.error("Punch for staff=%s failed on database: %s", staff_id, exc)
            PUNCH_OUTCOMES.labels(purpose=req.purpose, outcome=TemporaryError.code).inc()
            raise TemporaryError() from exc

        PUNCH_OUTCOMES.labels(purpose=req.purpose, outcome="accepted").inc()
        logger.info(
            "Punch %s accepted: staff=%s attendance=%s", req.purpose, staff_id, receipt.attendance_id,
        )
        return receipt


def _attempt(
    db: Session,
    staff_id: int,
    req: PunchRequest,
    now_utc: dt.datetime,
    cfg: Settings,
    resolver: ShiftResolver,
) -> PunchReceipt:
    equipment = resolve_equipment(db, req.equipment_qr)
    _check_geofence(Coordinate(req.lat, req.lon), equipment, cfg.GEOFENCE_RADIUS_METERS)
    shift = resolver.resolve(db, staff_id, equipment.venue_id, now_utc, req.purpose)

    event = db.execute(
        select(AttendanceEvent)
        .where(AttendanceEvent.staff_id == staff_id, AttendanceEvent.shift_id == shift.id)
        .with_for_update()
    ).scalar_one_or_none()

    decide(event, req.purpose)

    if req.purpose == "checkin":
        attendance_id = _write_checkin(db, staff_id, shift, event, req, now_utc)
    else:
        attendance_id = _write_checkout(db, event, req, now_utc)

    try:
        db.commit()
    except IntegrityError as exc:
        raise _KeyConflict() from exc

    return PunchReceipt(attendance_id=attendance_id, action=req.purpose, timestamp=now_utc)


def _check_geofence(here: Coordinate, equipment: ResolvedEquipment, radius: float) -> None:
    if not is_within_range(here, equipment.venue_coords, radius):
        raise OutOfRange(distance_meters(here, equipment.venue_coords), radius)


def _write_checkin(
    db: Session,
    staff_id: int,
    shift: Shift,
    event: Optional[AttendanceEvent],
    req: PunchRequest,
    now_utc: dt.datetime,
) -> int:
    values = dict(
        check_in_at=now_utc,
        check_in_lat=req.lat,
        check_in_lon=req.lon,
        check_in_equipment_qr=req.equipment_qr,
        updated_at=now_utc,
    )
    if event is None:
        event = AttendanceEvent(staff_id=staff_id, shift_id=shift.id, **values)
        db.add(event)
        try:
            db.flush()
        except IntegrityError as exc:
            raise _KeyConflict() from exc
        return event.id

    # row exists without a check-in (not produced by this service, but keep it safe)
    result = db.execute(
        update(AttendanceEvent)
        .where(AttendanceEvent.id == event.id, AttendanceEvent.check_in_at.is_(None))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise _KeyConflict()
    return event.id


def _write_checkout(db: Session, event: AttendanceEvent, req: PunchRequest, now_utc: dt.datetime) -> int:
    result = db.execute(
        update(AttendanceEvent)
        .where(
            AttendanceEvent.id == event.id,
            AttendanceEvent.check_in_at.is_not(None),
            AttendanceEvent.check_out_at.is_(None),
        )
        .values(
            check_out_at=now_utc,
            check_out_lat=req.lat,
            check_out_lon=req.lon,
            check_out_equipment_qr=req.equipment_qr,
            updated_at=now_utc,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise _KeyConflict()
    return event.id
