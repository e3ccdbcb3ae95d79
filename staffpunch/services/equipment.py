# staffpunch/services/equipment.py
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from staffpunch.core.errors import EquipmentNotFound
from staffpunch.models import Equipment, Venue
from staffpunch.services.geofence import Coordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedEquipment:
    equipment_id: int
    name: str
    qr_token: str
    skill_id: Optional[int]
    venue_id: int
    venue_name: str
    venue_coords: Coordinate


def resolve_equipment(db: Session, qr_token: str) -> ResolvedEquipment:
    """
    Map a scanned QR token to its active equipment and owning venue.

    Unknown and deactivated tokens raise the same ``EquipmentNotFound`` so a
    caller cannot probe whether a code ever existed.
    """
    row = db.execute(
        select(Equipment, Venue)
        .join(Venue, Venue.id == Equipment.venue_id)
        .where(Equipment.qr_token == qr_token, Equipment.active.is_(True))
    ).first()
    if row is None:
        logger.info("Equipment lookup failed for token prefix %s", qr_token[:4])
        raise EquipmentNotFound()

    equipment, venue = row
    return ResolvedEquipment(
        equipment_id=equipment.id,
        name=equipment.name,
        qr_token=equipment.qr_token,
        skill_id=equipment.skill_id,
        venue_id=venue.id,
        venue_name=venue.name,
        venue_coords=Coordinate(venue.lat, venue.lon),
    )


def generate_qr_token() -> str:
    """Fresh opaque token for a new equipment label."""
    return secrets.token_urlsafe(24)
