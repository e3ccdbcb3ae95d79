# staffpunch/api/deps.py
from fastapi import Depends, Header
from sqlalchemy.orm import Session
from sqlalchemy import select

from staffpunch.core.errors import Unauthenticated
from staffpunch.core.tokens import decode_access
from staffpunch.db.session import get_db
from staffpunch.models import Staff

# ----------------------------------------------------------------------
# Reads the Bearer token from the Authorization header
# ----------------------------------------------------------------------
def get_bearer_token(authorization: str = Header(None, alias="Authorization")) -> str:
    if not authorization:
        raise Unauthenticated()
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthenticated()
    return parts[1]

# ----------------------------------------------------------------------
# Staff identity of the caller. Punch payloads never carry a staff id, so
# this is the only way an id reaches the punch transaction.
# ----------------------------------------------------------------------
def current_staff_id(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> int:
    payload = decode_access(token)
    if not payload:
        raise Unauthenticated()

    staff_id = db.execute(
        select(Staff.id).where(Staff.user_id == str(payload["sub"]), Staff.active.is_(True))
    ).scalar_one_or_none()
    if staff_id is None:
        raise Unauthenticated()
    return staff_id
