# staffpunch/core/errors.py
"""
Typed failures of a punch.

Every error a caller can observe is a subclass of ``PunchError``; the API layer
renders them uniformly as ``{"error": message, "code": code}`` with the
subclass' HTTP status. Nothing else is part of the public contract.
"""
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional


def _whole_meters(value: float) -> str:
    # rounded up so a rejected distance never prints as the accepted limit
    if not math.isfinite(value):
        return str(value)
    return str(math.ceil(value))


class PunchError(Exception):
    code: str = "PUNCH_ERROR"
    status_code: int = 400
    message: str = "Punch rejected."

    def __init__(self, message: Optional[str] = None):
        self.message = message or type(self).message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class Unauthenticated(PunchError):
    code = "UNAUTHENTICATED"
    status_code = 401
    message = "unauthorized"


class ValidationError(PunchError):
    code = "VALIDATION_ERROR"
    message = "Invalid punch request."

    def __init__(self, fields: List[Dict[str, str]], message: Optional[str] = None):
        self.fields = fields
        if message is None:
            names = ", ".join(f["field"] for f in fields) or "body"
            message = f"Invalid punch request: {names}"
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, errors: List[Dict[str, Any]]) -> "ValidationError":
        """Build from ``exc.errors()`` of pydantic or FastAPI's RequestValidationError."""
        fields = []
        for err in errors:
            loc = [str(p) for p in err.get("loc", ()) if p != "body"]
            fields.append({"field": ".".join(loc) or "body", "message": str(err.get("msg", "invalid"))})
        return cls(fields)

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "fields": self.fields}


class EquipmentNotFound(PunchError):
    code = "EQUIPMENT_NOT_FOUND"
    message = "Equipment not found"


class OutOfRange(PunchError):
    code = "OUT_OF_RANGE"

    def __init__(self, distance_meters: float, radius_meters: float):
        self.distance_meters = distance_meters
        self.radius_meters = radius_meters
        super().__init__(
            f"Too far from venue: {_whole_meters(distance_meters)}m (limit {radius_meters:.0f}m)"
        )


class NoShiftFound(PunchError):
    code = "NO_SHIFT_FOUND"
    message = "No shift found"


class ShiftNotAssigned(NoShiftFound):
    """Read of a shift the caller is not confirmed on; looks like a missing shift."""
    status_code = 404


class AlreadyCheckedIn(PunchError):
    code = "ALREADY_CHECKED_IN"
    message = "Already checked in for this shift"


class NotCheckedIn(PunchError):
    code = "NOT_CHECKED_IN"
    message = "Not checked in for this shift"


class TerminalState(PunchError):
    code = "TERMINAL_STATE"
    message = "Attendance for this shift is already completed"


class TemporaryError(PunchError):
    code = "TEMPORARY_ERROR"
    status_code = 503
    message = "Temporary failure, please retry"
