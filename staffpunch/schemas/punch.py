# staffpunch/schemas/punch.py
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

PunchPurpose = Literal["checkin", "checkout"]

QrToken = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]


class PunchRequest(BaseModel):
    """Body of POST /attendance/punch. The caller's identity never travels here."""

    model_config = ConfigDict(extra="ignore")

    equipment_qr: QrToken
    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(ge=-180, le=180, allow_inf_nan=False)
    purpose: PunchPurpose


class PunchReceipt(BaseModel):
    attendance_id: int
    action: PunchPurpose
    timestamp: datetime


class PunchResponse(BaseModel):
    ok: bool = True
    attendance: PunchReceipt
