# staffpunch/services/state_machine.py
from __future__ import annotations

from enum import Enum
from typing import Optional

from staffpunch.core.errors import AlreadyCheckedIn, NotCheckedIn, TerminalState
from staffpunch.models import AttendanceEvent


class AttendanceState(str, Enum):
    NOT_STARTED = "not_started"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"


def current_state(event: Optional[AttendanceEvent]) -> AttendanceState:
    # derived from the timestamps, never stored
    if event is None or event.check_in_at is None:
        return AttendanceState.NOT_STARTED
    if event.check_out_at is None:
        return AttendanceState.CHECKED_IN
    return AttendanceState.CHECKED_OUT


def decide(event: Optional[AttendanceEvent], purpose: str) -> AttendanceState:
    """
    Return the state a legal punch moves to, or raise the state-specific error.

    NOT_STARTED --checkin--> CHECKED_IN --checkout--> CHECKED_OUT (terminal)
    """
    state = current_state(event)

    if state is AttendanceState.CHECKED_OUT:
        raise TerminalState()

    if purpose == "checkin":
        if state is AttendanceState.CHECKED_IN:
            raise AlreadyCheckedIn()
        return AttendanceState.CHECKED_IN

    if purpose == "checkout":
        if state is AttendanceState.NOT_STARTED:
            raise NotCheckedIn()
        return AttendanceState.CHECKED_OUT

    raise ValueError(f"unknown punch purpose: {purpose!r}")
