import datetime as dt

import pytest

from staffpunch.core.errors import AlreadyCheckedIn, NotCheckedIn, TerminalState
from staffpunch.models import AttendanceEvent
from staffpunch.services.state_machine import AttendanceState, current_state, decide

T0 = dt.datetime(2026, 10, 19, 1, 0, tzinfo=dt.timezone.utc)


def _event(check_in=None, check_out=None):
    return AttendanceEvent(staff_id=1, shift_id=1, check_in_at=check_in, check_out_at=check_out)


def test_state_is_derived_from_timestamps():
    assert current_state(None) is AttendanceState.NOT_STARTED
    assert current_state(_event()) is AttendanceState.NOT_STARTED
    assert current_state(_event(T0)) is AttendanceState.CHECKED_IN
    assert current_state(_event(T0, T0 + dt.timedelta(hours=8))) is AttendanceState.CHECKED_OUT


def test_legal_transitions():
    assert decide(None, "checkin") is AttendanceState.CHECKED_IN
    assert decide(_event(T0), "checkout") is AttendanceState.CHECKED_OUT


@pytest.mark.parametrize(
    "event,purpose,error",
    [
        (_event(T0), "checkin", AlreadyCheckedIn),
        (None, "checkout", NotCheckedIn),
        (_event(T0, T0 + dt.timedelta(hours=1)), "checkin", TerminalState),
        (_event(T0, T0 + dt.timedelta(hours=1)), "checkout", TerminalState),
    ],
)
def test_illegal_transitions_raise_state_specific_errors(event, purpose, error):
    with pytest.raises(error):
        decide(event, purpose)


def test_decide_does_not_touch_the_event():
    event = _event(T0)
    decide(event, "checkout")
    assert event.check_out_at is None


def test_unknown_purpose_is_a_programming_error():
    with pytest.raises(ValueError):
        decide(None, "lunch")
