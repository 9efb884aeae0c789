"""
Tests for the reservation status transition table.
"""

import pytest

from gamerent.core.exceptions import AlreadyCancelledError, InvalidTransitionError
from gamerent.models.reservation import ReservationStatus
from gamerent.services import transitions

ACTIVE = ReservationStatus.ACTIVE
COMPLETED = ReservationStatus.COMPLETED
CANCELLED = ReservationStatus.CANCELLED


@pytest.mark.parametrize(
    "current, target",
    [
        (ACTIVE, CANCELLED),
        (ACTIVE, COMPLETED),
        (COMPLETED, CANCELLED),
    ],
)
def test_allowed_transitions(current, target):
    assert transitions.can_transition(current, target)
    assert transitions.ensure_transition(1, current, target) is target


@pytest.mark.parametrize(
    "current, target",
    [
        (COMPLETED, ACTIVE),
        (COMPLETED, COMPLETED),
        (CANCELLED, ACTIVE),
        (CANCELLED, COMPLETED),
    ],
)
def test_forbidden_transitions(current, target):
    assert not transitions.can_transition(current, target)
    with pytest.raises(InvalidTransitionError):
        transitions.ensure_transition(1, current, target)


def test_cancelling_twice_is_its_own_error():
    with pytest.raises(AlreadyCancelledError) as exc_info:
        transitions.ensure_transition(42, CANCELLED, CANCELLED)
    assert exc_info.value.context == {"reservation_id": 42}


def test_restating_active_is_a_no_op():
    assert transitions.ensure_transition(1, ACTIVE, ACTIVE) is ACTIVE


def test_accepts_stored_string_values():
    assert transitions.ensure_transition(1, "active", "completed") is COMPLETED


def test_only_active_holds_a_slot():
    assert transitions.holds_slot(ACTIVE)
    assert not transitions.holds_slot("completed")
    assert not transitions.holds_slot("cancelled")


def test_cancelled_is_terminal():
    assert transitions.ALLOWED_TRANSITIONS[CANCELLED] == frozenset()
