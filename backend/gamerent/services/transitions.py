"""
Reservation status transition table.

This module is the only place that decides which status changes are legal.

    active    -> cancelled | completed
    completed -> cancelled
    cancelled -> (none)

Nothing ever returns to `active`. Only `active` reservations hold a slot.
"""

from gamerent.core.exceptions import AlreadyCancelledError, InvalidTransitionError
from gamerent.models.reservation import ReservationStatus

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.ACTIVE: frozenset({ReservationStatus.CANCELLED, ReservationStatus.COMPLETED}),
    ReservationStatus.COMPLETED: frozenset({ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
}


def holds_slot(status: str | ReservationStatus) -> bool:
    return ReservationStatus(status) is ReservationStatus.ACTIVE


def is_mutable(status: str | ReservationStatus) -> bool:
    """Whether dates and notes may still be edited."""
    return ReservationStatus(status) is ReservationStatus.ACTIVE


def can_transition(current: str | ReservationStatus, target: str | ReservationStatus) -> bool:
    return ReservationStatus(target) in ALLOWED_TRANSITIONS[ReservationStatus(current)]


def ensure_transition(
    reservation_id: int,
    current: str | ReservationStatus,
    target: str | ReservationStatus,
) -> ReservationStatus:
    """
    Validate `current -> target` and return the target status.

    Re-stating `active` on an active reservation is accepted as a no-op.
    """
    current = ReservationStatus(current)
    target = ReservationStatus(target)

    if current is ReservationStatus.CANCELLED and target is ReservationStatus.CANCELLED:
        raise AlreadyCancelledError(reservation_id)
    if current is target is ReservationStatus.ACTIVE:
        return target
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Reservation {reservation_id} cannot move from {current.value} to {target.value}",
            reservation_id=reservation_id,
            current=current.value,
            target=target.value,
        )
    return target
