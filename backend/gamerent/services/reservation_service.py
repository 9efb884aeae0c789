"""
Reservation lifecycle service with concurrency-safe slot claims.

CONCURRENCY STRATEGY: Per-slot Compare-and-Commit
=================================================

Problem:
  Game G has one copy left on 2025-12-01. Two users reserve it at the same
  moment. Both count zero active reservations, both insert.
  Result: two active reservations for one copy.

Solution:
  Every (game, date) pair that has ever been booked owns one row in
  `reservation_slots` with a `version` counter.

  1. Make sure the slot row exists (INSERT ... ON CONFLICT DO NOTHING)
     and read its version
  2. Count active reservations for the pair; full -> DateFullyBooked
  3. UPDATE reservation_slots SET version = version + 1
     WHERE id = :slot_id AND version = :read_version
  4. If rows_affected == 0, another transaction claimed a unit of this slot
     after our read -> re-read and retry
  5. Insert (or move) the reservation. The request transaction commits the
     version bump and the reservation together.

  The UPDATE takes the slot row lock, so a concurrent claimer waits until
  the winner commits, then finds a different version and re-counts.
  Retries re-read with fresh statements (READ COMMITTED), so no rollback is
  needed between attempts. A retry ends either in a claim or in a count
  that has reached stock, so a loser is never turned away while copies
  remain. Only conflicts the recount cannot explain are capped by
  RESERVATION_MAX_RETRIES; running out surfaces as DateFullyBooked.

  Only create and date moves claim slots. Cancelling frees capacity and
  needs no coordination: a concurrent reader that still sees the old count
  is merely conservative.
"""

import time
from contextlib import contextmanager
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gamerent.core import dates
from gamerent.core.config import get_settings
from gamerent.core.exceptions import (
    DateFullyBookedError,
    ForbiddenError,
    GameRentError,
    InvalidDateError,
    InvalidTransitionError,
    ReservationNotFoundError,
    ValidationError,
)
from gamerent.core.logging import get_logger
from gamerent.core.metrics import (
    record_reservation_operation,
    reservation_latency,
    slot_claim_retries,
)
from gamerent.models.reservation import Reservation, ReservationSlot, ReservationStatus
from gamerent.services import transitions
from gamerent.services.availability_service import count_active_reservations
from gamerent.services.catalog_service import get_rentable_game

logger = get_logger(__name__)
settings = get_settings()

UPDATABLE_FIELDS = frozenset({"reservation_date", "return_date", "status", "notes"})

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


@contextmanager
def _tracked(operation: str):
    started = time.perf_counter()
    try:
        yield
    except GameRentError as exc:
        record_reservation_operation(operation, exc.code)
        raise
    else:
        record_reservation_operation(operation, "success")
    finally:
        reservation_latency.labels(operation=operation).observe(time.perf_counter() - started)


# ---------------------------------------------------------------------------
# Slot claims
# ---------------------------------------------------------------------------


async def read_slot(db: AsyncSession, game_id: int, day: date) -> tuple[int, int]:
    """Ensure the slot row for (game, day) exists. Returns (slot_id, version)."""
    dialect = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Slot claims are not supported on the {dialect} dialect")

    await db.execute(
        insert(ReservationSlot)
        .values(game_id=game_id, slot_date=day, version=1)
        .on_conflict_do_nothing(index_elements=["game_id", "slot_date"])
    )
    row = (
        await db.execute(
            select(ReservationSlot.id, ReservationSlot.version).where(
                ReservationSlot.game_id == game_id,
                ReservationSlot.slot_date == day,
            )
        )
    ).one()
    return row.id, row.version


async def bump_slot(db: AsyncSession, slot_id: int, version: int) -> bool:
    """Compare-and-commit on the slot version. False if someone else got there first."""
    result = await db.execute(
        update(ReservationSlot)
        .where(ReservationSlot.id == slot_id, ReservationSlot.version == version)
        .values(version=ReservationSlot.version + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def claim_slot(
    db: AsyncSession,
    game_id: int,
    stock: int,
    day: date,
    exclude_reservation_id: Optional[int] = None,
) -> int:
    """
    Claim one unit of stock for (game, day) or raise DateFullyBookedError.
    Returns the number of active reservations seen before the claim.

    A lost version check whose recount shows more active reservations was
    beaten by a committed claim, and the loop simply re-reads: it can only
    end in a successful bump or a full count. Losses the count does not
    explain (the competing claim was a cancel-and-rebook, or a writer that
    bumped without inserting) are budgeted by RESERVATION_MAX_RETRIES.
    """
    max_stalls = max(settings.RESERVATION_MAX_RETRIES, 1)
    stalls = 0
    attempt = 0
    reserved_at_loss: Optional[int] = None

    while True:
        attempt += 1
        slot_id, version = await read_slot(db, game_id, day)
        reserved = await count_active_reservations(db, game_id, day, exclude_reservation_id)

        if reserved >= stock:
            logger.warning(
                "reservation_date_fully_booked",
                game_id=game_id,
                date=day.isoformat(),
                reserved=reserved,
                stock=stock,
            )
            raise DateFullyBookedError(game_id, day)

        if reserved_at_loss is not None and reserved <= reserved_at_loss:
            stalls += 1
            if stalls >= max_stalls:
                logger.warning(
                    "reservation_slot_contended",
                    game_id=game_id,
                    date=day.isoformat(),
                    attempts=attempt,
                    reserved=reserved,
                    stock=stock,
                )
                raise DateFullyBookedError(game_id, day)

        if await bump_slot(db, slot_id, version):
            return reserved

        reserved_at_loss = reserved
        slot_claim_retries.inc()
        logger.info(
            "reservation_conflict_retry",
            game_id=game_id,
            date=day.isoformat(),
            attempt=attempt,
            reserved=reserved,
            reason="version_conflict",
        )


# ---------------------------------------------------------------------------
# Lifecycle operations
# ---------------------------------------------------------------------------


def _ensure_bookable_date(day: date) -> None:
    if dates.is_past(day):
        raise InvalidDateError(
            f"Cannot reserve a past date ({day.isoformat()})",
            date=day.isoformat(),
        )


def _ensure_return_after(reservation_date: date, return_date: Optional[date]) -> None:
    if return_date is not None and return_date < reservation_date:
        raise InvalidDateError(
            "Return date must be on or after the reservation date",
            reservation_date=reservation_date.isoformat(),
            return_date=return_date.isoformat(),
        )


async def _get_owned_reservation(
    db: AsyncSession,
    reservation_id: int,
    requester_id: int,
) -> Reservation:
    result = await db.execute(select(Reservation).where(Reservation.id == reservation_id))
    reservation = result.scalar_one_or_none()

    if not reservation:
        raise ReservationNotFoundError(reservation_id)

    if reservation.user_id != requester_id:
        logger.warning(
            "reservation_access_denied",
            reservation_id=reservation_id,
            owner_id=reservation.user_id,
            requester_id=requester_id,
        )
        raise ForbiddenError(
            "You do not own this reservation",
            reservation_id=reservation_id,
        )
    return reservation


async def create_reservation(
    db: AsyncSession,
    user_id: int,
    game_id: int,
    reservation_date: date,
    return_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> Reservation:
    """
    Reserve one copy of a game for a date.

    Raises GameNotFoundError, GameUnavailableError, InvalidDateError or
    DateFullyBookedError.
    """
    with _tracked("create"):
        reservation_date = dates.normalize_date(reservation_date)
        if return_date is not None:
            return_date = dates.normalize_date(return_date)

        game = await get_rentable_game(db, game_id)
        _ensure_bookable_date(reservation_date)
        _ensure_return_after(reservation_date, return_date)

        # Snapshot before claiming; the price never follows later catalog edits
        price = game.price
        await claim_slot(db, game.id, game.stock, reservation_date)

        reservation = Reservation(
            user_id=user_id,
            game_id=game.id,
            reservation_date=reservation_date,
            return_date=return_date,
            status=ReservationStatus.ACTIVE.value,
            total_price=price,
            notes=notes,
        )
        db.add(reservation)
        await db.flush()
        await db.refresh(reservation)

        logger.info(
            "reservation_created",
            reservation_id=reservation.id,
            user_id=user_id,
            game_id=game.id,
            date=reservation_date.isoformat(),
            total_price=str(price),
        )
        return reservation


async def update_reservation(
    db: AsyncSession,
    reservation_id: int,
    requester_id: int,
    patch: dict,
) -> Reservation:
    """
    Apply a partial update. Only keys present in `patch` change.

    A non-active reservation only accepts a patch consisting solely of
    `status: cancelled`. Moving the date re-runs the past-date and capacity
    rules at the new date; the reservation does not count against itself.
    """
    with _tracked("update"):
        if not patch:
            raise ValidationError("No fields to update")
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        for field in ("reservation_date", "status"):
            if field in patch and patch[field] is None:
                raise ValidationError(f"{field} cannot be null")

        reservation = await _get_owned_reservation(db, reservation_id, requester_id)
        current = ReservationStatus(reservation.status)
        target = ReservationStatus(patch["status"]) if "status" in patch else None

        cancel_only = set(patch) == {"status"} and target is ReservationStatus.CANCELLED
        if not transitions.is_mutable(current) and not cancel_only:
            raise InvalidTransitionError(
                f"Reservation {reservation_id} is {current.value} and can no longer be changed",
                reservation_id=reservation_id,
                current=current.value,
            )

        new_status = current
        if target is not None:
            new_status = transitions.ensure_transition(reservation.id, current, target)

        old_date = reservation.reservation_date
        new_date = old_date
        if "reservation_date" in patch:
            new_date = dates.normalize_date(patch["reservation_date"])

        new_return = reservation.return_date
        if "return_date" in patch:
            new_return = (
                dates.normalize_date(patch["return_date"])
                if patch["return_date"] is not None
                else None
            )

        date_moved = new_date != old_date
        if date_moved:
            _ensure_bookable_date(new_date)
        _ensure_return_after(new_date, new_return)

        if date_moved and transitions.holds_slot(new_status):
            game = await get_rentable_game(db, reservation.game_id)
            await claim_slot(
                db,
                game.id,
                game.stock,
                new_date,
                exclude_reservation_id=reservation.id,
            )

        reservation.reservation_date = new_date
        reservation.return_date = new_return
        reservation.status = new_status.value
        if "notes" in patch:
            reservation.notes = patch["notes"]

        await db.flush()
        await db.refresh(reservation)

        logger.info(
            "reservation_updated",
            reservation_id=reservation.id,
            user_id=requester_id,
            fields=sorted(patch),
            status=reservation.status,
            moved_from=old_date.isoformat() if date_moved else None,
            moved_to=new_date.isoformat() if date_moved else None,
        )
        return reservation


async def cancel_reservation(
    db: AsyncSession,
    reservation_id: int,
    requester_id: int,
) -> Reservation:
    """
    Cancel a reservation. The record is kept; only its status changes.
    Cancelling twice raises AlreadyCancelledError.
    """
    with _tracked("cancel"):
        reservation = await _get_owned_reservation(db, reservation_id, requester_id)
        previous = reservation.status
        reservation.status = transitions.ensure_transition(
            reservation.id, reservation.status, ReservationStatus.CANCELLED
        ).value

        await db.flush()
        await db.refresh(reservation)

        logger.info(
            "reservation_cancelled",
            reservation_id=reservation.id,
            user_id=requester_id,
            game_id=reservation.game_id,
            date=reservation.reservation_date.isoformat(),
            previous_status=previous,
        )
        return reservation


async def get_reservation(
    db: AsyncSession,
    reservation_id: int,
    requester_id: int,
) -> Reservation:
    """Point lookup restricted to the owner."""
    return await _get_owned_reservation(db, reservation_id, requester_id)


async def list_reservations(
    db: AsyncSession,
    user_id: int,
    status: Optional[ReservationStatus] = None,
) -> list[Reservation]:
    """A user's reservations, most future date first, with a game summary loaded."""
    query = (
        select(Reservation)
        .where(Reservation.user_id == user_id)
        .options(selectinload(Reservation.game))
        .order_by(Reservation.reservation_date.desc(), Reservation.id.desc())
        .execution_options(populate_existing=True)
    )
    if status is not None:
        query = query.where(Reservation.status == ReservationStatus(status).value)

    result = await db.execute(query)
    return list(result.scalars().all())
