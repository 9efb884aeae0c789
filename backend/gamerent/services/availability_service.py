"""
Availability calculator: how many copies of a game are free on a date.

A slot is one unit of a game's stock on one calendar date. Only `active`
reservations consume slots. Dates before today are never bookable, although
historical reservations keep their stored dates.

Nothing here writes; the reservation service re-runs the count inside its own
transaction before it commits, because an availability answer can be stale by
the time the client acts on it.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gamerent.core import dates
from gamerent.core.logging import get_logger
from gamerent.core.metrics import record_availability_check
from gamerent.models.game import Game
from gamerent.models.reservation import Reservation, ReservationStatus
from gamerent.services.catalog_service import get_game

logger = get_logger(__name__)


@dataclass(frozen=True)
class Availability:
    game_id: int
    date: date
    available: bool
    total_stock: int
    reserved_count: int
    available_stock: int


def evaluate_availability(
    game_id: int,
    day: date,
    total_stock: int,
    reserved_count: int,
    *,
    today: date,
    sellable: bool = True,
) -> Availability:
    """Pure availability rule, independent of storage."""
    available_stock = max(total_stock - reserved_count, 0)
    available = sellable and day >= today and reserved_count < total_stock
    return Availability(
        game_id=game_id,
        date=day,
        available=available,
        total_stock=total_stock,
        reserved_count=reserved_count,
        available_stock=available_stock,
    )


async def count_active_reservations(
    db: AsyncSession,
    game_id: int,
    day: date,
    exclude_reservation_id: Optional[int] = None,
) -> int:
    """Count active reservations for (game, day), optionally ignoring one reservation."""
    query = select(func.count(Reservation.id)).where(
        Reservation.game_id == game_id,
        Reservation.reservation_date == day,
        Reservation.status == ReservationStatus.ACTIVE.value,
    )
    if exclude_reservation_id is not None:
        query = query.where(Reservation.id != exclude_reservation_id)
    return (await db.execute(query)).scalar_one()


async def availability_for_game(
    db: AsyncSession,
    game: Game,
    day: date,
    exclude_reservation_id: Optional[int] = None,
) -> Availability:
    reserved = await count_active_reservations(db, game.id, day, exclude_reservation_id)
    return evaluate_availability(
        game.id,
        day,
        game.stock,
        reserved,
        today=dates.today(),
        sellable=game.available,
    )


async def check_availability(db: AsyncSession, game_id: int, day: date) -> Availability:
    """
    Availability breakdown for one game on one date.
    Raises GameNotFoundError if the game does not exist.
    """
    game = await get_game(db, game_id)
    result = await availability_for_game(db, game, dates.normalize_date(day))

    record_availability_check(result.available)
    logger.debug(
        "availability_checked",
        game_id=game_id,
        date=result.date.isoformat(),
        available=result.available,
        reserved=result.reserved_count,
        stock=result.total_stock,
    )
    return result
