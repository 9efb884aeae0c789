"""
Game catalog reads.

Games are read-only at request time; price and stock are taken as
authoritative at the moment they are read.
"""

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gamerent.core.exceptions import GameNotFoundError, GameUnavailableError
from gamerent.core.logging import get_logger
from gamerent.models.game import Game
from gamerent.models.reservation import Reservation, ReservationStatus

logger = get_logger(__name__)


async def get_game(db: AsyncSession, game_id: int) -> Game:
    """Get a game by ID, sellable or not."""
    result = await db.execute(select(Game).where(Game.id == game_id))
    game = result.scalar_one_or_none()

    if not game:
        raise GameNotFoundError(game_id)
    return game


async def get_rentable_game(db: AsyncSession, game_id: int) -> Game:
    """Get a game that exists and is flagged sellable."""
    game = await get_game(db, game_id)
    if not game.available:
        logger.info("game_unavailable", game_id=game_id)
        raise GameUnavailableError(game_id)
    return game


async def list_games(db: AsyncSession) -> list[Game]:
    """All sellable games ordered by name. Uses ix_games_available_name."""
    result = await db.execute(
        select(Game)
        .where(Game.available.is_(True))
        .order_by(Game.name.asc(), Game.id.asc())
    )
    return list(result.scalars().all())


async def get_reserved_dates(db: AsyncSession, game_id: int) -> list[date]:
    """Distinct dates with at least one active reservation, ascending."""
    result = await db.execute(
        select(Reservation.reservation_date)
        .where(
            Reservation.game_id == game_id,
            Reservation.status == ReservationStatus.ACTIVE.value,
        )
        .distinct()
        .order_by(Reservation.reservation_date.asc())
    )
    return list(result.scalars().all())
