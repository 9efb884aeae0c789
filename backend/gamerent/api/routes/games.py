"""
Game catalog endpoints with Redis caching on the listing.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gamerent.core.dates import normalize_date
from gamerent.core.exceptions import ValidationError
from gamerent.core.logging import get_logger
from gamerent.db.session import get_db
from gamerent.schemas.game import (
    AvailabilityResponse,
    GameDetailResponse,
    GameListResponse,
    GameResponse,
)
from gamerent.services.availability_service import check_availability
from gamerent.services.cache_service import get_cached_games, set_cached_games
from gamerent.services.catalog_service import get_game, get_reserved_dates, list_games

logger = get_logger(__name__)
router = APIRouter(prefix="/games", tags=["Games"])


@router.get("/", response_model=GameListResponse)
async def list_games_endpoint(db: AsyncSession = Depends(get_db)):
    """
    List sellable games with their images and rules.
    Results are cached in Redis for 5 minutes.
    """
    cached = await get_cached_games()
    if cached:
        logger.info("games_list_cache_hit", count=cached.get("count"))
        cached["cached"] = True
        return GameListResponse(**cached)

    games = await list_games(db)
    response_data = {
        "games": [GameResponse.model_validate(g).model_dump(mode="json") for g in games],
        "count": len(games),
        "cached": False,
    }

    await set_cached_games(response_data)

    return GameListResponse(**response_data)


@router.get("/{game_id}", response_model=GameDetailResponse)
async def get_game_endpoint(game_id: int, db: AsyncSession = Depends(get_db)):
    """Game details plus the dates already holding active reservations. Not cached."""
    game = await get_game(db, game_id)
    reserved_dates = await get_reserved_dates(db, game_id)
    return GameDetailResponse(
        **GameResponse.model_validate(game).model_dump(),
        reserved_dates=reserved_dates,
    )


@router.get("/{game_id}/availability", response_model=AvailabilityResponse)
async def get_availability_endpoint(
    game_id: int,
    date: str = Query(..., description="Calendar date, YYYY-MM-DD (a time part is ignored)"),
    db: AsyncSession = Depends(get_db),
):
    """How many copies of the game are still free on a date."""
    try:
        day = normalize_date(date)
    except ValueError:
        raise ValidationError(f"Invalid date: {date!r}", date=date)

    availability = await check_availability(db, game_id, day)
    return AvailabilityResponse.model_validate(availability)
