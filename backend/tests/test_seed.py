"""
Tests for the starter catalog loader.
"""

import pytest
from sqlalchemy import func, select

from gamerent.db.seed import CATALOG, seed_catalog
from gamerent.models.game import Game


@pytest.mark.asyncio
async def test_seed_catalog_is_idempotent(db_session):
    assert await seed_catalog(db_session) == len(CATALOG)
    await db_session.commit()

    assert await seed_catalog(db_session) == 0
    count = (await db_session.execute(select(func.count(Game.id)))).scalar_one()
    assert count == len(CATALOG)


@pytest.mark.asyncio
async def test_seed_catalog_keeps_existing_games(db_session, test_game):
    # test_game is named "Catan", which the starter catalog also contains
    added = await seed_catalog(db_session)
    assert added == len(CATALOG) - 1

    catan = (await db_session.execute(select(Game).where(Game.name == "Catan"))).scalar_one()
    assert catan.id == test_game.id
    assert catan.stock == 1
