"""
Load the starter game catalog.

    python -m gamerent.db.seed [--create-tables]

Games that already exist (matched by name) are left untouched; the catalog
listing cache is dropped afterwards.
"""

import argparse
import asyncio
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gamerent.core.logging import get_logger, setup_logging
from gamerent.db.base import Base
from gamerent.db.session import AsyncSessionLocal, engine
from gamerent.models.game import Game, GameImage, GameRule
from gamerent.services.cache_service import close_redis, invalidate_catalog_cache

logger = get_logger(__name__)

CATALOG = [
    {
        "name": "Magic: The Gathering",
        "category": "Strategy card game",
        "summary": "Duel other planeswalkers with decks of spells and creatures.",
        "price": Decimal("25.00"),
        "players": "2 players",
        "duration": "30-60 minutes",
        "stock": 3,
        "images": ["/images/games/magic-1.jpg", "/images/games/magic-2.jpg"],
        "rules": [
            "Each player starts with 20 life.",
            "Draw seven cards to form your opening hand.",
            "Play at most one land per turn.",
        ],
    },
    {
        "name": "Uno",
        "category": "Family card game",
        "summary": "Match colours and numbers and be the first to empty your hand.",
        "price": Decimal("15.00"),
        "players": "2-10 players",
        "duration": "15-30 minutes",
        "stock": 5,
        "images": ["/images/games/uno-1.jpg"],
        "rules": [
            "Each player is dealt seven cards.",
            "Match the top card by colour, number or symbol.",
            "Say 'Uno' when you have one card left.",
        ],
    },
    {
        "name": "Chess",
        "category": "Strategy board game",
        "summary": "The classic game of checkmate.",
        "price": Decimal("20.00"),
        "players": "2 players",
        "duration": "30-90 minutes",
        "stock": 4,
        "images": ["/images/games/chess-1.jpg"],
        "rules": [
            "White moves first.",
            "Checkmate the opposing king to win.",
        ],
    },
    {
        "name": "Monopoly",
        "category": "Family board game",
        "summary": "Buy, trade and build your way to a property empire.",
        "price": Decimal("30.00"),
        "players": "2-8 players",
        "duration": "60-180 minutes",
        "stock": 2,
        "images": ["/images/games/monopoly-1.jpg"],
        "rules": [
            "Each player starts with the same amount of cash.",
            "Collect rent when opponents land on your property.",
        ],
    },
    {
        "name": "Catan",
        "category": "Strategy board game",
        "summary": "Gather resources, trade and settle the island.",
        "price": Decimal("35.00"),
        "players": "3-4 players (5-6 with expansion)",
        "duration": "60-120 minutes",
        "stock": 2,
        "images": ["/images/games/catan-1.jpg", "/images/games/catan-2.jpg"],
        "rules": [
            "Roll for resource production at the start of each turn.",
            "The first player to reach 10 victory points wins.",
        ],
    },
    {
        "name": "Exploding Kittens",
        "category": "Party card game",
        "summary": "Russian roulette with kittens.",
        "price": Decimal("22.00"),
        "players": "2-5 players",
        "duration": "15 minutes",
        "stock": 1,
        "images": ["/images/games/kittens-1.jpg"],
        "rules": [
            "Draw a card at the end of your turn.",
            "Drawing an Exploding Kitten without a Defuse knocks you out.",
        ],
    },
]


def build_game(entry: dict) -> Game:
    game = Game(
        name=entry["name"],
        category=entry["category"],
        summary=entry.get("summary"),
        description=entry.get("description"),
        how_to_play=entry.get("how_to_play"),
        price=entry["price"],
        players=entry.get("players"),
        duration=entry.get("duration"),
        stock=entry["stock"],
        available=entry.get("available", True),
    )
    game.images = [
        GameImage(image_url=url, display_order=position)
        for position, url in enumerate(entry.get("images", []))
    ]
    game.rules = [
        GameRule(rule_text=text, rule_order=position)
        for position, text in enumerate(entry.get("rules", []))
    ]
    return game


async def seed_catalog(db: AsyncSession, catalog: list[dict] = CATALOG) -> int:
    """Insert missing games. Returns how many were added."""
    existing = set((await db.execute(select(Game.name))).scalars().all())
    added = 0
    for entry in catalog:
        if entry["name"] in existing:
            continue
        db.add(build_game(entry))
        added += 1
    await db.flush()
    return added


async def main(create_tables: bool) -> None:
    setup_logging()

    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("tables_created")

    async with AsyncSessionLocal() as session:
        added = await seed_catalog(session)
        await session.commit()

    await invalidate_catalog_cache()
    await close_redis()
    await engine.dispose()
    logger.info("catalog_seeded", games_added=added)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the GameRent catalog")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="create missing tables first (development without migrations)",
    )
    args = parser.parse_args()
    asyncio.run(main(args.create_tables))
