"""
Service-level tests for slot claims and the optimistic version check.

The concurrent tests give every caller its own session on the same database
and commit, the way separate requests would. On SQLite the writers queue on
the database lock; set TEST_DATABASE_URL to run them against PostgreSQL.
"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select

from gamerent.core import dates
from gamerent.core.exceptions import DateFullyBookedError
from gamerent.models.reservation import Reservation, ReservationSlot
from gamerent.services import reservation_service
from gamerent.services.availability_service import count_active_reservations
from gamerent.services.reservation_service import (
    bump_slot,
    claim_slot,
    create_reservation,
    read_slot,
    update_reservation,
)


@pytest.mark.asyncio
async def test_read_slot_creates_row_once(db_session, test_game):
    day = dates.today() + timedelta(days=3)

    first = await read_slot(db_session, test_game.id, day)
    second = await read_slot(db_session, test_game.id, day)

    assert first == second
    assert first[1] == 1
    rows = (await db_session.execute(select(ReservationSlot))).scalars().all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_bump_slot_rejects_stale_version(db_session, test_game):
    day = dates.today() + timedelta(days=3)
    slot_id, version = await read_slot(db_session, test_game.id, day)

    assert await bump_slot(db_session, slot_id, version) is True
    # A second claimer that read the same version loses
    assert await bump_slot(db_session, slot_id, version) is False

    _, current = await read_slot(db_session, test_game.id, day)
    assert current == version + 1


@pytest.mark.asyncio
async def test_claim_slot_refuses_when_full(db_session, test_user, test_game):
    day = dates.today() + timedelta(days=3)
    await create_reservation(db_session, test_user.id, test_game.id, day)

    with pytest.raises(DateFullyBookedError) as exc_info:
        await claim_slot(db_session, test_game.id, test_game.stock, day)
    assert exc_info.value.context == {"game_id": test_game.id, "date": day.isoformat()}


@pytest.mark.asyncio
async def test_claim_slot_ignores_excluded_reservation(db_session, test_user, test_game):
    day = dates.today() + timedelta(days=3)
    reservation = await create_reservation(db_session, test_user.id, test_game.id, day)

    seen = await claim_slot(
        db_session, test_game.id, test_game.stock, day,
        exclude_reservation_id=reservation.id,
    )
    assert seen == 0


@pytest.mark.asyncio
async def test_conflicts_without_progress_report_fully_booked(
    db_session, test_user, test_game, monkeypatch
):
    attempts = []

    async def always_stale(db, slot_id, version):
        attempts.append(version)
        return False

    monkeypatch.setattr(reservation_service, "bump_slot", always_stale)
    day = dates.today() + timedelta(days=3)

    with pytest.raises(DateFullyBookedError):
        await create_reservation(db_session, test_user.id, test_game.id, day)
    assert len(attempts) == reservation_service.settings.RESERVATION_MAX_RETRIES


@pytest.mark.asyncio
async def test_retry_after_one_lost_race_succeeds(
    db_session, test_user, test_game, monkeypatch
):
    real_bump = reservation_service.bump_slot
    calls = []

    async def lose_first(db, slot_id, version):
        calls.append(version)
        if len(calls) == 1:
            return False
        return await real_bump(db, slot_id, version)

    monkeypatch.setattr(reservation_service, "bump_slot", lose_first)
    day = dates.today() + timedelta(days=3)

    reservation = await create_reservation(db_session, test_user.id, test_game.id, day)
    assert reservation.status == "active"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_status_change_does_not_claim(db_session, test_user, test_game, monkeypatch):
    day = dates.today() + timedelta(days=3)
    reservation = await create_reservation(db_session, test_user.id, test_game.id, day)

    async def must_not_claim(*args, **kwargs):
        raise AssertionError("claim_slot called")

    monkeypatch.setattr(reservation_service, "claim_slot", must_not_claim)
    updated = await update_reservation(
        db_session, reservation.id, test_user.id, {"status": "completed", "notes": "done"}
    )
    assert updated.status == "completed"
    assert updated.notes == "done"


def _competing_claims(user_id: int, game, day, wins: int):
    """
    Stand-in for bump_slot where another caller books a copy and commits its
    own bump just before each of the first `wins` version checks.
    """
    real_bump = reservation_service.bump_slot
    calls = []

    async def bump_after_competitor(db, slot_id, version):
        calls.append(version)
        if len(calls) <= wins:
            db.add(
                Reservation(
                    user_id=user_id,
                    game_id=game.id,
                    reservation_date=day,
                    status="active",
                    total_price=game.price,
                )
            )
            await db.flush()
            assert await real_bump(db, slot_id, version) is True
        return await real_bump(db, slot_id, version)

    return bump_after_competitor, calls


@pytest.mark.asyncio
async def test_lost_checks_keep_retrying_while_copies_remain(
    db_session, make_game, test_user, other_user, monkeypatch
):
    game = await make_game(stock=10)
    day = dates.today() + timedelta(days=3)
    wins = reservation_service.settings.RESERVATION_MAX_RETRIES + 2
    bump, calls = _competing_claims(other_user.id, game, day, wins)
    monkeypatch.setattr(reservation_service, "bump_slot", bump)

    reservation = await create_reservation(db_session, test_user.id, game.id, day)

    assert reservation.status == "active"
    assert len(calls) == wins + 1
    assert await count_active_reservations(db_session, game.id, day) == wins + 1


@pytest.mark.asyncio
async def test_competitors_taking_the_last_copies_report_fully_booked(
    db_session, make_game, test_user, other_user, monkeypatch
):
    game = await make_game(stock=3)
    day = dates.today() + timedelta(days=3)
    bump, calls = _competing_claims(other_user.id, game, day, wins=game.stock)
    monkeypatch.setattr(reservation_service, "bump_slot", bump)

    with pytest.raises(DateFullyBookedError):
        await create_reservation(db_session, test_user.id, game.id, day)
    assert len(calls) == game.stock
    assert await count_active_reservations(db_session, game.id, day) == game.stock


async def _reserve_in_own_session(session_factory, user_id: int, game_id: int, day) -> str:
    async with session_factory() as session:
        try:
            await create_reservation(session, user_id, game_id, day)
            await session.commit()
        except DateFullyBookedError:
            await session.rollback()
            return "full"
    return "ok"


async def _race(session_factory, users, game, day, callers: int) -> list[str]:
    return await asyncio.gather(
        *(
            _reserve_in_own_session(session_factory, users[i % len(users)].id, game.id, day)
            for i in range(callers)
        )
    )


async def _active_count(session_factory, game_id: int, day) -> int:
    async with session_factory() as session:
        return await count_active_reservations(session, game_id, day)


@pytest.mark.asyncio
async def test_concurrent_creates_for_last_copy(
    session_factory, test_user, other_user, test_game
):
    day = dates.today() + timedelta(days=3)

    outcomes = await _race(session_factory, [test_user, other_user], test_game, day, callers=4)

    assert outcomes.count("ok") == 1
    assert outcomes.count("full") == 3
    assert await _active_count(session_factory, test_game.id, day) == 1


@pytest.mark.asyncio
async def test_concurrent_creates_fill_stock_exactly(
    session_factory, make_game, test_user, other_user
):
    game = await make_game(stock=2)
    day = dates.today() + timedelta(days=3)

    outcomes = await _race(session_factory, [test_user, other_user], game, day, callers=5)

    assert outcomes.count("ok") == game.stock
    assert outcomes.count("full") == 5 - game.stock
    assert await _active_count(session_factory, game.id, day) == game.stock
