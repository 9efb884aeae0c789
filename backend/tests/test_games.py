"""
Tests for the game catalog and availability endpoints.
"""

import pytest
from httpx import AsyncClient

from helpers import days_from_today


@pytest.mark.asyncio
async def test_list_games_only_sellable_ordered_by_name(client: AsyncClient, make_game):
    await make_game(name="Uno", stock=5, price="15.00")
    await make_game(name="Chess", stock=4, price="20.00")
    await make_game(name="Retired", available=False)

    response = await client.get("/api/v1/games/")
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert data["cached"] is False
    assert [g["name"] for g in data["games"]] == ["Chess", "Uno"]


@pytest.mark.asyncio
async def test_list_games_includes_ordered_images_and_rules(client: AsyncClient, test_game):
    response = await client.get("/api/v1/games/")
    game = response.json()["games"][0]
    assert game["images"] == ["/images/catan-1.jpg", "/images/catan-2.jpg"]
    assert game["rules"] == ["Set up the board.", "Roll the dice."]
    assert game["stock"] == 1


@pytest.mark.asyncio
async def test_get_game_detail(client: AsyncClient, test_game):
    response = await client.get(f"/api/v1/games/{test_game.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == test_game.id
    assert data["name"] == "Catan"
    assert data["reserved_dates"] == []


@pytest.mark.asyncio
async def test_get_game_detail_lists_active_reserved_dates(
    client: AsyncClient, make_game, auth_headers
):
    game = await make_game(stock=3)
    later, sooner = days_from_today(10), days_from_today(3)

    for day in (later, sooner, later):
        response = await client.post(
            "/api/v1/reservations/",
            json={"game_id": game.id, "reservation_date": day},
            headers=auth_headers,
        )
        assert response.status_code == 201

    cancelled_day = days_from_today(20)
    response = await client.post(
        "/api/v1/reservations/",
        json={"game_id": game.id, "reservation_date": cancelled_day},
        headers=auth_headers,
    )
    await client.delete(f"/api/v1/reservations/{response.json()['id']}", headers=auth_headers)

    response = await client.get(f"/api/v1/games/{game.id}")
    assert response.json()["reserved_dates"] == [sooner, later]


@pytest.mark.asyncio
async def test_get_unavailable_game_detail_still_visible(client: AsyncClient, make_game):
    game = await make_game(name="Retired", available=False)
    response = await client.get(f"/api/v1/games/{game.id}")
    assert response.status_code == 200
    assert response.json()["available"] is False


@pytest.mark.asyncio
async def test_get_game_not_found(client: AsyncClient):
    response = await client.get("/api/v1/games/9999")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_availability_for_free_date(client: AsyncClient, make_game):
    game = await make_game(stock=2)
    day = days_from_today(7)

    response = await client.get(f"/api/v1/games/{game.id}/availability", params={"date": day})
    assert response.status_code == 200
    assert response.json() == {
        "game_id": game.id,
        "date": day,
        "available": True,
        "total_stock": 2,
        "reserved_count": 0,
        "available_stock": 2,
    }


@pytest.mark.asyncio
async def test_availability_counts_active_reservations(
    client: AsyncClient, make_game, auth_headers
):
    game = await make_game(stock=2)
    day = days_from_today(7)
    await client.post(
        "/api/v1/reservations/",
        json={"game_id": game.id, "reservation_date": day},
        headers=auth_headers,
    )

    response = await client.get(f"/api/v1/games/{game.id}/availability", params={"date": day})
    data = response.json()
    assert data["available"] is True
    assert data["reserved_count"] == 1
    assert data["available_stock"] == 1


@pytest.mark.asyncio
async def test_availability_past_date_is_unavailable(client: AsyncClient, test_game):
    response = await client.get(
        f"/api/v1/games/{test_game.id}/availability",
        params={"date": days_from_today(-1)},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["available"] is False
    assert data["available_stock"] == 1


@pytest.mark.asyncio
async def test_availability_ignores_time_of_day(client: AsyncClient, test_game):
    day = days_from_today(5)
    response = await client.get(
        f"/api/v1/games/{test_game.id}/availability",
        params={"date": f"{day}T23:30:00+05:00"},
    )
    assert response.status_code == 200
    assert response.json()["date"] == day


@pytest.mark.asyncio
async def test_availability_unsellable_game(client: AsyncClient, make_game):
    game = await make_game(name="Retired", available=False)
    response = await client.get(
        f"/api/v1/games/{game.id}/availability",
        params={"date": days_from_today(5)},
    )
    assert response.status_code == 200
    assert response.json()["available"] is False


@pytest.mark.asyncio
async def test_availability_unknown_game(client: AsyncClient):
    response = await client.get(
        "/api/v1/games/9999/availability",
        params={"date": days_from_today(1)},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_availability_invalid_date(client: AsyncClient, test_game):
    response = await client.get(
        f"/api/v1/games/{test_game.id}/availability",
        params={"date": "next tuesday"},
    )
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"
