"""
Pydantic schemas for the game catalog and availability responses.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator


class GameSummary(BaseModel):
    id: int
    name: str
    category: str
    price: Decimal

    model_config = {"from_attributes": True}


class GameResponse(GameSummary):
    summary: Optional[str] = None
    description: Optional[str] = None
    how_to_play: Optional[str] = None
    players: Optional[str] = None
    duration: Optional[str] = None
    stock: int
    available: bool
    images: list[str] = []
    rules: list[str] = []

    @field_validator("images", mode="before")
    @classmethod
    def image_urls_from_rows(cls, value):
        return [getattr(item, "image_url", item) for item in value or []]

    @field_validator("rules", mode="before")
    @classmethod
    def rule_texts_from_rows(cls, value):
        return [getattr(item, "rule_text", item) for item in value or []]


class GameDetailResponse(GameResponse):
    # Dates already holding at least one active reservation, for the calendar
    reserved_dates: list[date] = []


class GameListResponse(BaseModel):
    games: list[GameResponse]
    count: int
    cached: bool = False


class AvailabilityResponse(BaseModel):
    game_id: int
    date: date
    available: bool
    total_stock: int
    reserved_count: int
    available_stock: int

    model_config = {"from_attributes": True}
