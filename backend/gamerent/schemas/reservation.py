"""
Pydantic schemas for reservation request/response validation.

Date fields accept either a calendar date or an ISO datetime; anything with a
time component is reduced to its calendar date before it reaches the
services.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from gamerent.core.dates import normalize_date
from gamerent.models.reservation import ReservationStatus
from gamerent.schemas.game import GameSummary


def _to_calendar_date(value):
    if value is None:
        return None
    return normalize_date(value)


class ReservationCreate(BaseModel):
    game_id: int = Field(..., ge=1)
    reservation_date: date
    return_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("reservation_date", "return_date", mode="before")
    @classmethod
    def calendar_dates(cls, value):
        return _to_calendar_date(value)


class ReservationUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""

    reservation_date: Optional[date] = None
    return_date: Optional[date] = None
    status: Optional[ReservationStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("reservation_date", "return_date", mode="before")
    @classmethod
    def calendar_dates(cls, value):
        return _to_calendar_date(value)

    def to_patch(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ReservationResponse(BaseModel):
    id: int
    user_id: int
    game_id: int
    reservation_date: date
    return_date: Optional[date]
    status: ReservationStatus
    total_price: Decimal
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReservationWithGameResponse(ReservationResponse):
    game: Optional[GameSummary] = None


class ReservationCancelResponse(BaseModel):
    message: str
    reservation_id: int
    status: ReservationStatus
