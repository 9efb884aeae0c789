"""
Reservation endpoints. Every route acts on behalf of the authenticated user,
whose id is passed to the service explicitly.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from gamerent.core.security import get_current_user_id
from gamerent.db.session import get_db
from gamerent.models.reservation import ReservationStatus
from gamerent.schemas.reservation import (
    ReservationCancelResponse,
    ReservationCreate,
    ReservationResponse,
    ReservationUpdate,
    ReservationWithGameResponse,
)
from gamerent.services.reservation_service import (
    cancel_reservation,
    create_reservation,
    get_reservation,
    list_reservations,
    update_reservation,
)

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.get("/", response_model=list[ReservationWithGameResponse])
async def list_user_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """The caller's reservations, most future date first."""
    return await list_reservations(db, user_id, status_filter)


@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation_endpoint(
    reservation_data: ReservationCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserve one copy of a game for a date.

    The remaining stock for that date is re-checked atomically, so two
    requests racing for the last copy cannot both succeed; the loser gets
    a 409 `date_fully_booked`.
    """
    return await create_reservation(
        db,
        user_id=user_id,
        game_id=reservation_data.game_id,
        reservation_date=reservation_data.reservation_date,
        return_date=reservation_data.return_date,
        notes=reservation_data.notes,
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation_endpoint(
    reservation_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await get_reservation(db, reservation_id, user_id)


@router.patch("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation_endpoint(
    reservation_id: int,
    patch: ReservationUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Change date, return date, notes or status. Absent fields keep their value."""
    return await update_reservation(db, reservation_id, user_id, patch.to_patch())


@router.delete("/{reservation_id}", response_model=ReservationCancelResponse)
async def cancel_reservation_endpoint(
    reservation_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a reservation. The record is kept with status `cancelled`."""
    reservation = await cancel_reservation(db, reservation_id, user_id)
    return ReservationCancelResponse(
        message="Reservation cancelled successfully",
        reservation_id=reservation.id,
        status=reservation.status,
    )
