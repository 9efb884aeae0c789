"""
User profile with reservation statistics.
"""

from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gamerent.models.reservation import Reservation, ReservationStatus
from gamerent.models.user import User
from gamerent.schemas.user import ReservationStats


def _count_status(value: ReservationStatus):
    return func.coalesce(func.sum(case((Reservation.status == value.value, 1), else_=0)), 0)


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


async def get_reservation_stats(db: AsyncSession, user_id: int) -> ReservationStats:
    """Aggregate reservation counts and spend in a single query."""
    row = (
        await db.execute(
            select(
                func.count(Reservation.id).label("total"),
                _count_status(ReservationStatus.ACTIVE).label("active"),
                _count_status(ReservationStatus.COMPLETED).label("completed"),
                _count_status(ReservationStatus.CANCELLED).label("cancelled"),
                func.coalesce(func.sum(Reservation.total_price), 0).label("spent"),
            ).where(Reservation.user_id == user_id)
        )
    ).one()

    return ReservationStats(
        total_reservations=row.total,
        active_reservations=row.active,
        completed_reservations=row.completed,
        cancelled_reservations=row.cancelled,
        total_spent=Decimal(str(row.spent)).quantize(Decimal("0.01")),
    )
