"""
User profile endpoint.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gamerent.core.security import get_current_user_id
from gamerent.db.session import get_db
from gamerent.schemas.user import UserProfileResponse, UserResponse
from gamerent.services.user_service import get_reservation_stats, get_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile", response_model=UserProfileResponse)
async def get_profile(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """The authenticated user with reservation counts and total spent."""
    user = await get_user(db, user_id)
    stats = await get_reservation_stats(db, user_id)
    return UserProfileResponse(
        **UserResponse.model_validate(user).model_dump(),
        phone=user.phone,
        stats=stats,
    )
