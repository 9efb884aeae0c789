from gamerent.schemas.user import (
    UserCreate, UserResponse, UserLogin, Token, AuthResponse,
    TokenVerifyRequest, TokenVerifyResponse, UserProfileResponse, ReservationStats,
)
from gamerent.schemas.game import (
    GameSummary, GameResponse, GameDetailResponse, GameListResponse, AvailabilityResponse,
)
from gamerent.schemas.reservation import (
    ReservationCreate, ReservationUpdate, ReservationResponse,
    ReservationWithGameResponse, ReservationCancelResponse,
)

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token", "AuthResponse",
    "TokenVerifyRequest", "TokenVerifyResponse", "UserProfileResponse", "ReservationStats",
    "GameSummary", "GameResponse", "GameDetailResponse", "GameListResponse", "AvailabilityResponse",
    "ReservationCreate", "ReservationUpdate", "ReservationResponse",
    "ReservationWithGameResponse", "ReservationCancelResponse",
]
