"""
Authentication endpoints: register, login and token verification.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gamerent.db.session import get_db
from gamerent.schemas.user import (
    AuthResponse,
    TokenVerifyRequest,
    TokenVerifyResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from gamerent.services.auth_service import authenticate_user, register_user, verify_token

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new account. The response already carries an access token."""
    user, token = await register_user(db, user_data)
    return AuthResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate with email or username and receive a JWT access token."""
    user, token = await authenticate_user(db, login_data)
    return AuthResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/verify", response_model=TokenVerifyResponse)
async def verify(payload: TokenVerifyRequest, db: AsyncSession = Depends(get_db)):
    """Check a token and return the user it belongs to."""
    user = await verify_token(db, payload.token)
    return TokenVerifyResponse(valid=True, user=UserResponse.model_validate(user))
