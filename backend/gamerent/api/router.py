"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from gamerent.api.routes import auth, games, reservations, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(games.router)
api_router.include_router(reservations.router)
api_router.include_router(users.router)
