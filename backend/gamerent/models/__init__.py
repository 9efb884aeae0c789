from gamerent.models.user import User
from gamerent.models.game import Game, GameImage, GameRule
from gamerent.models.reservation import Reservation, ReservationSlot, ReservationStatus

__all__ = [
    "User",
    "Game", "GameImage", "GameRule",
    "Reservation", "ReservationSlot", "ReservationStatus",
]
