"""
Domain errors raised by the catalog, availability and reservation services.

Every failure a caller can act on has its own class so it stays
distinguishable all the way to the API layer. Each class carries a stable
machine-readable `code` and the HTTP status the exception handler in
`gamerent.main` answers with.
"""

from fastapi import status


class GameRentError(Exception):
    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(GameRentError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class GameNotFoundError(NotFoundError):
    def __init__(self, game_id: int):
        super().__init__(f"Game {game_id} not found", game_id=game_id)


class ReservationNotFoundError(NotFoundError):
    def __init__(self, reservation_id: int):
        super().__init__(f"Reservation {reservation_id} not found", reservation_id=reservation_id)


class ForbiddenError(GameRentError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class GameUnavailableError(GameRentError):
    code = "game_unavailable"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, game_id: int):
        super().__init__(f"Game {game_id} is not available for rental", game_id=game_id)


class InvalidDateError(GameRentError):
    code = "invalid_date"
    status_code = status.HTTP_400_BAD_REQUEST


class DateFullyBookedError(GameRentError):
    code = "date_fully_booked"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, game_id: int, day):
        super().__init__(
            f"Game {game_id} is fully booked on {day.isoformat()}",
            game_id=game_id,
            date=day.isoformat(),
        )


class InvalidTransitionError(GameRentError):
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class AlreadyCancelledError(GameRentError):
    code = "already_cancelled"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reservation_id: int):
        super().__init__(
            f"Reservation {reservation_id} is already cancelled",
            reservation_id=reservation_id,
        )


class ValidationError(GameRentError):
    code = "validation_error"
    status_code = 422
