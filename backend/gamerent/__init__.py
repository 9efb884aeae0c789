"""GameRent: board and card game rental API."""

__version__ = "1.0.0"
