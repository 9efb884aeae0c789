"""Shared helpers for building request payloads."""

from datetime import timedelta

from gamerent.core import dates


def days_from_today(days: int) -> str:
    """ISO date `days` away from today in the configured timezone."""
    return (dates.today() + timedelta(days=days)).isoformat()
