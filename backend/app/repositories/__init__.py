"""Repository abstractions for database interactions."""

from .bet_repository import BetRepository

__all__ = ["BetRepository"]
