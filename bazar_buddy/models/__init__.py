"""Database models for Bazar Buddy."""

from .user import User, AuthSession, PasswordResetToken
from .grocery import GroceryList, GroceryItem, Unit, MONTHS

__all__ = [
    "User",
    "AuthSession",
    "PasswordResetToken",
    "GroceryList",
    "GroceryItem",
    "Unit",
    "MONTHS",
]
