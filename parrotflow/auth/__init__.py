"""Caller resolution for API routes."""

from .dependencies import get_current_user
from .models import User
from .security import TokenManager, token_manager

__all__ = [
    "get_current_user",
    "User",
    "TokenManager",
    "token_manager",
]
