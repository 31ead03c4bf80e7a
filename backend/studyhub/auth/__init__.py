"""Caller identity for the API."""

from .dependencies import get_current_user, CurrentUser

__all__ = [
    "get_current_user",
    "CurrentUser",
]
