"""API routers module."""

from .flashcards import router as flashcards_router

__all__ = [
    "flashcards_router",
]
