"""Review sessions: the card queue state machine and its in-memory store."""

from .session import ContentSource, ProgressStore, RatingOutcome, ReviewSession
from .session_store import (
    SessionStore,
    get_session_store,
    reset_session_store,
    get_write_executor,
    shutdown_write_executor,
)

__all__ = [
    "ContentSource",
    "ProgressStore",
    "RatingOutcome",
    "ReviewSession",
    "SessionStore",
    "get_session_store",
    "reset_session_store",
    "get_write_executor",
    "shutdown_write_executor",
]
