"""TTL-based store for in-flight review sessions, plus the shared write executor."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from cachetools import TTLCache

from studyhub.config import get_app_settings

from .session import ReviewSession

logger = logging.getLogger(__name__)


class SessionStore:
    """Thread-safe TTL-based session store.

    Stores ReviewSession keyed by (user_id, topic_id). Sessions expire after
    TTL seconds of inactivity (sliding window); nothing about a session is
    persisted, so expiry is the same as the user walking away.
    """

    DEFAULT_TTL_SECONDS = 30 * 60
    MAX_SESSIONS = 10000

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, maxsize: int = MAX_SESSIONS):
        self._cache: TTLCache[tuple[str, str], ReviewSession] = TTLCache(
            maxsize=maxsize, ttl=ttl_seconds
        )
        self._lock = threading.Lock()

    def _make_key(self, user_id: str, topic_id: str) -> tuple[str, str]:
        return (user_id, topic_id)

    def get(self, user_id: str, topic_id: str) -> ReviewSession | None:
        """Get the session for a user and topic, refreshing its TTL.

        Returns None if no session exists or it has expired.
        """
        key = self._make_key(user_id, topic_id)
        with self._lock:
            session = self._cache.get(key)
            if session is not None:
                self._cache[key] = session
            return session

    def put(self, session: ReviewSession) -> None:
        """Store a session, replacing (and exiting) any previous one for the same topic."""
        key = self._make_key(session.user_id, session.topic_id)
        with self._lock:
            previous = self._cache.get(key)
            self._cache[key] = session
        if previous is not None and previous is not session:
            previous.exit()

    def reset(self, user_id: str, topic_id: str) -> None:
        """Remove the session for a user and topic."""
        key = self._make_key(user_id, topic_id)
        with self._lock:
            self._cache.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self) -> None:
        """Clear all sessions (for testing)."""
        with self._lock:
            self._cache.clear()


_session_store: SessionStore | None = None
_write_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def get_session_store() -> SessionStore:
    """Get the singleton session store instance."""
    global _session_store
    if _session_store is None:
        settings = get_app_settings()
        _session_store = SessionStore(
            ttl_seconds=settings.session_ttl_seconds,
            maxsize=settings.max_sessions,
        )
    return _session_store


def reset_session_store() -> None:
    """Reset the session store (for testing)."""
    global _session_store
    _session_store = None


def get_write_executor() -> ThreadPoolExecutor:
    """Get the executor that runs progress writes off the request path."""
    global _write_executor
    with _executor_lock:
        if _write_executor is None:
            workers = get_app_settings().write_workers
            _write_executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="progress-write")
            logger.info("Started progress write executor with %d workers", workers)
        return _write_executor


def shutdown_write_executor(wait: bool = True) -> None:
    """Stop the write executor, letting queued writes finish when wait is True."""
    global _write_executor
    with _executor_lock:
        executor, _write_executor = _write_executor, None
    if executor is not None:
        executor.shutdown(wait=wait)
