"""Application settings loaded from environment variables."""

import os
from functools import lru_cache

from pydantic import BaseModel


class AppSettings(BaseModel):
    """Settings for the review service."""

    session_ttl_seconds: int = 30 * 60
    max_sessions: int = 10000
    write_workers: int = 4
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:8081", "http://localhost:19006"]


@lru_cache()
def get_app_settings() -> AppSettings:
    """Get cached application settings from environment variables."""
    cors = os.getenv("CORS_ORIGINS", "http://localhost:8081,http://localhost:19006")

    return AppSettings(
        session_ttl_seconds=int(os.getenv("REVIEW_SESSION_TTL_SECONDS", str(30 * 60))),
        max_sessions=int(os.getenv("REVIEW_MAX_SESSIONS", "10000")),
        write_workers=int(os.getenv("REVIEW_WRITE_WORKERS", "4")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=[origin.strip() for origin in cors.split(",") if origin.strip()],
    )
