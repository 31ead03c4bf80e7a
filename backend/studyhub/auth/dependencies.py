"""FastAPI dependency resolving the calling user.

Identity is established upstream (the API gateway validates the session and
forwards the user ID in the X-User-Id header).
"""

from typing import Annotated

from fastapi import Header, HTTPException, status
from pydantic import BaseModel


class CurrentUser(BaseModel):
    """The user on whose behalf progress is read and written."""

    user_id: str


async def get_current_user(
    x_user_id: Annotated[str | None, Header(description="Authenticated user ID")] = None,
) -> CurrentUser:
    """Return the caller, or 401 when no user ID was forwarded."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return CurrentUser(user_id=x_user_id.strip())
