"""Flashcard review API router."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from studyhub.auth import CurrentUser, get_current_user
from studyhub.errors import InvalidQuality, LoadFailure, SessionClosedError
from studyhub.models import RateRequest, RateResponse, ReviewSessionResponse, ReviewStats
from studyhub.repositories import get_flashcard_repository, get_progress_repository
from studyhub.review import ReviewSession, get_session_store, get_write_executor
from studyhub.srs.grading import quality_for_grade
from studyhub.srs.stats import compute_stats

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/flashcards", tags=["flashcards"])


def _session_response(session: ReviewSession) -> ReviewSessionResponse:
    return ReviewSessionResponse(
        topicId=session.topic_id,
        phase=session.phase,
        position=session.position,
        total=len(session.queue),
        reviewed=session.reviewed,
        flipped=session.flipped,
        progress=session.progress_fraction,
        card=session.current_card,
        stats=session.stats,
        failedWrites=list(session.failed_writes),
    )


def _get_session_or_404(user_id: str, topic_id: str) -> ReviewSession:
    session = get_session_store().get(user_id, topic_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No review session for topic {topic_id}",
        )
    return session


@router.get("/stats", response_model=ReviewStats)
async def get_stats(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    totalCards: Annotated[int, Query(ge=0)] = 0,
) -> ReviewStats:
    """Mastered / learning / new counts over all of the user's progress."""
    try:
        progress = get_progress_repository().load_progress(user.user_id)
    except LoadFailure as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return compute_stats(progress, totalCards)


@router.post("/{topic_id}/session", response_model=ReviewSessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(
    topic_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> ReviewSessionResponse:
    """Open a topic's flashcards, replacing any session already in progress."""
    session = ReviewSession(
        user.user_id,
        topic_id,
        get_flashcard_repository(),
        get_progress_repository(),
        executor=get_write_executor(),
    )
    try:
        session.load()
    except LoadFailure as e:
        logger.warning("Review session load failed: user=%s, topic=%s: %s", user.user_id, topic_id, e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    store = get_session_store()
    if session.is_complete:
        # Nothing to review; don't keep an empty session around
        store.reset(user.user_id, topic_id)
    else:
        store.put(session)
    return _session_response(session)


@router.get("/{topic_id}/session", response_model=ReviewSessionResponse)
async def get_session(
    topic_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> ReviewSessionResponse:
    """Return the current state of the user's session for a topic."""
    return _session_response(_get_session_or_404(user.user_id, topic_id))


@router.post("/{topic_id}/session/flip", response_model=ReviewSessionResponse)
async def flip_card(
    topic_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> ReviewSessionResponse:
    """Turn the current card over."""
    session = _get_session_or_404(user.user_id, topic_id)
    try:
        session.flip()
    except SessionClosedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _session_response(session)


@router.post("/{topic_id}/session/rate", response_model=RateResponse)
async def rate_card(
    topic_id: str,
    req: RateRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> RateResponse:
    """Rate the current card and move to the next one."""
    session = _get_session_or_404(user.user_id, topic_id)
    try:
        quality = quality_for_grade(req.grade) if req.grade is not None else req.quality
        outcome = session.rate(quality)
    except InvalidQuality as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except SessionClosedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if outcome.complete:
        get_session_store().reset(user.user_id, topic_id)

    return RateResponse(
        cardId=outcome.card.id,
        quality=outcome.quality,
        state=outcome.state,
        session=_session_response(session),
    )


@router.delete("/{topic_id}/session", status_code=status.HTTP_204_NO_CONTENT)
async def exit_session(
    topic_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> None:
    """Leave the review early. Ratings already given stay recorded."""
    session = _get_session_or_404(user.user_id, topic_id)
    session.exit()
    get_session_store().reset(user.user_id, topic_id)
