"""Review session state machine for a topic's flashcards.

A session moves loading -> front <-> back -> front (next card) -> ... -> complete.
Ratings are accepted whether or not the card was flipped; the flip is cosmetic.

Progress writes are optimistic: the queue advances without waiting for the
write, and a failed write is logged and recorded in `failed_writes` rather
than blocking the user.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, wait
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from studyhub.errors import LoadFailure, PersistenceFailure, SessionClosedError
from studyhub.models import Flashcard, ReviewStats, SchedulingState, SessionPhase, state_for
from studyhub.srs.grading import quality_for_grade
from studyhub.srs.sm2 import schedule_review, validate_quality
from studyhub.srs.stats import compute_stats
from studyhub.srs.time import utc_now

logger = logging.getLogger(__name__)


class ContentSource(Protocol):
    def load_cards_for_topic(self, topic_id: str) -> list[Flashcard]:
        """Return the topic's active cards in a stable order. Raises LoadFailure."""
        ...


class ProgressStore(Protocol):
    def load_progress(self, user_id: str) -> dict[str, SchedulingState]:
        """Return the user's states keyed by card ID. Raises LoadFailure."""
        ...

    def save_progress(
        self,
        user_id: str,
        card_id: str,
        state: SchedulingState,
        quality: int | None = None,
    ) -> None:
        """Persist one card's state. Raises PersistenceFailure."""
        ...


@dataclass(frozen=True)
class RatingOutcome:
    """What a single rating produced."""

    card: Flashcard
    quality: int
    state: SchedulingState
    complete: bool
    write: Future | None = None


class ReviewSession:
    """Sequences one topic's cards and schedules each rating.

    Collaborators are injected so the session can run against Cosmos-backed
    repositories or in-memory fakes. When an executor is given, progress
    writes run on it and rate() returns without waiting for them.
    """

    def __init__(
        self,
        user_id: str,
        topic_id: str,
        content: ContentSource,
        progress: ProgressStore,
        *,
        executor: Executor | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.user_id = user_id
        self.topic_id = topic_id
        self._content = content
        self._progress_store = progress
        self._executor = executor
        self._clock = clock

        self.queue: tuple[Flashcard, ...] = ()
        self.position = 0
        self.flipped = False
        self.phase: SessionPhase = "loading"
        self.reviewed = 0
        self.failed_writes: list[str] = []

        self._lock = threading.Lock()
        self._stats = ReviewStats()
        self._stored: dict[str, SchedulingState] = {}
        # States computed by this session, used ahead of _stored until the store catches up
        self._rated: dict[str, SchedulingState] = {}
        self._pending: list[Future] = []
        self._read_seq = 0
        self._applied_seq = 0

    # -- views ---------------------------------------------------------------

    @property
    def stats(self) -> ReviewStats:
        with self._lock:
            return self._stats

    @property
    def is_complete(self) -> bool:
        return self.phase == "complete"

    @property
    def is_presenting(self) -> bool:
        return self.phase in ("front", "back")

    @property
    def current_card(self) -> Flashcard | None:
        if not self.is_presenting:
            return None
        return self.queue[self.position]

    @property
    def remaining(self) -> int:
        """Cards still to be rated, including the current one."""
        if not self.is_presenting:
            return 0
        return len(self.queue) - self.position

    @property
    def progress_fraction(self) -> float:
        if self.is_complete:
            return 1.0
        if not self.queue:
            return 0.0
        return (self.position + 1) / len(self.queue)

    def state_for(self, card_id: str) -> SchedulingState:
        """Scheduling state the next rating of card_id would start from."""
        with self._lock:
            state = self._rated.get(card_id)
            if state is not None:
                return state
            return state_for(self._stored, card_id)

    # -- transitions ---------------------------------------------------------

    def load(self) -> "ReviewSession":
        """Fetch the topic's cards and the user's progress, then present the first card.

        An empty topic completes immediately.

        Raises:
            LoadFailure: If either fetch fails; the session is left unusable.
            SessionClosedError: If the session was already loaded.
        """
        if self.phase != "loading" or self.queue:
            raise SessionClosedError("Session has already been loaded")

        cards = self._content.load_cards_for_topic(self.topic_id)
        stored = self._progress_store.load_progress(self.user_id)

        with self._lock:
            self.queue = tuple(cards)
            self._stored = dict(stored)
            self._stats = compute_stats(self._stored, len(self.queue))

        self.position = 0
        self.flipped = False
        self.phase = "front" if self.queue else "complete"

        logger.info(
            "Review session loaded: user=%s, topic=%s, cards=%d, stats=%s",
            self.user_id,
            self.topic_id,
            len(self.queue),
            self._stats.model_dump(),
        )
        return self

    def flip(self) -> bool:
        """Toggle between the front and back face. Returns the new flipped value."""
        self._require_presenting()
        self.flipped = not self.flipped
        self.phase = "back" if self.flipped else "front"
        return self.flipped

    def rate(self, quality: int) -> RatingOutcome:
        """Schedule the current card with quality and advance the queue.

        Raises:
            InvalidQuality: If quality is not an integer in 0-5 (nothing changes).
            SessionClosedError: If no card is being presented.
        """
        validate_quality(quality)
        self._require_presenting()

        card = self.queue[self.position]
        prior = self.state_for(card.id)
        new_state = schedule_review(prior, quality, self._clock())
        with self._lock:
            self._rated[card.id] = new_state

        logger.info(
            "Card rated: user=%s, topic=%s, card=%s, quality=%d, interval=%d, reps=%d, ef=%.2f, next=%s",
            self.user_id,
            self.topic_id,
            card.id,
            quality,
            new_state.intervalDays,
            new_state.repetitions,
            new_state.easeFactor,
            new_state.nextReviewAt,
        )

        # The queue moves on before the write is attempted
        self.reviewed += 1
        self._advance()
        write = self._submit_write(card.id, new_state, quality)

        return RatingOutcome(
            card=card,
            quality=quality,
            state=new_state,
            complete=self.is_complete,
            write=write,
        )

    def rate_grade(self, grade: str) -> RatingOutcome:
        """Rate with one of the again/hard/good/easy buttons."""
        return self.rate(quality_for_grade(grade))

    def exit(self) -> None:
        """Stop reviewing; writes already submitted are left to finish."""
        if self.phase != "complete":
            logger.info(
                "Review session exited: user=%s, topic=%s, reviewed=%d/%d",
                self.user_id,
                self.topic_id,
                self.reviewed,
                len(self.queue),
            )
        self.phase = "complete"
        self.flipped = False

    def refresh_stats(self) -> ReviewStats:
        """Re-read the user's full progress and recompute stats.

        Any failed read is logged and the previous stats are kept.
        """
        with self._lock:
            self._read_seq += 1
            seq = self._read_seq

        try:
            stored = self._progress_store.load_progress(self.user_id)
        except LoadFailure as exc:
            logger.warning("Stats refresh failed: user=%s, topic=%s: %s", self.user_id, self.topic_id, exc)
            return self.stats
        except Exception:
            logger.exception("Unexpected error refreshing stats: user=%s, topic=%s", self.user_id, self.topic_id)
            return self.stats

        stats = compute_stats(stored, len(self.queue))
        with self._lock:
            # A slower, older read must not overwrite a newer one
            if seq > self._applied_seq:
                self._applied_seq = seq
                self._stored = dict(stored)
                self._stats = stats
            return self._stats

    def wait_for_writes(self, timeout: float | None = None) -> bool:
        """Block until submitted writes finish. Returns False on timeout."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        with self._lock:
            self._pending = [future for future in self._pending if not future.done()]
        return not not_done

    # -- internals -----------------------------------------------------------

    def _require_presenting(self) -> None:
        if self.phase == "loading":
            raise SessionClosedError("Session has not been loaded")
        if self.phase == "complete":
            raise SessionClosedError("Session is complete")

    def _advance(self) -> None:
        self.flipped = False
        if self.position >= len(self.queue) - 1:
            self.phase = "complete"
            logger.info(
                "Review session complete: user=%s, topic=%s, reviewed=%d, failed_writes=%d",
                self.user_id,
                self.topic_id,
                self.reviewed,
                len(self.failed_writes),
            )
        else:
            self.position += 1
            self.phase = "front"

    def _submit_write(self, card_id: str, state: SchedulingState, quality: int) -> Future | None:
        if self._executor is None:
            self._persist(card_id, state, quality)
            return None

        future = self._executor.submit(self._persist, card_id, state, quality)
        future.add_done_callback(self._log_write_crash)
        with self._lock:
            self._pending.append(future)
        return future

    def _persist(self, card_id: str, state: SchedulingState, quality: int) -> None:
        try:
            self._progress_store.save_progress(self.user_id, card_id, state, quality)
        except PersistenceFailure as exc:
            logger.warning(
                "Progress write failed: user=%s, topic=%s, card=%s: %s",
                self.user_id,
                self.topic_id,
                card_id,
                exc,
            )
            self._drop_failed_write(card_id, state)
        except Exception:
            logger.exception(
                "Unexpected error in progress write: user=%s, topic=%s, card=%s",
                self.user_id,
                self.topic_id,
                card_id,
            )
            self._drop_failed_write(card_id, state)

        self.refresh_stats()

    def _drop_failed_write(self, card_id: str, state: SchedulingState) -> None:
        with self._lock:
            self.failed_writes.append(card_id)
            if self._rated.get(card_id) is state:
                del self._rated[card_id]

    def _log_write_crash(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Unexpected error in progress write: user=%s, topic=%s",
                self.user_id,
                self.topic_id,
                exc_info=exc,
            )
