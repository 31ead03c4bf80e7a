"""Tests for the ReviewSession state machine."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ServiceRequestError

from conftest import FakeContent, FakeProgressStore, make_cards
from studyhub.errors import InvalidQuality, LoadFailure, SessionClosedError
from studyhub.models import SchedulingState
from studyhub.repositories import ProgressRepository
from studyhub.review import ReviewSession


def _session(content, progress_store, clock, **kwargs) -> ReviewSession:
    return ReviewSession("user-1", "topic-1", content, progress_store, clock=clock, **kwargs)


class TestLoading:
    """Tests for the loading transition."""

    def test_initial_state(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock)

        assert session.phase == "loading"
        assert session.queue == ()
        assert session.current_card is None
        assert content.calls == 0

    def test_load_presents_first_card_front(self, content, progress_store, fixed_clock, cards):
        session = _session(content, progress_store, fixed_clock).load()

        assert session.phase == "front"
        assert session.position == 0
        assert session.flipped is False
        assert session.current_card == cards[0]
        assert len(session.queue) == 3
        assert session.remaining == 3

    def test_load_computes_stats_from_all_progress(self, content, fixed_clock):
        store = FakeProgressStore(
            {
                "card-1": SchedulingState(easeFactor=2.6, intervalDays=16, repetitions=3),
                "other-topic-card": SchedulingState(easeFactor=2.2, intervalDays=1, repetitions=1),
            }
        )
        session = _session(content, store, fixed_clock).load()

        assert session.stats.mastered == 1
        assert session.stats.learning == 1
        assert session.stats.new == 1

    def test_content_failure_aborts(self, progress_store, fixed_clock):
        session = _session(FakeContent(make_cards(2), fail=True), progress_store, fixed_clock)

        with pytest.raises(LoadFailure):
            session.load()

        assert session.queue == ()
        assert session.phase == "loading"
        with pytest.raises(SessionClosedError):
            session.rate(4)

    def test_progress_failure_aborts_without_partial_queue(self, content, fixed_clock):
        store = FakeProgressStore()
        store.fail_loads = True
        session = _session(content, store, fixed_clock)

        with pytest.raises(LoadFailure):
            session.load()

        assert session.queue == ()
        assert session.current_card is None

    def test_empty_topic_completes_immediately(self, progress_store, fixed_clock):
        session = _session(FakeContent([]), progress_store, fixed_clock).load()

        assert session.is_complete
        assert session.current_card is None
        with pytest.raises(SessionClosedError):
            session.rate(5)

    def test_load_twice_rejected(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()
        with pytest.raises(SessionClosedError):
            session.load()


class TestFlip:
    """Tests for flipping the current card."""

    def test_flip_toggles_face(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()

        assert session.flip() is True
        assert session.phase == "back"
        assert session.flip() is False
        assert session.phase == "front"

    def test_flip_has_no_scheduling_effect(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()
        session.flip()

        assert progress_store.saves == []
        assert session.position == 0

    def test_flip_before_load_rejected(self, content, progress_store, fixed_clock):
        with pytest.raises(SessionClosedError):
            _session(content, progress_store, fixed_clock).flip()


class TestRating:
    """Tests for rating and queue advancement."""

    def test_rate_from_front_is_accepted(self, content, progress_store, fixed_clock, cards):
        session = _session(content, progress_store, fixed_clock).load()

        outcome = session.rate(4)

        assert outcome.card == cards[0]
        assert outcome.state.repetitions == 1
        assert outcome.state.intervalDays == 1
        assert outcome.state.nextReviewAt == "2025-12-31T09:15:00Z"
        assert session.position == 1
        assert session.current_card == cards[1]

    def test_rate_from_back_resets_flip(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()
        session.flip()

        session.rate(5)

        assert session.flipped is False
        assert session.phase == "front"

    def test_rating_persists_state_keyed_by_user_and_card(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()

        outcome = session.rate(5)

        assert progress_store.saves == [("user-1", "card-1", outcome.state, 5)]

    def test_uses_stored_state_as_prior(self, content, fixed_clock):
        store = FakeProgressStore(
            {"card-1": SchedulingState(easeFactor=2.6, intervalDays=6, repetitions=2)}
        )
        session = _session(content, store, fixed_clock).load()

        outcome = session.rate(4)

        assert outcome.state.intervalDays == 16
        assert outcome.state.repetitions == 3
        assert outcome.state.easeFactor == pytest.approx(2.6)

    def test_n_cards_need_n_ratings(self, progress_store, fixed_clock):
        session = _session(FakeContent(make_cards(5)), progress_store, fixed_clock).load()

        outcomes = [session.rate(q) for q in (0, 2, 4, 5, 4)]

        assert [o.complete for o in outcomes] == [False, False, False, False, True]
        assert session.is_complete
        assert session.reviewed == 5
        assert session.remaining == 0
        assert session.progress_fraction == 1.0
        with pytest.raises(SessionClosedError):
            session.rate(4)
        with pytest.raises(SessionClosedError):
            session.flip()

    def test_rate_grade(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()

        outcome = session.rate_grade("hard")

        assert outcome.quality == 2
        assert outcome.state.repetitions == 0
        assert outcome.state.easeFactor == pytest.approx(2.18)

    @pytest.mark.parametrize("quality", [-1, 6, 2.5, "good"])
    def test_invalid_quality_leaves_session_untouched(self, content, progress_store, fixed_clock, quality):
        session = _session(content, progress_store, fixed_clock).load()
        session.flip()

        with pytest.raises(InvalidQuality):
            session.rate(quality)

        assert session.position == 0
        assert session.phase == "back"
        assert session.flipped is True
        assert session.reviewed == 0
        assert progress_store.saves == []

    def test_unknown_grade_rejected(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()
        with pytest.raises(InvalidQuality):
            session.rate_grade("meh")
        assert session.position == 0

    def test_stats_refreshed_after_each_rating(self, content, fixed_clock):
        store = FakeProgressStore()
        session = _session(content, store, fixed_clock).load()
        loads_after_start = store.load_calls

        session.rate(4)
        assert store.load_calls == loads_after_start + 1
        assert session.stats.learning == 1
        assert session.stats.new == 2

        session.rate(0)
        assert session.stats.learning == 2
        assert session.stats.new == 1

    def test_progress_fraction(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()
        assert session.progress_fraction == pytest.approx(1 / 3)
        session.rate(4)
        assert session.progress_fraction == pytest.approx(2 / 3)

    def test_repeated_easy_crosses_mastery_and_stays(self, fixed_clock):
        store = FakeProgressStore()
        mastered_counts = []
        for _ in range(5):
            session = _session(FakeContent(make_cards(1)), store, fixed_clock).load()
            session.rate(5)
            mastered_counts.append(session.stats.mastered)

        assert mastered_counts == sorted(mastered_counts)
        assert mastered_counts[-1] == 1
        assert mastered_counts[2] == 1  # third consecutive success


class TestPersistenceFailures:
    """Write failures are logged and do not block the queue."""

    def test_failed_write_does_not_block_advancement(self, content, fixed_clock, caplog):
        store = FakeProgressStore()
        store.fail_saves_for = {"card-1"}
        session = _session(content, store, fixed_clock).load()

        with caplog.at_level(logging.WARNING, logger="studyhub.review.session"):
            outcome = session.rate(4)

        assert outcome.complete is False
        assert session.position == 1
        assert session.failed_writes == ["card-1"]
        assert "card-1" not in store.states
        assert any("Progress write failed" in r.getMessage() for r in caplog.records)

    def test_failed_write_falls_back_to_stored_state(self, fixed_clock):
        cards = make_cards(1)
        stored = SchedulingState(easeFactor=2.5, intervalDays=6, repetitions=2)
        store = FakeProgressStore({"card-1": stored})
        store.fail_saves_for = {"card-1"}
        session = _session(FakeContent(cards + cards), store, fixed_clock).load()

        session.rate(5)

        # The computed state was lost, so the duplicate starts from the stored one
        assert session.state_for("card-1") == stored

    def test_successful_write_is_prior_for_duplicate_card(self, fixed_clock):
        cards = make_cards(1)
        store = FakeProgressStore()
        session = _session(FakeContent(cards + cards), store, fixed_clock).load()

        session.rate(5)
        second = session.rate(5)

        assert second.state.repetitions == 2
        assert second.state.intervalDays == 6

    def test_stats_refresh_failure_keeps_previous_stats(self, content, fixed_clock):
        store = FakeProgressStore()
        session = _session(content, store, fixed_clock).load()
        before = session.stats

        store.fail_loads = True
        session.rate(4)

        assert session.stats == before
        assert session.position == 1

    def test_unexpected_write_error_counts_as_failed_write(self, fixed_clock, caplog):
        class BrokenStore(FakeProgressStore):
            def save_progress(self, user_id, card_id, state, quality=None):
                raise RuntimeError("socket closed")

        store = BrokenStore()
        session = _session(FakeContent(make_cards(2)), store, fixed_clock).load()

        with caplog.at_level(logging.ERROR, logger="studyhub.review.session"):
            outcome = session.rate(5)

        assert outcome.complete is False
        assert session.position == 1
        assert session.reviewed == 1
        assert session.failed_writes == ["card-1"]
        assert session.state_for("card-1") == SchedulingState.initial()
        assert any("Unexpected error in progress write" in r.getMessage() for r in caplog.records)

    def test_unreachable_store_does_not_apply_rating_twice(self, fixed_clock):
        container = MagicMock()
        container.query_items.return_value = []
        container.upsert_item.side_effect = ServiceRequestError("Connection refused")
        cards = make_cards(1)
        session = _session(FakeContent(cards + cards), ProgressRepository(container), fixed_clock).load()

        session.rate(5)
        second = session.rate(5)

        assert session.is_complete
        assert session.failed_writes == ["card-1", "card-1"]
        assert second.state.repetitions == 1
        assert second.state.easeFactor == pytest.approx(2.6)

    def test_unexpected_refresh_error_keeps_previous_stats(self, content, fixed_clock):
        store = FakeProgressStore()
        session = _session(content, store, fixed_clock).load()
        before = session.stats

        def _broken_load(user_id):
            raise RuntimeError("decoder crashed")

        store.load_progress = _broken_load
        session.rate(4)

        assert session.stats == before
        assert session.position == 1
        assert "card-1" in store.states


class TestBackgroundWrites:
    """Writes submitted to an executor do not hold up rating."""

    def test_rate_returns_before_write_completes(self, content, fixed_clock):
        release = threading.Event()

        class SlowStore(FakeProgressStore):
            def save_progress(self, user_id, card_id, state, quality=None):
                release.wait(timeout=5)
                super().save_progress(user_id, card_id, state, quality)

        store = SlowStore()
        with ThreadPoolExecutor(max_workers=1) as executor:
            session = _session(content, store, fixed_clock, executor=executor).load()

            outcome = session.rate(4)

            assert outcome.write is not None
            assert session.position == 1
            assert store.saves == []

            release.set()
            assert session.wait_for_writes(timeout=5) is True

        assert [save[1] for save in store.saves] == ["card-1"]
        assert session.stats.learning == 1

    def test_background_unexpected_error_is_recorded(self, content, fixed_clock):
        class BrokenStore(FakeProgressStore):
            def save_progress(self, user_id, card_id, state, quality=None):
                raise ConnectionResetError("peer reset")

        store = BrokenStore()
        with ThreadPoolExecutor(max_workers=1) as executor:
            session = _session(content, store, fixed_clock, executor=executor).load()
            session.rate(4)
            assert session.wait_for_writes(timeout=5) is True

        assert session.position == 1
        assert session.failed_writes == ["card-1"]

    def test_background_failure_is_recorded(self, content, fixed_clock):
        store = FakeProgressStore()
        store.fail_saves_for = {"card-2"}
        with ThreadPoolExecutor(max_workers=2) as executor:
            session = _session(content, store, fixed_clock, executor=executor).load()
            for _ in range(3):
                session.rate(5)
            assert session.wait_for_writes(timeout=5) is True

        assert session.is_complete
        assert session.failed_writes == ["card-2"]
        assert sorted(store.states) == ["card-1", "card-3"]
        assert session.stats.learning == 2


class TestExit:
    """Tests for leaving a session early."""

    def test_exit_discards_session(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()
        session.rate(4)

        session.exit()

        assert session.is_complete
        assert session.current_card is None
        assert len(progress_store.saves) == 1
        with pytest.raises(SessionClosedError):
            session.rate(4)

    def test_exit_is_idempotent(self, content, progress_store, fixed_clock):
        session = _session(content, progress_store, fixed_clock).load()
        session.exit()
        session.exit()
        assert session.is_complete
