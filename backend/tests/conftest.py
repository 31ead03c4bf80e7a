"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest

from studyhub.errors import LoadFailure, PersistenceFailure
from studyhub.models import Flashcard, SchedulingState


FIXED_NOW = datetime(2025, 12, 30, 9, 15, 0, tzinfo=timezone.utc)


class FakeContent:
    """In-memory ContentSource."""

    def __init__(self, cards: list[Flashcard] | None = None, fail: bool = False):
        self.cards = list(cards or [])
        self.fail = fail
        self.calls = 0

    def load_cards_for_topic(self, topic_id: str) -> list[Flashcard]:
        self.calls += 1
        if self.fail:
            raise LoadFailure(f"content backend unavailable for {topic_id}")
        return list(self.cards)


class FakeProgressStore:
    """In-memory ProgressStore with switchable failures."""

    def __init__(self, states: dict[str, SchedulingState] | None = None):
        self.states: dict[str, SchedulingState] = dict(states or {})
        self.saves: list[tuple[str, str, SchedulingState, int | None]] = []
        self.load_calls = 0
        self.fail_loads = False
        self.fail_saves_for: set[str] = set()

    def load_progress(self, user_id: str) -> dict[str, SchedulingState]:
        self.load_calls += 1
        if self.fail_loads:
            raise LoadFailure(f"progress backend unavailable for {user_id}")
        return dict(self.states)

    def save_progress(self, user_id, card_id, state, quality=None) -> None:
        if card_id in self.fail_saves_for:
            raise PersistenceFailure(f"write rejected for {card_id}")
        self.saves.append((user_id, card_id, state, quality))
        self.states[card_id] = state


def make_cards(n: int) -> list[Flashcard]:
    return [
        Flashcard(id=f"card-{i}", frontText=f"Question {i}", backText=f"Answer {i}")
        for i in range(1, n + 1)
    ]


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def cards():
    return make_cards(3)


@pytest.fixture
def content(cards):
    return FakeContent(cards)


@pytest.fixture
def progress_store():
    return FakeProgressStore()
