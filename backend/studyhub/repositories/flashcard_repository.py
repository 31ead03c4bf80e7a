"""Repository for reading topic flashcards."""

import logging

from azure.cosmos import ContainerProxy
from azure.core.exceptions import AzureError
from pydantic import ValidationError

from studyhub.db import get_flashcard_sets_container
from studyhub.errors import LoadFailure
from studyhub.models import Flashcard, FlashcardSet

logger = logging.getLogger(__name__)


class FlashcardRepository:
    """Read-only access to flashcard sets and their cards."""

    def __init__(self, container: ContainerProxy | None = None):
        self._container = container

    @property
    def container(self) -> ContainerProxy:
        """Get the container, lazily initializing if needed."""
        if self._container is None:
            self._container = get_flashcard_sets_container()
        return self._container

    def list_active_sets(self, topic_id: str) -> list[FlashcardSet]:
        """List the active flashcard sets of a topic.

        Raises:
            LoadFailure: If the query fails or a document is malformed.
        """
        query = "SELECT * FROM c WHERE c.topicId = @topicId AND c.isActive = true"
        parameters = [{"name": "@topicId", "value": topic_id}]

        try:
            items = list(
                self.container.query_items(
                    query=query,
                    parameters=parameters,
                    partition_key=topic_id,
                )
            )
            return [FlashcardSet(**item) for item in items]
        except AzureError as exc:
            # Covers HTTP errors and connection-level failures alike
            raise LoadFailure(f"Failed to load flashcards for topic {topic_id}: {exc.message}") from exc
        except ValidationError as exc:
            raise LoadFailure(f"Malformed flashcard set in topic {topic_id}") from exc

    def load_cards_for_topic(self, topic_id: str) -> list[Flashcard]:
        """Return every card of the topic's active sets, flattened in set order."""
        sets = self.list_active_sets(topic_id)
        cards = [card for card_set in sets for card in card_set.flashcards]
        logger.debug("Loaded %d cards from %d sets for topic %s", len(cards), len(sets), topic_id)
        return cards


_flashcard_repository: FlashcardRepository | None = None


def get_flashcard_repository() -> FlashcardRepository:
    global _flashcard_repository
    if _flashcard_repository is None:
        _flashcard_repository = FlashcardRepository()
    return _flashcard_repository
