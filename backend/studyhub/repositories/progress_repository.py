"""Repository for per-user review progress."""

import logging

from azure.cosmos import ContainerProxy
from azure.core.exceptions import AzureError
from pydantic import ValidationError

from studyhub.db import get_progress_container
from studyhub.errors import LoadFailure, PersistenceFailure
from studyhub.models import ProgressRecord, SchedulingState

logger = logging.getLogger(__name__)


class ProgressRepository:
    """Scheduling state storage, partitioned by user."""

    def __init__(self, container: ContainerProxy | None = None):
        self._container = container

    @property
    def container(self) -> ContainerProxy:
        """Get the container, lazily initializing if needed."""
        if self._container is None:
            self._container = get_progress_container()
        return self._container

    def load_progress(self, user_id: str) -> dict[str, SchedulingState]:
        """Return the user's scheduling states keyed by card ID.

        Cards without an entry have never been reviewed.

        Raises:
            LoadFailure: If the query fails or a record is malformed.
        """
        query = "SELECT * FROM c WHERE c.userId = @userId"
        parameters = [{"name": "@userId", "value": user_id}]

        try:
            items = self.container.query_items(
                query=query,
                parameters=parameters,
                partition_key=user_id,
            )
            records = [ProgressRecord(**item) for item in items]
            return {record.flashcardId: record.to_state() for record in records}
        except AzureError as exc:
            raise LoadFailure(f"Failed to load progress for user {user_id}: {exc.message}") from exc
        except ValidationError as exc:
            raise LoadFailure(f"Malformed progress record for user {user_id}") from exc

    def save_progress(
        self,
        user_id: str,
        card_id: str,
        state: SchedulingState,
        quality: int | None = None,
    ) -> None:
        """Upsert the scheduling state for (user, card).

        Raises:
            PersistenceFailure: If the write is rejected or the store is unreachable.
        """
        record = ProgressRecord.from_state(user_id, card_id, state, quality)
        try:
            self.container.upsert_item(body=record.model_dump())
        except AzureError as exc:
            raise PersistenceFailure(f"Failed to save progress for card {card_id}: {exc.message}") from exc


_progress_repository: ProgressRepository | None = None


def get_progress_repository() -> ProgressRepository:
    global _progress_repository
    if _progress_repository is None:
        _progress_repository = ProgressRepository()
    return _progress_repository
