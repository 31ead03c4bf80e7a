"""
Cosmos DB client for flashcard content and review progress.

Two containers are used:
- flashcard_sets (partition key /topicId): sets with their embedded cards
- flashcard_progress (partition key /userId): one document per (user, card)

Authentication follows the environment:
- COSMOS_EMULATOR=true uses the local emulator's well-known key
- otherwise DefaultAzureCredential (Managed Identity in Azure, `az login` locally)
"""

import os
import logging
from functools import lru_cache
from azure.cosmos import CosmosClient, DatabaseProxy, ContainerProxy
from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.identity import DefaultAzureCredential

logger = logging.getLogger(__name__)

# Cosmos DB Emulator well-known key (public, not a secret)
# https://learn.microsoft.com/en-us/azure/cosmos-db/emulator#authentication
EMULATOR_KEY = "C2y6yDjf5/R+ob0N8A7Cgv30VRDJIWEHLM+4QDU5DE2nQ9nDuVTqobD4b8mGGyPMbIZnqyMsEcaGQy67XIw/Jw=="
EMULATOR_ENDPOINT = "https://localhost:8081"


class CosmosDBSettings:
    """Settings for Cosmos DB connection."""

    def __init__(self):
        self.endpoint = os.getenv("COSMOS_ENDPOINT", "")
        self.database_name = os.getenv("COSMOS_DB_NAME", "studyhub")
        self.flashcard_sets_container = os.getenv("COSMOS_FLASHCARD_SETS_CONTAINER", "flashcard_sets")
        self.progress_container = os.getenv("COSMOS_PROGRESS_CONTAINER", "flashcard_progress")
        self.use_emulator = os.getenv("COSMOS_EMULATOR", "false").lower() == "true"

    def is_configured(self) -> bool:
        if self.use_emulator:
            return True
        return bool(self.endpoint)


@lru_cache()
def get_settings() -> CosmosDBSettings:
    """Get cached Cosmos DB settings."""
    return CosmosDBSettings()


_client: CosmosClient | None = None
_database: DatabaseProxy | None = None


def get_client() -> CosmosClient:
    """Get or create the Cosmos DB client.

    Raises:
        RuntimeError: If neither COSMOS_ENDPOINT nor COSMOS_EMULATOR is set.
    """
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.is_configured():
            raise RuntimeError(
                "Cosmos DB is not configured. "
                "Set COSMOS_ENDPOINT environment variable, or COSMOS_EMULATOR=true for local emulator."
            )

        if settings.use_emulator:
            logger.info("Using Cosmos DB Emulator at %s", EMULATOR_ENDPOINT)
            _client = CosmosClient(
                EMULATOR_ENDPOINT,
                credential=EMULATOR_KEY,
                connection_verify=False,  # self-signed cert
            )
        else:
            logger.info("Using DefaultAzureCredential for Cosmos DB at %s", settings.endpoint)
            _client = CosmosClient(settings.endpoint, credential=DefaultAzureCredential())

    return _client


def get_database() -> DatabaseProxy:
    global _database
    if _database is None:
        _database = get_client().get_database_client(get_settings().database_name)
    return _database


def get_container(container_name: str) -> ContainerProxy:
    return get_database().get_container_client(container_name)


def get_flashcard_sets_container() -> ContainerProxy:
    return get_container(get_settings().flashcard_sets_container)


def get_progress_container() -> ContainerProxy:
    return get_container(get_settings().progress_container)


def verify_connection() -> bool:
    """Check that the configured database is reachable."""
    settings = get_settings()
    if not settings.is_configured():
        return False
    try:
        get_database().read()
        return True
    except CosmosHttpResponseError as exc:
        logger.warning("Cosmos DB connection check failed: %s", exc)
        return False


def close_client():
    """Drop cached client references (CosmosClient manages its own connections)."""
    global _client, _database
    _client = None
    _database = None
