import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from studyhub import __version__
from studyhub.config import get_app_settings
from studyhub.db import get_settings, verify_connection, close_client
from studyhub.review import get_session_store, shutdown_write_executor
from studyhub.routers import flashcards_router

app_settings = get_app_settings()

logging.basicConfig(
    level=app_settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    if settings.is_configured():
        if verify_connection():
            logger.info("Connected to Cosmos DB database %s", settings.database_name)
        else:
            logger.error("Failed to connect to Cosmos DB - check configuration")
    else:
        logger.warning("Cosmos DB not configured (COSMOS_ENDPOINT not set)")

    yield

    # Shutdown: let in-flight progress writes finish before dropping the client
    get_session_store().clear()
    shutdown_write_executor(wait=True)
    close_client()
    logger.info("Cosmos DB connection closed")


app = FastAPI(
    title="StudyHub Review API",
    description="Spaced-repetition flashcard review backend",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(flashcards_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "StudyHub Review API",
        "version": __version__,
        "endpoints": {
            "health": "/healthz",
            "session": "/flashcards/{topic_id}/session",
            "stats": "/flashcards/stats",
        },
    }


@app.get("/healthz")
async def healthz():
    """Health check endpoint."""
    return {"status": "healthy"}
