"""FastAPI application for the meeting insights extraction service."""

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from meeting_insights.clients.openai_client import OpenAIClient
from meeting_insights.clients.postgres_client import PostgresClient
from meeting_insights.pipeline.extractor import InsightExtractor
from meeting_insights.pipeline.orchestrator import ExtractionOrchestrator
from meeting_insights.repository import ExtractionRepository

from .config import get_settings
from .routes.extract import router as extract_router
from .routes.health import router as health_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize persistent clients at startup, clean up at shutdown."""
    settings = get_settings()

    logger.info("lifespan.startup", chat_model=settings.OPENAI_CHAT_MODEL)

    postgres = PostgresClient(settings.DATABASE_URL)
    await postgres.connect()
    if settings.SETUP_SCHEMA:
        await postgres.setup_schema()

    openai = OpenAIClient(
        api_key=settings.OPENAI_API_KEY,
        chat_model=settings.OPENAI_CHAT_MODEL,
    )

    repository = ExtractionRepository(postgres)
    orchestrator = ExtractionOrchestrator(
        extractor=InsightExtractor(openai),
        repository=repository,
        max_concurrency=settings.EXTRACTION_MAX_CONCURRENCY,
    )

    # Store on app.state for request handlers
    app.state.postgres = postgres
    app.state.openai = openai
    app.state.repository = repository
    app.state.orchestrator = orchestrator
    app.state.bulk_task = None

    logger.info("lifespan.ready")
    yield

    # Shutdown
    logger.info("lifespan.shutdown")
    orchestrator.cancel()
    if app.state.bulk_task is not None:
        await asyncio.gather(app.state.bulk_task, return_exceptions=True)
    await openai.close()
    await postgres.close()


app = FastAPI(
    title="meeting-insights",
    description="Extracts structured business context from sales meeting transcripts",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(extract_router)
