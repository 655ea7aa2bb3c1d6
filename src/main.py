"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from src.api.router import api_router
from src.config import settings
from src.db.turso import TursoClient
from src.identity.fuzzy_matcher import FuzzyMatcher
from src.identity.resolver import IdentityResolver
from src.models.enums import EntityType
from src.repositories.audit_repo import AuditLogRepository
from src.repositories.change_set_repo import ChangeSetRepository
from src.repositories.entity_repo import (
    ActionItemRepository,
    DecisionRepository,
    EntityRepository,
    RiskRepository,
)
from src.repositories.evidence_repo import EvidenceRepository
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.people_repo import PeopleRepository
from src.review.change_sets import ChangeSetEditor
from src.review.intake import MeetingProcessor
from src.review.lock_manager import LockManager
from src.review.publisher import MeetingPublisher
from src.search.relevance import RelevanceFilter
from src.services.embedding_client import EmbeddingClient
from src.services.llm_client import LLMClient
from src.services.proposal_extractor import ProposalExtractor

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def _initialize_repositories(app: FastAPI, db: TursoClient) -> None:
    """Create repositories, ensure their tables exist, and register them."""
    entity_repos: dict[EntityType, EntityRepository] = {
        EntityType.ACTION_ITEM: ActionItemRepository(db),
        EntityType.DECISION: DecisionRepository(db),
        EntityType.RISK: RiskRepository(db),
    }
    repos = [
        MeetingRepository(db),
        ChangeSetRepository(db),
        PeopleRepository(db),
        EvidenceRepository(db),
        AuditLogRepository(db),
        *entity_repos.values(),
    ]
    for repo in repos:
        await repo.initialize()

    (
        app.state.meeting_repo,
        app.state.change_set_repo,
        app.state.people_repo,
        app.state.evidence_repo,
        app.state.audit_repo,
    ) = repos[:5]
    app.state.entity_repos = entity_repos
    logger.info(f"Repositories initialized: {len(repos)} tables ready")


def _initialize_review_services(app: FastAPI) -> None:
    """Wire identity, relevance, extraction, lock and publish services."""
    state = app.state

    resolver = IdentityResolver(
        fuzzy_matcher=FuzzyMatcher(threshold=settings.fuzzy_match_threshold),
        conference_room_keywords=settings.conference_room_keywords,
    )
    state.identity_resolver = resolver

    # Embeddings are optional; relevance falls back to recency without them
    embedder = EmbeddingClient() if settings.openai_api_key else None
    if embedder is None:
        logger.warning("OPENAI_API_KEY not set, relevance uses recency fallback")
    state.embedding_client = embedder

    relevance = RelevanceFilter(
        entity_repos=state.entity_repos,
        embedder=embedder,
        max_items=settings.relevance_max_items,
        similarity_threshold=settings.relevance_similarity_threshold,
        recent_days=settings.relevance_recent_days,
        transcript_sample_chars=settings.relevance_transcript_sample_chars,
    )
    extractor = ProposalExtractor(
        llm_client=LLMClient(),
        confidence_threshold=settings.extraction_confidence_threshold,
    )

    lock_manager = LockManager(
        state.change_set_repo,
        state.people_repo,
        timeout=timedelta(minutes=settings.lock_timeout_minutes),
    )
    state.lock_manager = lock_manager

    state.meeting_processor = MeetingProcessor(
        meetings=state.meeting_repo,
        change_sets=state.change_set_repo,
        people=state.people_repo,
        relevance=relevance,
        extractor=extractor,
        resolver=resolver,
    )
    state.change_set_editor = ChangeSetEditor(
        meetings=state.meeting_repo,
        change_sets=state.change_set_repo,
        lock_manager=lock_manager,
        people=state.people_repo,
        resolver=resolver,
    )
    state.meeting_publisher = MeetingPublisher(
        meetings=state.meeting_repo,
        change_sets=state.change_set_repo,
        lock_manager=lock_manager,
        people=state.people_repo,
        entity_repos=state.entity_repos,
        evidence=state.evidence_repo,
        audit=state.audit_repo,
        embedder=embedder,
        quote_max_length=settings.narrative_quote_max_length,
    )
    logger.info("Review services initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Initialize database connection
    - Create tables and repositories
    - Wire review services

    Shutdown:
    - Close database connection
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")

    db = TursoClient()
    await db.connect()
    app.state.db = db
    logger.info(f"Database connected: {db.url}")

    await _initialize_repositories(app, db)
    _initialize_review_services(app)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await db.close()
    logger.info("Database connection closed")


app = FastAPI(
    title=settings.app_name,
    description="Meeting transcript review and publish for project teams",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
