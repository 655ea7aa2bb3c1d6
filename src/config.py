"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Meeting Review Agent"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Database (Turso)
    turso_database_url: str | None = Field(default=None)
    turso_auth_token: str | None = Field(default=None)

    # Anthropic (LLM for proposal extraction)
    anthropic_api_key: str | None = Field(default=None)
    anthropic_model: str = Field(default="claude-sonnet-4-5")
    extraction_confidence_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Minimum confidence score to include extracted items",
    )

    # OpenAI (embeddings for semantic search and relevance filtering)
    openai_api_key: str | None = Field(default=None)
    embedding_model: str = Field(default="text-embedding-3-small")
    embedding_dimensions: int = Field(default=1536, gt=0)
    embedding_timeout_seconds: float = Field(default=10.0, gt=0)
    embedding_cache_size: int = Field(default=500, ge=0)
    embedding_cache_ttl_seconds: int = Field(default=30 * 60, ge=0)

    # Change-set locking
    lock_timeout_minutes: int = Field(
        default=30,
        ge=1,
        description="Minutes after which a reviewer's lock may be taken over",
    )

    # Identity resolution
    fuzzy_match_threshold: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="Minimum name similarity (0-1) for a fuzzy roster candidate",
    )
    conference_room_keywords: list[str] = Field(
        default=["room", "conference", "meeting room", "boardroom"],
    )

    # Publish
    narrative_quote_max_length: int = Field(
        default=300,
        ge=1,
        description="Evidence quotes embedded in AI narratives are cut to this length",
    )

    # Relevance filter
    relevance_max_items: int = Field(default=25, ge=1)
    relevance_similarity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    relevance_recent_days: int = Field(default=14, ge=0)
    relevance_transcript_sample_chars: int = Field(default=8000, ge=1)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
