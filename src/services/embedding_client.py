"""Embedding client wrapper for OpenAI embeddings.

Used for semantic relevance of open items and for the embedding stored on
each published record. Results are cached in memory for a short TTL since
the same transcript sample and item texts are embedded repeatedly.
"""

import hashlib
import time
from collections import OrderedDict

import structlog
from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, RateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import settings

logger = structlog.get_logger()

# Transient failures worth a short retry
RETRIABLE_EXCEPTIONS = (APIConnectionError, APITimeoutError, RateLimitError)


class EmbeddingClientError(Exception):
    """Raised when an embedding cannot be produced."""

    pass


class EmbeddingCache:
    """In-memory LRU cache with per-entry expiry."""

    def __init__(self, max_size: int = 500, ttl_seconds: float = 1800):
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._entries: OrderedDict[str, tuple[float, list[float]]] = OrderedDict()

    @staticmethod
    def key_for(text: str) -> str:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    def get(self, text: str) -> list[float] | None:
        key = self.key_for(text)
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, vector = entry
        if time.monotonic() - stored_at > self._ttl:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return vector

    def put(self, text: str, vector: list[float]) -> None:
        key = self.key_for(text)
        self._entries[key] = (time.monotonic(), vector)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class EmbeddingClient:
    """OpenAI embeddings with timeout, short retry and TTL cache."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
        dimensions: int | None = None,
        cache: EmbeddingCache | None = None,
    ):
        """Initialize embedding client.

        Args:
            client: Optional AsyncOpenAI client for dependency injection.
                   If not provided, creates one from settings.
            model: Embedding model (defaults to settings)
            dimensions: Vector size (defaults to settings)
            cache: Cache instance (defaults to settings-sized cache)
        """
        if client is not None:
            self._client = client
        elif settings.openai_api_key:
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.embedding_timeout_seconds,
                max_retries=0,
            )
        else:
            # Allow initialization without API key for testing
            self._client = None
        self._model = model or settings.embedding_model
        self._dimensions = dimensions or settings.embedding_dimensions
        self._cache = cache or EmbeddingCache(
            max_size=settings.embedding_cache_size,
            ttl_seconds=settings.embedding_cache_ttl_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def embed(self, text: str) -> list[float]:
        """Embed one text.

        Args:
            text: Text to embed (whitespace-trimmed; must be non-empty)

        Returns:
            Embedding vector

        Raises:
            EmbeddingClientError: No client, empty text, or API failure
        """
        if self._client is None:
            raise EmbeddingClientError(
                "OpenAI client not initialized. Set OPENAI_API_KEY environment variable."
            )
        text = text.strip()
        if not text:
            raise EmbeddingClientError("Cannot embed empty text")

        cached = self._cache.get(text)
        if cached is not None:
            return cached

        try:
            vector = await self._create(text)
        except Exception as e:
            raise EmbeddingClientError(f"Embedding failed: {e}") from e

        self._cache.put(text, vector)
        return vector

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(RETRIABLE_EXCEPTIONS),
        reraise=True,
    )
    async def _create(self, text: str) -> list[float]:
        started = time.perf_counter()
        response = await self._client.embeddings.create(
            model=self._model,
            input=text,
            dimensions=self._dimensions,
        )
        logger.debug(
            "embedding created",
            model=self._model,
            chars=len(text),
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
        return list(response.data[0].embedding)
