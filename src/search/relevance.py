"""Relevance filter for the open items shown to the extraction model.

Small projects pass every open item through. Larger ones are narrowed to
items semantically close to the transcript plus anything recently touched;
if the transcript cannot be embedded the filter falls back to recency.
"""

import time
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Literal

import numpy as np
import structlog
from pydantic import BaseModel, Field

from src.models.action_item import ActionItem
from src.models.base import utc_now
from src.models.canonical import CanonicalEntity
from src.models.decision import Decision
from src.models.enums import EntityType
from src.models.risk import Risk
from src.repositories.entity_repo import EntityRepository
from src.services.embedding_client import EmbeddingClient

logger = structlog.get_logger()

FilterMethod = Literal["passthrough", "similarity", "recency"]


class KindCounts(BaseModel):
    """Item counts per entity kind."""

    action_items: int = 0
    decisions: int = 0
    risks: int = 0

    @property
    def total(self) -> int:
        return self.action_items + self.decisions + self.risks


class RelevanceStats(BaseModel):
    """How the context was selected."""

    total_open: KindCounts
    included: KindCounts
    method: FilterMethod
    embedding_latency_ms: int | None = None
    query_latency_ms: int | None = None


class RelevantContext(BaseModel):
    """Open items handed to the extraction prompt."""

    action_items: list[ActionItem] = Field(default_factory=list)
    decisions: list[Decision] = Field(default_factory=list)
    risks: list[Risk] = Field(default_factory=list)
    stats: RelevanceStats

    @property
    def total(self) -> int:
        return len(self.action_items) + len(self.decisions) + len(self.risks)


def cosine_similarities(query: list[float], vectors: list[list[float]]) -> np.ndarray:
    """Cosine similarity of ``query`` against each row of ``vectors``."""
    if not vectors:
        return np.array([], dtype=np.float32)
    matrix = np.asarray(vectors, dtype=np.float32)
    q = np.asarray(query, dtype=np.float32)
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    norms[norms == 0] = 1.0
    return (matrix @ q) / norms


class RelevanceFilter:
    """Selects the open items most relevant to a transcript."""

    def __init__(
        self,
        entity_repos: dict[EntityType, EntityRepository],
        embedder: EmbeddingClient | None,
        max_items: int = 25,
        similarity_threshold: float = 0.3,
        recent_days: int = 14,
        transcript_sample_chars: int = 8000,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the filter.

        Args:
            entity_repos: Repository per entity kind
            embedder: Embedding client (None forces the recency fallback)
            max_items: Item budget before filtering kicks in
            similarity_threshold: Minimum cosine similarity to keep an item
            recent_days: Items updated within this window are always kept
            transcript_sample_chars: Leading transcript characters embedded
            clock: Source of "now" (injectable for tests)
        """
        self._repos = entity_repos
        self._embedder = embedder
        self._max_items = max_items
        self._threshold = similarity_threshold
        self._recent = timedelta(days=recent_days)
        self._sample_chars = transcript_sample_chars
        self._clock = clock

    async def get_relevant_context(
        self,
        project_id: str,
        transcript: str,
    ) -> RelevantContext:
        """Open action items, decisions and risks relevant to a transcript.

        Args:
            project_id: Project identifier
            transcript: Meeting transcript text

        Returns:
            RelevantContext with the selected items and selection stats
        """
        fetched = {
            kind: await repo.list_open(project_id, limit=self._max_items + 1)
            for kind, repo in self._repos.items()
        }
        counts = self._counts(fetched)

        needs_filtering = counts.total > self._max_items or any(
            len(items) > self._max_items for items in fetched.values()
        )
        if not needs_filtering:
            logger.debug(
                "context below threshold, passing through",
                project_id=project_id,
                total=counts.total,
            )
            return self._context(fetched, counts, "passthrough")

        logger.info(
            "using similarity filter for context",
            project_id=project_id,
            total=counts.total,
            max_items=self._max_items,
        )

        if self._embedder is None:
            return await self._recent_context(project_id, counts)

        started = time.perf_counter()
        try:
            query = await self._embedder.embed(transcript[: self._sample_chars])
        except Exception as e:
            logger.warning(
                "transcript embedding failed, falling back to recency",
                project_id=project_id,
                error=str(e),
            )
            return await self._recent_context(project_id, counts)
        embedding_ms = int((time.perf_counter() - started) * 1000)

        started = time.perf_counter()
        try:
            selected = await self._similar_and_recent(project_id, query)
        except Exception as e:
            logger.error(
                "similarity search failed, falling back to recency",
                project_id=project_id,
                error=str(e),
            )
            return await self._recent_context(project_id, counts)
        query_ms = int((time.perf_counter() - started) * 1000)

        context = self._context(selected, counts, "similarity")
        context.stats.embedding_latency_ms = embedding_ms
        context.stats.query_latency_ms = query_ms
        logger.info(
            "context filtered by similarity",
            project_id=project_id,
            included=context.total,
            embedding_latency_ms=embedding_ms,
            query_latency_ms=query_ms,
        )
        return context

    async def _similar_and_recent(
        self,
        project_id: str,
        query: list[float],
    ) -> dict[EntityType, list[CanonicalEntity]]:
        """Top similar items across kinds, unioned with recently updated ones."""
        recent_cutoff = self._clock() - self._recent
        all_open = {
            kind: await repo.list_open(project_id)
            for kind, repo in self._repos.items()
        }

        scored: list[tuple[float, EntityType, CanonicalEntity]] = []
        for kind, items in all_open.items():
            embedded = [i for i in items if i.embedding and len(i.embedding) == len(query)]
            sims = cosine_similarities(query, [i.embedding for i in embedded])
            for item, sim in zip(embedded, sims, strict=True):
                if sim >= self._threshold:
                    scored.append((float(sim), kind, item))
        scored.sort(key=lambda entry: entry[0], reverse=True)
        similar_ids = {item.id for _, _, item in scored[: self._max_items]}

        return {
            kind: [
                item
                for item in items
                if item.id in similar_ids or item.updated_at >= recent_cutoff
            ]
            for kind, items in all_open.items()
        }

    async def _recent_context(
        self,
        project_id: str,
        counts: KindCounts,
    ) -> RelevantContext:
        """Fallback: a few recently updated items of each kind."""
        cutoff = self._clock() - self._recent
        per_kind = self._max_items // 3
        recent = {
            kind: await repo.list_open(project_id, limit=per_kind, updated_since=cutoff)
            for kind, repo in self._repos.items()
        }
        return self._context(recent, counts, "recency")

    @staticmethod
    def _counts(items: dict[EntityType, list[CanonicalEntity]]) -> KindCounts:
        return KindCounts(
            action_items=len(items.get(EntityType.ACTION_ITEM, [])),
            decisions=len(items.get(EntityType.DECISION, [])),
            risks=len(items.get(EntityType.RISK, [])),
        )

    def _context(
        self,
        items: dict[EntityType, list[CanonicalEntity]],
        total_open: KindCounts,
        method: FilterMethod,
    ) -> RelevantContext:
        return RelevantContext(
            action_items=items.get(EntityType.ACTION_ITEM, []),
            decisions=items.get(EntityType.DECISION, []),
            risks=items.get(EntityType.RISK, []),
            stats=RelevanceStats(
                total_open=total_open,
                included=self._counts(items),
                method=method,
            ),
        )
