"""Search module for meeting context.

Selects the open items most relevant to a transcript, by embedding
similarity with a recency fallback.
"""

from src.search.relevance import (
    KindCounts,
    RelevanceFilter,
    RelevanceStats,
    RelevantContext,
    cosine_similarities,
)

__all__ = [
    "KindCounts",
    "RelevanceFilter",
    "RelevanceStats",
    "RelevantContext",
    "cosine_similarities",
]
