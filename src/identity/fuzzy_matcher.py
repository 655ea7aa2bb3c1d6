"""Fuzzy name matching using RapidFuzz.

Scores a free-text name against both the display name and the email of
every roster person and keeps the better of the two.
"""

from collections.abc import Callable, Sequence

from rapidfuzz import fuzz, process, utils

from src.identity.schemas import RosterPerson

# RapidFuzz-style scorer: (query, choice) -> similarity on a 0-100 scale
Scorer = Callable[..., float]


class FuzzyMatcher:
    """Fuzzy name matching using RapidFuzz.

    Uses WRatio by default, which combines full, partial and token-based
    ratios so "Alice" matches "Alice Johnson" and "Smith, John" matches
    "John Smith". Both the scorer and the threshold are injectable.
    """

    def __init__(self, threshold: float = 0.75, scorer: Scorer = fuzz.WRatio):
        """Initialize matcher with confidence threshold.

        Args:
            threshold: Minimum score (0-1) for a match to be returned.
            scorer: RapidFuzz-compatible scorer returning 0-100.
        """
        self._threshold = threshold
        self._scorer = scorer

    @property
    def threshold(self) -> float:
        return self._threshold

    def find_matches(
        self,
        query: str,
        people: Sequence[RosterPerson],
    ) -> list[tuple[RosterPerson, float]]:
        """Find every roster person scoring at or above the threshold.

        Args:
            query: Name to search for (from transcript)
            people: Roster people to match against

        Returns:
            List of (person, score) tuples sorted by score descending,
            one per person, scores normalized to 0-1.
        """
        if not query or not people:
            return []

        cutoff = self._threshold * 100  # fuzz uses 0-100 scale
        best: dict[int, float] = {}

        names = [p.name for p in people]
        emails = [p.email or "" for p in people]
        for choices in (names, emails):
            results = process.extract(
                query,
                choices,
                scorer=self._scorer,
                processor=utils.default_process,
                score_cutoff=cutoff,
                limit=None,
            )
            for _choice, score, index in results:
                if score > best.get(index, -1.0):
                    best[index] = score

        ranked = sorted(best.items(), key=lambda kv: (-kv[1], kv[0]))
        return [(people[index], min(score / 100, 1.0)) for index, score in ranked]

    def find_best_match(
        self,
        query: str,
        people: Sequence[RosterPerson],
    ) -> tuple[RosterPerson | None, float]:
        """Find the single best match, or (None, 0.0) below threshold."""
        matches = self.find_matches(query, people)
        if not matches:
            return None, 0.0
        return matches[0]
