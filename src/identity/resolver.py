"""IdentityResolver maps extracted owner names to roster people.

Resolution pipeline (in order, first match wins):
1. Stated email against project members, then contacts
2. Email inferred from a meeting attendee with a matching name
3. Conference-room heuristic
4. Fuzzy match over members and contacts (name and email)
"""

from collections.abc import Sequence

from src.identity.fuzzy_matcher import FuzzyMatcher
from src.identity.schemas import (
    IdentityCandidate,
    PersonKind,
    ResolutionStatus,
    ResolvedIdentity,
    RosterPerson,
    RosterSnapshot,
)

DEFAULT_CONFERENCE_ROOM_KEYWORDS = ("room", "conference", "meeting room", "boardroom")

# Confidence assigned when the email came from the attendee list
INFERRED_EMAIL_CONFIDENCE = 0.8

# Single fuzzy matches above this are shown as a suggestion, not ambiguous
CONFIRMATION_THRESHOLD = 0.7

MAX_CANDIDATES = 5


def _candidate(person: RosterPerson, score: float) -> IdentityCandidate:
    return IdentityCandidate(
        kind=person.kind,
        id=person.id,
        name=person.name,
        email=person.email,
        score=round(score, 4),
    )


def _ids_for(person: RosterPerson) -> dict[str, str | None]:
    return {
        "resolved_user_id": person.id if person.kind == PersonKind.USER else None,
        "resolved_contact_id": person.id if person.kind == PersonKind.CONTACT else None,
    }


class IdentityResolver:
    """Resolves a free-text name against an immutable roster snapshot.

    Pure and deterministic: no I/O, no clock, no randomness. The same
    inputs always produce the same ResolvedIdentity.
    """

    def __init__(
        self,
        fuzzy_matcher: FuzzyMatcher | None = None,
        conference_room_keywords: Sequence[str] = DEFAULT_CONFERENCE_ROOM_KEYWORDS,
    ):
        """Initialize resolver.

        Args:
            fuzzy_matcher: Fuzzy matching service (scorer and threshold)
            conference_room_keywords: Substrings marking a room, not a person
        """
        self._fuzzy = fuzzy_matcher or FuzzyMatcher()
        self._room_keywords = tuple(k.lower() for k in conference_room_keywords)

    def resolve(
        self,
        candidate_name: str,
        candidate_email: str | None,
        roster: RosterSnapshot,
    ) -> ResolvedIdentity:
        """Resolve an extracted name (and optional email).

        Args:
            candidate_name: Name as extracted from the transcript
            candidate_email: Email stated alongside the name, if any
            roster: Members, contacts and attendees to resolve against

        Returns:
            ResolvedIdentity with status, confidence and candidates
        """
        name = candidate_name.strip()
        email = candidate_email.strip() if candidate_email else None

        # Stage 1: Stated email
        if email:
            person = self._match_email(email, roster)
            if person:
                return ResolvedIdentity(
                    name=name,
                    email=email,
                    resolution_status=ResolutionStatus.RESOLVED,
                    confidence=1.0,
                    **_ids_for(person),
                )

        # Stage 2: Email inferred from attendees
        if not email and roster.attendees:
            inferred = self._infer_from_attendees(name, roster)
            if inferred:
                return inferred

        # Stage 3: Conference room
        if self.is_conference_room(name):
            return ResolvedIdentity(
                name=name,
                email=None,
                resolution_status=ResolutionStatus.CONFERENCE_ROOM,
                confidence=0.0,
            )

        # Stage 4: Fuzzy match
        matches = self._fuzzy.find_matches(name, roster.people)

        if len(matches) == 1:
            person, score = matches[0]
            if score > CONFIRMATION_THRESHOLD:
                return ResolvedIdentity(
                    name=name,
                    email=person.email,
                    resolution_status=ResolutionStatus.NEEDS_CONFIRMATION,
                    confidence=score,
                    candidates=[_candidate(person, score)],
                    **_ids_for(person),
                )
            return ResolvedIdentity(
                name=name,
                email=email,
                resolution_status=ResolutionStatus.AMBIGUOUS,
                confidence=score,
                candidates=[_candidate(person, score)],
            )

        if len(matches) > 1:
            return ResolvedIdentity(
                name=name,
                email=email,
                resolution_status=ResolutionStatus.AMBIGUOUS,
                confidence=0.0,
                candidates=[_candidate(p, s) for p, s in matches[:MAX_CANDIDATES]],
            )

        # No match found - reviewer may accept as placeholder or add a contact
        return ResolvedIdentity(
            name=name,
            email=email,
            resolution_status=ResolutionStatus.UNKNOWN,
            confidence=0.0,
        )

    def is_conference_room(self, name: str) -> bool:
        """Check if a name looks like a room rather than a person."""
        lowered = name.lower()
        return any(keyword in lowered for keyword in self._room_keywords)

    def _match_email(
        self,
        email: str,
        roster: RosterSnapshot,
    ) -> RosterPerson | None:
        """Exact case-insensitive email match, members before contacts."""
        target = email.lower()
        for pool in (roster.members, roster.contacts):
            for person in pool:
                if person.email and person.email.lower() == target:
                    return person
        return None

    def _infer_from_attendees(
        self,
        name: str,
        roster: RosterSnapshot,
    ) -> ResolvedIdentity | None:
        """Borrow the email of an attendee whose name overlaps this one."""
        lowered = name.lower()
        attendee = next(
            (
                a
                for a in roster.attendees
                if a.name.lower() in lowered or lowered in a.name.lower()
            ),
            None,
        )
        if attendee is None or not attendee.email:
            return None

        person = self._match_email(attendee.email, roster)
        if person is None:
            return None

        # Never resolved outright: the email was inferred, not stated
        return ResolvedIdentity(
            name=name,
            email=attendee.email,
            resolution_status=ResolutionStatus.NEEDS_CONFIRMATION,
            confidence=INFERRED_EMAIL_CONFIDENCE,
            candidates=[_candidate(person, INFERRED_EMAIL_CONFIDENCE)],
            **_ids_for(person),
        )
