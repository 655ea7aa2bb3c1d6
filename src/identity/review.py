"""Reviewer follow-ups on resolved identities.

These are not resolver stages: they consume a ResolvedIdentity and return
the reviewer-adjusted version. Persisting the result is the caller's job.
"""

from collections.abc import Sequence

from src.identity.fuzzy_matcher import FuzzyMatcher
from src.identity.resolver import IdentityResolver
from src.identity.schemas import (
    PersonKind,
    ResolutionStatus,
    ResolvedIdentity,
    RosterPerson,
    RosterSnapshot,
)

STATUS_LABELS = {
    ResolutionStatus.RESOLVED: "Resolved",
    ResolutionStatus.NEEDS_CONFIRMATION: "Needs Confirmation",
    ResolutionStatus.AMBIGUOUS: "Ambiguous Owner",
    ResolutionStatus.CONFERENCE_ROOM: "Conference Room",
    ResolutionStatus.UNKNOWN: "Unknown",
    ResolutionStatus.PLACEHOLDER: "Placeholder",
}


def is_blocking(identity: ResolvedIdentity | None) -> bool:
    """Check if an identity stops a publish until a reviewer intervenes."""
    return identity is not None and identity.is_blocking


def resolution_status_label(status: ResolutionStatus) -> str:
    """Human-readable label for a resolution status."""
    return STATUS_LABELS[status]


def accept_as_placeholder(identity: ResolvedIdentity) -> ResolvedIdentity:
    """Keep the extracted name with no backing person record."""
    return identity.model_copy(
        update={
            "resolution_status": ResolutionStatus.PLACEHOLDER,
            "resolved_user_id": None,
            "resolved_contact_id": None,
            "reviewer_override": True,
        }
    )


def resolve_manually(
    identity: ResolvedIdentity,
    person: RosterPerson,
) -> ResolvedIdentity:
    """Pin the identity to a roster person the reviewer selected."""
    return ResolvedIdentity(
        name=identity.name,
        email=person.email,
        resolved_user_id=person.id if person.kind == PersonKind.USER else None,
        resolved_contact_id=person.id if person.kind == PersonKind.CONTACT else None,
        resolution_status=ResolutionStatus.RESOLVED,
        confidence=1.0,
        candidates=identity.candidates,
        reviewer_override=True,
    )


def resolve_with_new_contact(
    identity: ResolvedIdentity,
    contact: RosterPerson,
    roster: RosterSnapshot,
    resolver: IdentityResolver,
) -> ResolvedIdentity:
    """Re-resolve after the reviewer added ``contact`` to the roster.

    ``roster`` must already include the new contact. If re-resolution does
    not land on it (e.g. the contact has no email and the name is still
    ambiguous) the identity is pinned to the contact directly.
    """
    result = resolver.resolve(identity.name, contact.email, roster)
    if (
        result.resolution_status == ResolutionStatus.RESOLVED
        and result.resolved_contact_id == contact.id
    ):
        return result.model_copy(update={"reviewer_override": True})
    return resolve_manually(identity, contact)


def find_similar_names(
    name: str,
    people: Sequence[RosterPerson],
    threshold: float = 0.85,
) -> list[tuple[RosterPerson, float]]:
    """Existing people whose names look like ``name``.

    Used to warn before creating a contact that probably already exists.
    """
    matcher = FuzzyMatcher(threshold=threshold)
    return matcher.find_matches(name, people)
