"""Identity resolution module for matching extracted names to project people.

This module provides:
- IdentityResolver: Ordered resolution pipeline (email -> attendee -> room -> fuzzy)
- Fuzzy name matching using RapidFuzz (WRatio over name and email)
- Reviewer follow-ups (placeholder, manual pick, new contact)
- Schemas for roster snapshots and resolution results
"""

from src.identity.fuzzy_matcher import FuzzyMatcher
from src.identity.resolver import IdentityResolver
from src.identity.review import (
    accept_as_placeholder,
    find_similar_names,
    is_blocking,
    resolution_status_label,
    resolve_manually,
    resolve_with_new_contact,
)
from src.identity.schemas import (
    IdentityCandidate,
    PersonKind,
    ResolutionStatus,
    ResolvedIdentity,
    RosterPerson,
    RosterSnapshot,
)

__all__ = [
    "FuzzyMatcher",
    "IdentityCandidate",
    "IdentityResolver",
    "PersonKind",
    "ResolutionStatus",
    "ResolvedIdentity",
    "RosterPerson",
    "RosterSnapshot",
    "accept_as_placeholder",
    "find_similar_names",
    "is_blocking",
    "resolution_status_label",
    "resolve_manually",
    "resolve_with_new_contact",
]
