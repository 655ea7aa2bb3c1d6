"""Identity resolution schemas.

Defines data models for roster snapshots and resolution results.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.participant import MeetingAttendee


class PersonKind(str, Enum):
    """Whether a roster person has a login (member) or not (contact)."""

    USER = "user"
    CONTACT = "contact"


class RosterPerson(BaseModel):
    """Person known to a project, flattened for matching."""

    model_config = ConfigDict(frozen=True)

    kind: PersonKind
    id: str = Field(description="User id or contact id")
    name: str = Field(description="Display name (email for nameless users)")
    email: str | None = Field(default=None)


class RosterSnapshot(BaseModel):
    """Immutable view of the people a name may resolve to.

    Built once per resolution batch so every item in a change-set is
    resolved against the same roster.
    """

    model_config = ConfigDict(frozen=True)

    project_id: str | None = Field(default=None)
    members: tuple[RosterPerson, ...] = Field(default=())
    contacts: tuple[RosterPerson, ...] = Field(default=())
    attendees: tuple[MeetingAttendee, ...] = Field(default=())

    @property
    def people(self) -> tuple[RosterPerson, ...]:
        """Members followed by contacts."""
        return self.members + self.contacts

    def find(self, kind: PersonKind, person_id: str) -> RosterPerson | None:
        """Look up a person by kind and id."""
        pool = self.members if kind == PersonKind.USER else self.contacts
        return next((p for p in pool if p.id == person_id), None)

    def with_attendees(self, attendees: list[MeetingAttendee]) -> "RosterSnapshot":
        """Copy of this snapshot scoped to a meeting's attendees."""
        return self.model_copy(update={"attendees": tuple(attendees)})


class ResolutionStatus(str, Enum):
    """Outcome of resolving a name against the roster."""

    RESOLVED = "resolved"
    NEEDS_CONFIRMATION = "needs_confirmation"
    AMBIGUOUS = "ambiguous"
    CONFERENCE_ROOM = "conference_room"
    UNKNOWN = "unknown"
    PLACEHOLDER = "placeholder"


# Statuses that must carry no resolved id at all
UNRESOLVED_STATUSES = frozenset(
    {
        ResolutionStatus.AMBIGUOUS,
        ResolutionStatus.CONFERENCE_ROOM,
        ResolutionStatus.UNKNOWN,
        ResolutionStatus.PLACEHOLDER,
    }
)


class IdentityCandidate(BaseModel):
    """A ranked alternative match shown to the reviewer."""

    kind: PersonKind
    id: str
    name: str
    email: str | None = None
    score: float = Field(ge=0.0, le=1.0)


class ResolvedIdentity(BaseModel):
    """Result of resolving an extracted owner or decision maker.

    Exactly one of ``resolved_user_id``/``resolved_contact_id`` is set when
    ``resolution_status`` is resolved; needs_confirmation may carry one
    tentative id; every other status carries none.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, description="Name as extracted")
    email: str | None = Field(default=None)
    resolved_user_id: str | None = Field(default=None)
    resolved_contact_id: str | None = Field(default=None)
    resolution_status: ResolutionStatus = Field(default=ResolutionStatus.UNKNOWN)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    candidates: list[IdentityCandidate] = Field(default_factory=list, max_length=5)
    reviewer_override: bool = Field(
        default=False,
        description="Reviewer explicitly accepted this identity as-is",
    )

    @model_validator(mode="after")
    def check_resolved_ids(self) -> "ResolvedIdentity":
        """Enforce the id/status combinations."""
        ids_set = sum(
            1 for v in (self.resolved_user_id, self.resolved_contact_id) if v
        )
        status = self.resolution_status
        if status == ResolutionStatus.RESOLVED and ids_set != 1:
            msg = "resolved identity must carry exactly one of user id / contact id"
            raise ValueError(msg)
        if status == ResolutionStatus.NEEDS_CONFIRMATION and ids_set > 1:
            msg = "needs_confirmation identity may carry at most one tentative id"
            raise ValueError(msg)
        if status in UNRESOLVED_STATUSES and ids_set:
            msg = f"{status.value} identity must not carry a resolved id"
            raise ValueError(msg)
        return self

    @property
    def is_blocking(self) -> bool:
        """Check if this identity stops a publish."""
        return (
            self.resolution_status
            in (ResolutionStatus.AMBIGUOUS, ResolutionStatus.CONFERENCE_ROOM)
            and not self.reviewer_override
        )
