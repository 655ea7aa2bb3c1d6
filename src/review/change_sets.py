"""Lock-guarded reviewer edits to a proposed change-set.

Every mutation checks the lock through the LockManager and then writes
with an UPDATE that is itself conditioned on the lock, bumping the lock
version so an in-flight publish from an older read notices the edit.
"""

from typing import Any
from uuid import UUID

import structlog
from pydantic import BaseModel, ValidationError

from src.identity.resolver import IdentityResolver
from src.identity.review import (
    accept_as_placeholder,
    find_similar_names,
    is_blocking,
    resolve_manually,
    resolve_with_new_contact,
)
from src.identity.schemas import PersonKind, ResolvedIdentity, RosterPerson
from src.models.enums import MeetingStatus
from src.models.meeting import Meeting
from src.models.participant import ProjectContact
from src.models.proposals import ProposedChangeSet, ProposedItem
from src.repositories.change_set_repo import ChangeSetRepository
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.people_repo import PeopleRepository
from src.review.errors import (
    ChangeSetNotFoundError,
    InvalidEditError,
    ItemNotFoundError,
    LockNotHeldError,
    MeetingDeletedError,
    MeetingNotFoundError,
    MeetingNotReviewableError,
    PersonNotFoundError,
)
from src.review.lock_manager import LockManager, LockStatus

logger = structlog.get_logger()

# Fields a reviewer edit may never change. Owners change only through the
# resolve, placeholder and contact operations, which check the roster.
IMMUTABLE_FIELDS = frozenset(
    {
        "temp_id",
        "kind",
        "operation",
        "external_id",
        "applied_entity_id",
        "owner",
        "decision_maker",
    }
)


class ChangeSetView(BaseModel):
    """Change-set as shown to a reviewer."""

    change_set: ProposedChangeSet
    lock: LockStatus
    blocking_items: list[str]


class NewContactResult(BaseModel):
    """Outcome of adding an owner as a new project contact."""

    change_set: ProposedChangeSet
    contact: ProjectContact
    similar_names: list[RosterPerson]


def blocking_items(change_set: ProposedChangeSet) -> list[str]:
    """Temp ids of accepted items whose owner still blocks publish."""
    return [
        item.temp_id
        for item in change_set.proposed_items.accepted_items()
        if is_blocking(item.identity)
    ]


class ChangeSetEditor:
    """Reviewer operations on a meeting's change-set."""

    def __init__(
        self,
        meetings: MeetingRepository,
        change_sets: ChangeSetRepository,
        lock_manager: LockManager,
        people: PeopleRepository,
        resolver: IdentityResolver,
    ):
        self._meetings = meetings
        self._change_sets = change_sets
        self._locks = lock_manager
        self._people = people
        self._resolver = resolver

    async def get(self, meeting_id: UUID, actor_id: str | None = None) -> ChangeSetView:
        """Change-set with lock status and blocking items (no lock needed)."""
        change_set = await self._change_sets.get_by_meeting(meeting_id)
        if change_set is None:
            raise ChangeSetNotFoundError(meeting_id)
        return ChangeSetView(
            change_set=change_set,
            lock=self._locks.describe(change_set, actor_id),
            blocking_items=blocking_items(change_set),
        )

    async def blocking_items(self, meeting_id: UUID) -> list[str]:
        """Temp ids of accepted items that still block publish."""
        return (await self.get(meeting_id)).blocking_items

    async def set_accepted(
        self,
        meeting_id: UUID,
        temp_id: str,
        actor_id: str,
        accepted: bool,
    ) -> ProposedChangeSet:
        """Accept or reject one proposal."""
        _meeting, change_set, item = await self._load_item(meeting_id, temp_id, actor_id)
        updated = item.model_copy(update={"accepted": accepted})
        return await self._save(change_set, actor_id, updated)

    async def edit_item(
        self,
        meeting_id: UUID,
        temp_id: str,
        actor_id: str,
        patch: dict[str, Any],
    ) -> ProposedChangeSet:
        """Patch fields of one proposal; the result is re-validated.

        Raises:
            InvalidEditError: Immutable field touched or validation failed
        """
        touched = IMMUTABLE_FIELDS & set(patch)
        if touched:
            raise InvalidEditError(f"Fields cannot be edited: {sorted(touched)}")

        _meeting, change_set, item = await self._load_item(meeting_id, temp_id, actor_id)
        try:
            updated = type(item).model_validate({**item.model_dump(), **patch})
        except ValidationError as e:
            raise InvalidEditError(f"Invalid edit for item {temp_id}: {e}") from e
        return await self._save(change_set, actor_id, updated)

    async def resolve_owner_manually(
        self,
        meeting_id: UUID,
        temp_id: str,
        actor_id: str,
        kind: PersonKind,
        person_id: str,
    ) -> ProposedChangeSet:
        """Pin an item's owner to a roster person the reviewer picked."""
        meeting, change_set, item = await self._load_item(meeting_id, temp_id, actor_id)
        roster = await self._people.load_roster(meeting.project_id)
        person = roster.find(kind, person_id)
        if person is None:
            raise PersonNotFoundError(person_id)

        identity = item.identity or ResolvedIdentity(name=person.name)
        updated = item.with_identity(resolve_manually(identity, person))
        return await self._save(change_set, actor_id, updated)

    async def accept_owner_as_placeholder(
        self,
        meeting_id: UUID,
        temp_id: str,
        actor_id: str,
    ) -> ProposedChangeSet:
        """Keep the extracted owner name without a backing person."""
        _meeting, change_set, item = await self._load_item(meeting_id, temp_id, actor_id)
        if item.identity is None:
            raise InvalidEditError(f"Item {temp_id} has no owner to accept")
        updated = item.with_identity(accept_as_placeholder(item.identity))
        return await self._save(change_set, actor_id, updated)

    async def add_owner_as_contact(
        self,
        meeting_id: UUID,
        temp_id: str,
        actor_id: str,
        name: str | None = None,
        email: str | None = None,
    ) -> NewContactResult:
        """Create a project contact for an item's owner and re-resolve.

        Similar existing names are returned as a warning, not an error.
        """
        meeting, change_set, item = await self._load_item(meeting_id, temp_id, actor_id)
        identity = item.identity
        contact_name = name or (identity.name if identity else None)
        if not contact_name:
            raise InvalidEditError(f"Item {temp_id} has no owner name for a contact")

        before = await self._people.load_roster(meeting.project_id, meeting.attendees)
        similar = [p for p, _score in find_similar_names(contact_name, before.people)]

        try:
            contact = ProjectContact(
                project_id=meeting.project_id,
                name=contact_name,
                email=email or (identity.email if identity else None),
            )
        except ValidationError as e:
            raise InvalidEditError(f"Invalid contact: {e}") from e
        await self._people.create_contact(contact)

        roster = await self._people.load_roster(meeting.project_id, meeting.attendees)
        person = roster.find(PersonKind.CONTACT, str(contact.id))
        if person is None:
            raise PersonNotFoundError(str(contact.id))
        resolved = resolve_with_new_contact(
            identity or ResolvedIdentity(name=contact_name),
            person,
            roster,
            self._resolver,
        )
        saved = await self._save(change_set, actor_id, item.with_identity(resolved))
        return NewContactResult(change_set=saved, contact=contact, similar_names=similar)

    async def _load_item(
        self,
        meeting_id: UUID,
        temp_id: str,
        actor_id: str,
    ) -> tuple[Meeting, ProposedChangeSet, ProposedItem]:
        meeting = await self._meetings.get(meeting_id)
        if meeting is None:
            raise MeetingNotFoundError(meeting_id)
        if meeting.status == MeetingStatus.DELETED:
            raise MeetingDeletedError(meeting_id)
        if meeting.status != MeetingStatus.REVIEW:
            raise MeetingNotReviewableError(meeting_id, meeting.status.value)

        change_set = await self._change_sets.get_by_meeting(meeting_id)
        if change_set is None:
            raise ChangeSetNotFoundError(meeting_id)
        change_set = await self._locks.require_holder(change_set.id, actor_id)

        item = change_set.proposed_items.find(temp_id)
        if item is None:
            raise ItemNotFoundError(temp_id)
        if item.applied_entity_id is not None:
            raise InvalidEditError(f"Item {temp_id} was already published")
        return meeting, change_set, item

    async def _save(
        self,
        change_set: ProposedChangeSet,
        actor_id: str,
        item: ProposedItem,
    ) -> ProposedChangeSet:
        items = change_set.proposed_items.replace(item)
        written = await self._change_sets.update_items_if_locked(
            change_set.id, actor_id, items, self._locks.stale_cutoff()
        )
        if not written:
            raise LockNotHeldError(change_set.id, actor_id)

        logger.info(
            "change-set item edited",
            change_set_id=str(change_set.id),
            temp_id=item.temp_id,
            actor_id=actor_id,
        )
        saved = await self._change_sets.get(change_set.id)
        if saved is None:
            raise ChangeSetNotFoundError(change_set.id, by_meeting=False)
        return saved
