"""Tests for lock-guarded change-set edits."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.identity.resolver import IdentityResolver
from src.identity.schemas import PersonKind, ResolutionStatus
from src.models.enums import MeetingStatus
from src.models.proposals import (
    ActionItemProposal,
    DecisionProposal,
    ProposedChangeSet,
    ProposedItems,
)
from src.review.change_sets import ChangeSetEditor, blocking_items
from src.review.errors import (
    ChangeSetNotFoundError,
    InvalidEditError,
    ItemNotFoundError,
    LockNotHeldError,
    MeetingDeletedError,
    MeetingNotReviewableError,
    PersonNotFoundError,
)
from src.review.lock_manager import LockManager
from tests.factories import ambiguous_owner

ALICE = "user-alice"


@pytest.fixture
def locks(change_set_repo, people_repo, clock) -> LockManager:
    return LockManager(change_set_repo, people_repo, timedelta(minutes=30), clock)


@pytest.fixture
def editor(meeting_repo, change_set_repo, locks, people_repo) -> ChangeSetEditor:
    return ChangeSetEditor(meeting_repo, change_set_repo, locks, people_repo, IdentityResolver())


@pytest.fixture
def send_specs() -> ActionItemProposal:
    return ActionItemProposal(title="Send the specs", owner=ambiguous_owner("Carl Vendor"))


@pytest.fixture
def decision() -> DecisionProposal:
    return DecisionProposal(title="Use Postgres")


@pytest.fixture
async def change_set(
    change_set_repo, review_meeting, send_specs, decision, roster_people
) -> ProposedChangeSet:
    return await change_set_repo.create(
        ProposedChangeSet(
            meeting_id=review_meeting.id,
            proposed_items=ProposedItems(action_items=[send_specs], decisions=[decision]),
        )
    )


@pytest.fixture
async def locked(locks, change_set) -> ProposedChangeSet:
    await locks.acquire(change_set.id, ALICE, 1)
    return change_set


class TestView:
    async def test_get_without_lock(self, editor, change_set, review_meeting, send_specs):
        view = await editor.get(review_meeting.id, ALICE)

        assert view.change_set.id == change_set.id
        assert view.lock.holder is None
        assert view.blocking_items == [send_specs.temp_id]

    async def test_get_missing(self, editor):
        with pytest.raises(ChangeSetNotFoundError):
            await editor.get(uuid4())

    async def test_blocking_ignores_rejected_items(self, change_set, send_specs):
        rejected = change_set.proposed_items.replace(
            send_specs.model_copy(update={"accepted": False})
        )

        assert blocking_items(change_set.model_copy(update={"proposed_items": rejected})) == []


class TestLockGuard:
    async def test_edit_without_lock_fails(self, editor, change_set, review_meeting, send_specs):
        with pytest.raises(LockNotHeldError):
            await editor.set_accepted(review_meeting.id, send_specs.temp_id, ALICE, False)

    async def test_edit_by_non_holder_fails(self, editor, locked, review_meeting, send_specs):
        with pytest.raises(LockNotHeldError):
            await editor.set_accepted(review_meeting.id, send_specs.temp_id, "user-bob", False)

    async def test_edit_after_expiry_fails(
        self, editor, locked, review_meeting, send_specs, clock
    ):
        clock.advance(minutes=31)

        with pytest.raises(LockNotHeldError):
            await editor.set_accepted(review_meeting.id, send_specs.temp_id, ALICE, False)

    async def test_meeting_not_in_review(
        self, editor, locked, meeting_repo, review_meeting, send_specs
    ):
        await meeting_repo.set_status(review_meeting.id, MeetingStatus.PUBLISHED)

        with pytest.raises(MeetingNotReviewableError):
            await editor.set_accepted(review_meeting.id, send_specs.temp_id, ALICE, False)

    async def test_deleted_meeting(self, editor, locked, meeting_repo, review_meeting, send_specs):
        await meeting_repo.set_status(review_meeting.id, MeetingStatus.DELETED)

        with pytest.raises(MeetingDeletedError):
            await editor.set_accepted(review_meeting.id, send_specs.temp_id, ALICE, False)


class TestEdits:
    async def test_set_accepted_bumps_version(self, editor, locked, review_meeting, send_specs):
        saved = await editor.set_accepted(review_meeting.id, send_specs.temp_id, ALICE, False)

        assert saved.proposed_items.find(send_specs.temp_id).accepted is False
        assert saved.lock_version == 3
        assert saved.locked_by == ALICE

    async def test_edit_item_fields(self, editor, locked, review_meeting, decision):
        saved = await editor.edit_item(
            review_meeting.id,
            decision.temp_id,
            ALICE,
            {"title": "Use Postgres 16", "rationale": "LTS support"},
        )

        edited = saved.proposed_items.find(decision.temp_id)
        assert edited.title == "Use Postgres 16"
        assert edited.rationale == "LTS support"
        assert edited.temp_id == decision.temp_id

    @pytest.mark.parametrize(
        "field",
        [
            "temp_id",
            "kind",
            "operation",
            "external_id",
            "applied_entity_id",
            "owner",
            "decision_maker",
        ],
    )
    async def test_immutable_fields_rejected(
        self, editor, locked, review_meeting, decision, field
    ):
        with pytest.raises(InvalidEditError, match=field):
            await editor.edit_item(review_meeting.id, decision.temp_id, ALICE, {field: "x"})

    async def test_owner_cannot_be_patched_to_off_roster_person(
        self, editor, locked, review_meeting, send_specs, change_set_repo
    ):
        patch = {
            "owner": {
                "name": "Carl Vendor",
                "resolution_status": "resolved",
                "resolved_user_id": "user-nobody",
                "reviewer_override": True,
            }
        }

        with pytest.raises(InvalidEditError, match="owner"):
            await editor.edit_item(review_meeting.id, send_specs.temp_id, ALICE, patch)

        stored = await change_set_repo.get(locked.id)
        owner = stored.proposed_items.find(send_specs.temp_id).owner
        assert owner.resolution_status == ResolutionStatus.AMBIGUOUS
        assert owner.resolved_user_id is None
        assert blocking_items(stored) == [send_specs.temp_id]

    async def test_published_item_is_frozen(
        self, editor, locked, review_meeting, decision, change_set_repo
    ):
        applied = decision.model_copy(update={"applied_entity_id": uuid4()})
        await change_set_repo.update_items_if_locked(
            locked.id,
            ALICE,
            locked.proposed_items.replace(applied),
            datetime(2000, 1, 1, tzinfo=UTC),
        )

        with pytest.raises(InvalidEditError, match="already published"):
            await editor.set_accepted(review_meeting.id, decision.temp_id, ALICE, False)

    async def test_invalid_value_rejected(self, editor, locked, review_meeting, decision):
        with pytest.raises(InvalidEditError):
            await editor.edit_item(review_meeting.id, decision.temp_id, ALICE, {"title": ""})

    async def test_invalid_status_rejected(self, editor, locked, review_meeting, send_specs):
        with pytest.raises(InvalidEditError):
            await editor.edit_item(
                review_meeting.id, send_specs.temp_id, ALICE, {"status": "Done-ish"}
            )

    async def test_unknown_item(self, editor, locked, review_meeting):
        with pytest.raises(ItemNotFoundError):
            await editor.set_accepted(review_meeting.id, "missing", ALICE, True)


class TestOwnerResolution:
    async def test_resolve_manually_to_member(
        self, editor, locked, review_meeting, send_specs, roster_people
    ):
        saved = await editor.resolve_owner_manually(
            review_meeting.id, send_specs.temp_id, ALICE, PersonKind.USER, roster_people["bob"]
        )

        owner = saved.proposed_items.find(send_specs.temp_id).owner
        assert owner.resolution_status == ResolutionStatus.RESOLVED
        assert owner.resolved_user_id == "user-bob"
        assert owner.name == "Carl Vendor"
        assert owner.reviewer_override
        assert blocking_items(saved) == []

    async def test_resolve_decision_maker(
        self, editor, locked, review_meeting, decision, roster_people
    ):
        saved = await editor.resolve_owner_manually(
            review_meeting.id,
            decision.temp_id,
            ALICE,
            PersonKind.CONTACT,
            roster_people["carol"],
        )

        maker = saved.proposed_items.find(decision.temp_id).decision_maker
        assert maker.resolved_contact_id == roster_people["carol"]
        assert maker.name == "Carol Vendor"

    async def test_resolve_to_person_off_roster(
        self, editor, locked, review_meeting, send_specs, roster_people
    ):
        with pytest.raises(PersonNotFoundError):
            await editor.resolve_owner_manually(
                review_meeting.id,
                send_specs.temp_id,
                ALICE,
                PersonKind.USER,
                roster_people["admin"],
            )

    async def test_accept_placeholder(self, editor, locked, review_meeting, send_specs):
        saved = await editor.accept_owner_as_placeholder(
            review_meeting.id, send_specs.temp_id, ALICE
        )

        owner = saved.proposed_items.find(send_specs.temp_id).owner
        assert owner.resolution_status == ResolutionStatus.PLACEHOLDER
        assert owner.resolved_user_id is None
        assert not owner.is_blocking

    async def test_placeholder_needs_an_owner(self, editor, locked, review_meeting, decision):
        with pytest.raises(InvalidEditError):
            await editor.accept_owner_as_placeholder(review_meeting.id, decision.temp_id, ALICE)


class TestAddOwnerAsContact:
    async def test_creates_contact_and_warns_on_similar_names(
        self, editor, locked, review_meeting, send_specs, people_repo, roster_people
    ):
        result = await editor.add_owner_as_contact(review_meeting.id, send_specs.temp_id, ALICE)

        owner = result.change_set.proposed_items.find(send_specs.temp_id).owner
        assert result.contact.name == "Carl Vendor"
        assert owner.resolution_status == ResolutionStatus.RESOLVED
        assert owner.resolved_contact_id == str(result.contact.id)
        assert "Carol Vendor" in [p.name for p in result.similar_names]

        roster = await people_repo.load_roster(review_meeting.project_id)
        assert "Carl Vendor" in [p.name for p in roster.contacts]

    async def test_contact_with_email(self, editor, locked, review_meeting, decision):
        result = await editor.add_owner_as_contact(
            review_meeting.id,
            decision.temp_id,
            ALICE,
            name="Dan External",
            email="dan@example.com",
        )

        maker = result.change_set.proposed_items.find(decision.temp_id).decision_maker
        assert maker.resolved_contact_id == str(result.contact.id)
        assert maker.email == "dan@example.com"
        assert result.similar_names == []

    async def test_invalid_email(self, editor, locked, review_meeting, send_specs):
        with pytest.raises(InvalidEditError):
            await editor.add_owner_as_contact(
                review_meeting.id, send_specs.temp_id, ALICE, email="not-an-email"
            )

    async def test_no_name_available(self, editor, locked, review_meeting, decision):
        with pytest.raises(InvalidEditError):
            await editor.add_owner_as_contact(review_meeting.id, decision.temp_id, ALICE)

    async def test_requires_lock(self, editor, change_set, review_meeting, send_specs):
        with pytest.raises(LockNotHeldError):
            await editor.add_owner_as_contact(review_meeting.id, send_specs.temp_id, ALICE)
