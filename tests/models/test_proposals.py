"""Tests for proposal models and the change-set container."""

from uuid import uuid4

import pytest
from pydantic import TypeAdapter, ValidationError

from src.models.enums import EntityType, Operation
from src.models.proposals import (
    ActionItemProposal,
    DecisionProposal,
    ProposedChangeSet,
    ProposedItem,
    ProposedItems,
    RiskProposal,
)
from tests.factories import ambiguous_owner, resolved_owner


@pytest.fixture
def items() -> ProposedItems:
    return ProposedItems(
        action_items=[ActionItemProposal(title="a1"), ActionItemProposal(title="a2")],
        decisions=[DecisionProposal(title="d1", accepted=False)],
        risks=[RiskProposal(title="r1")],
    )


class TestProposal:
    @pytest.mark.parametrize("operation", [Operation.UPDATE, Operation.CLOSE])
    def test_update_and_close_need_target(self, operation):
        with pytest.raises(ValidationError, match="requires external_id"):
            ActionItemProposal(title="x", operation=operation)

    def test_create_needs_no_target(self):
        proposal = RiskProposal(title="New risk")

        assert proposal.operation == Operation.CREATE
        assert proposal.accepted
        assert proposal.entity_type == EntityType.RISK

    def test_temp_ids_unique(self):
        assert ActionItemProposal(title="x").temp_id != ActionItemProposal(title="x").temp_id

    def test_title_stripped_and_required(self):
        assert DecisionProposal(title="  Use Postgres ").title == "Use Postgres"
        with pytest.raises(ValidationError):
            DecisionProposal(title="   ")

    def test_identity_is_owner_or_decision_maker(self):
        owner = resolved_owner("Alice", "user-alice")
        maker = ambiguous_owner("Sarah")

        assert ActionItemProposal(title="x", owner=owner).identity == owner
        assert DecisionProposal(title="x", decision_maker=maker).identity == maker
        assert DecisionProposal(title="x").with_identity(owner).decision_maker == owner
        assert RiskProposal(title="x").with_identity(maker).owner == maker

    def test_discriminated_union(self):
        adapter = TypeAdapter(ProposedItem)

        parsed = adapter.validate_python({"kind": "risk", "title": "Slip"})

        assert isinstance(parsed, RiskProposal)
        with pytest.raises(ValidationError):
            adapter.validate_python({"kind": "issue", "title": "Slip"})

    def test_first_quote(self):
        proposal = ActionItemProposal(
            title="x",
            evidence=[{"quote": "first"}, {"quote": "second"}],
        )

        assert proposal.first_quote == "first"
        assert ActionItemProposal(title="y").first_quote is None


class TestProposedItems:
    def test_publish_order(self, items):
        assert [i.title for i in items.all_items()] == ["a1", "a2", "d1", "r1"]

    def test_accepted_items(self, items):
        assert [i.title for i in items.accepted_items()] == ["a1", "a2", "r1"]
        assert len(items) == 4

    def test_find(self, items):
        target = items.risks[0]

        assert items.find(target.temp_id) is target
        assert items.find("nope") is None

    def test_replace_keeps_position(self, items):
        edited = items.action_items[0].model_copy(update={"title": "a1 edited"})

        replaced = items.replace(edited)

        assert [i.title for i in replaced.action_items] == ["a1 edited", "a2"]
        assert items.action_items[0].title == "a1"

    def test_replace_unknown_raises(self, items):
        with pytest.raises(KeyError):
            items.replace(ActionItemProposal(title="stranger"))

    def test_change_set_json_round_trip(self, items):
        change_set = ProposedChangeSet(meeting_id=uuid4(), proposed_items=items)

        loaded = ProposedChangeSet.model_validate_json(change_set.model_dump_json())

        assert loaded.proposed_items == items
        assert loaded.lock_version == 1
        assert loaded.locked_by is None
