"""Tests for canonical entity repositories."""

import asyncio
from datetime import UTC, date, datetime, timedelta

import pytest

from src.models.canonical import EntityUpdate
from src.models.decision import Decision
from src.models.enums import (
    DecisionStatus,
    EntityStatus,
    EntityType,
    RiskLevel,
    UpdateSource,
)
from src.models.risk import Risk
from tests.factories import OTHER_PROJECT_ID, PROJECT_ID, action_item


def narrative(content: str) -> EntityUpdate:
    return EntityUpdate(
        content=content,
        created_by_name="Alice Johnson (via AI)",
        source=UpdateSource.AI_MEETING_PROCESSING,
    )


@pytest.fixture
def actions(entity_repos):
    return entity_repos[EntityType.ACTION_ITEM]


class TestCreateAndGet:
    async def test_round_trip_action_item(self, actions):
        item = action_item(
            description="Send the specs to the vendor",
            due_date=date(2026, 1, 23),
            owner_user_id="user-alice",
            owner_name="Alice",
            embedding=[0.1, 0.2, 0.3],
        )

        await actions.create(item)
        loaded = await actions.get(item.id)

        assert loaded is not None
        assert loaded.title == "Send the specs"
        assert loaded.due_date == date(2026, 1, 23)
        assert loaded.status == EntityStatus.OPEN
        assert loaded.owner_user_id == "user-alice"
        assert loaded.embedding == pytest.approx([0.1, 0.2, 0.3])
        assert loaded.updates == []

    async def test_round_trip_decision_owner_prefix(self, entity_repos):
        repo = entity_repos[EntityType.DECISION]
        decision = Decision(
            project_id=PROJECT_ID,
            title="Use Postgres",
            rationale="Team knows it",
            decision_maker_name="Bob",
            decision_maker_user_id="user-bob",
        )

        await repo.create(decision)
        loaded = await repo.get(decision.id)

        assert loaded.owner().user_id == "user-bob"
        assert loaded.owner().name == "Bob"
        assert loaded.status == DecisionStatus.PROPOSED

    async def test_round_trip_risk_levels(self, entity_repos):
        repo = entity_repos[EntityType.RISK]
        risk = Risk(
            project_id=PROJECT_ID,
            title="Vendor delay",
            probability=RiskLevel.HIGH,
            impact=RiskLevel.LOW,
        )

        await repo.create(risk)
        loaded = await repo.get(risk.id)

        assert loaded.probability == RiskLevel.HIGH
        assert loaded.impact == RiskLevel.LOW

    async def test_get_missing_returns_none(self, actions):
        item = action_item()
        assert await actions.get(item.id) is None

    async def test_get_in_project_scopes_by_project(self, actions):
        item = action_item()
        await actions.create(item)

        assert await actions.get_in_project(PROJECT_ID, item.id) is not None
        assert await actions.get_in_project(OTHER_PROJECT_ID, item.id) is None


class TestApplyUpdate:
    async def test_writes_fields_and_appends_narrative(self, actions):
        item = action_item()
        await actions.create(item)

        updated = await actions.apply_update(
            item.id,
            {"status": EntityStatus.IN_PROGRESS, "due_date": date(2026, 2, 1)},
            narrative("Updated via meeting review: Status: Open → In Progress."),
        )

        loaded = await actions.get(item.id)
        assert updated
        assert loaded.status == EntityStatus.IN_PROGRESS
        assert loaded.due_date == date(2026, 2, 1)
        assert len(loaded.updates) == 1
        assert loaded.updates[0].source == UpdateSource.AI_MEETING_PROCESSING

    async def test_narratives_accumulate_in_order(self, actions):
        item = action_item()
        await actions.create(item)

        for n in range(3):
            await actions.apply_update(item.id, {}, narrative(f"entry {n}"))

        loaded = await actions.get(item.id)
        assert [u.content for u in loaded.updates] == ["entry 0", "entry 1", "entry 2"]

    async def test_concurrent_appends_keep_every_entry(self, actions):
        item = action_item()
        await actions.create(item)

        await asyncio.gather(
            *(actions.apply_update(item.id, {}, narrative(f"n{i}")) for i in range(5))
        )

        loaded = await actions.get(item.id)
        assert sorted(u.content for u in loaded.updates) == [f"n{i}" for i in range(5)]

    async def test_sets_updated_at(self, actions):
        item = action_item()
        await actions.create(item)
        later = datetime(2030, 1, 1, tzinfo=UTC)

        await actions.apply_update(item.id, {"title": "New title"}, narrative("x"), now=later)

        loaded = await actions.get(item.id)
        assert loaded.updated_at == later
        assert loaded.title == "New title"

    async def test_missing_record_returns_false(self, actions):
        assert not await actions.apply_update(action_item().id, {}, narrative("x"))

    @pytest.mark.parametrize("column", ["updates", "project_id", "not_a_column"])
    async def test_rejects_protected_or_unknown_columns(self, actions, column):
        item = action_item()
        await actions.create(item)

        with pytest.raises(ValueError, match="Cannot update columns"):
            await actions.apply_update(item.id, {column: "x"}, narrative("x"))


class TestListOpen:
    async def test_excludes_closed_and_other_projects(self, actions):
        open_item = action_item(title="Open one")
        closed_item = action_item(title="Closed one", status=EntityStatus.CLOSED)
        foreign = action_item(title="Elsewhere", project_id=OTHER_PROJECT_ID)
        for item in (open_item, closed_item, foreign):
            await actions.create(item)

        result = await actions.list_open(PROJECT_ID)

        assert [i.title for i in result] == ["Open one"]

    async def test_most_recent_first_with_limit(self, actions):
        base = datetime(2026, 1, 1, tzinfo=UTC)
        for n in range(4):
            await actions.create(
                action_item(title=f"item {n}", updated_at=base + timedelta(days=n))
            )

        result = await actions.list_open(PROJECT_ID, limit=2)

        assert [i.title for i in result] == ["item 3", "item 2"]

    async def test_updated_since(self, actions):
        base = datetime(2026, 1, 1, tzinfo=UTC)
        await actions.create(action_item(title="old", updated_at=base))
        await actions.create(action_item(title="new", updated_at=base + timedelta(days=10)))

        result = await actions.list_open(PROJECT_ID, updated_since=base + timedelta(days=5))

        assert [i.title for i in result] == ["new"]

    async def test_superseded_decisions_are_not_open(self, entity_repos):
        repo = entity_repos[EntityType.DECISION]
        await repo.create(Decision(project_id=PROJECT_ID, title="Live", status=DecisionStatus.APPROVED))
        await repo.create(
            Decision(project_id=PROJECT_ID, title="Old", status=DecisionStatus.SUPERSEDED)
        )

        result = await repo.list_open(PROJECT_ID)

        assert [d.title for d in result] == ["Live"]
