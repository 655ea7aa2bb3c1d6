"""Tests for canonical record models."""

from datetime import date, timedelta

from src.models.decision import Decision
from src.models.enums import DecisionStatus, EntityStatus, MeetingStatus, RiskLevel
from src.models.meeting import Meeting
from src.models.risk import Risk
from tests.factories import PROJECT_ID, action_item


class TestActionItem:
    def test_assignment(self):
        assert not action_item().is_assigned
        assert action_item(owner_contact_id="c-1").is_assigned

    def test_overdue(self):
        yesterday = date.today() - timedelta(days=1)

        assert action_item(due_date=yesterday).is_overdue
        assert not action_item(due_date=yesterday, status=EntityStatus.CLOSED).is_overdue
        assert not action_item().is_overdue

    def test_closed_status(self):
        assert action_item(status=EntityStatus.CLOSED).is_closed
        assert not action_item(status=EntityStatus.IN_PROGRESS).is_closed

    def test_snapshot_leaves_out_embedding(self):
        snapshot = action_item(embedding=[0.1, 0.2], owner_name="Bob").snapshot()

        assert "embedding" not in snapshot
        assert snapshot["owner_name"] == "Bob"
        assert snapshot["status"] == "Open"


class TestDecision:
    def test_superseded_is_closed(self):
        decision = Decision(project_id=PROJECT_ID, title="x", status=DecisionStatus.SUPERSEDED)

        assert decision.is_closed
        assert not Decision(project_id=PROJECT_ID, title="x").is_closed

    def test_owner_uses_decision_maker_fields(self):
        decision = Decision(
            project_id=PROJECT_ID, title="x", decision_maker_user_id="u-1", rationale="  "
        )

        assert decision.owner().user_id == "u-1"
        assert not decision.has_rationale


class TestRisk:
    def test_severity(self):
        assert Risk(project_id=PROJECT_ID, title="x", impact=RiskLevel.HIGH).is_high_severity
        assert not Risk(project_id=PROJECT_ID, title="x").is_high_severity

    def test_mitigation(self):
        assert Risk(project_id=PROJECT_ID, title="x", mitigation="Backup vendor").has_mitigation
        assert not Risk(project_id=PROJECT_ID, title="x").has_mitigation


class TestMeeting:
    def test_publishable_only_in_review(self):
        meeting = Meeting(project_id=PROJECT_ID, status=MeetingStatus.REVIEW)

        assert meeting.is_publishable
        assert not Meeting(project_id=PROJECT_ID).is_publishable

    def test_blank_transcript(self):
        assert not Meeting(project_id=PROJECT_ID, transcript="  ").has_transcript
