"""Tests for ProposalExtractor service."""

from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

from src.extraction.prompts import NO_OPEN_ITEMS
from src.extraction.schemas import (
    ExtractedActionItem,
    ExtractedDecision,
    ExtractedProposals,
    ExtractedRisk,
)
from src.models.decision import Decision
from src.models.enums import RiskLevel
from src.models.meeting import Meeting
from src.models.participant import MeetingAttendee
from src.models.risk import Risk
from src.search.relevance import KindCounts, RelevanceStats, RelevantContext
from src.services.llm_client import LLMClient, LLMClientError
from src.services.proposal_extractor import ProposalExtractor, open_item_lines
from tests.factories import PROJECT_ID, action_item

ITEM_ID = UUID("12345678-1234-5678-1234-567812345678")


def context(**items) -> RelevantContext:
    return RelevantContext(
        **items,
        stats=RelevanceStats(total_open=KindCounts(), included=KindCounts(), method="passthrough"),
    )


@pytest.fixture
def mock_llm_client():
    client = MagicMock(spec=LLMClient)
    client.extract = AsyncMock(return_value=ExtractedProposals())
    return client


@pytest.fixture
def meeting() -> Meeting:
    return Meeting(
        project_id=PROJECT_ID,
        title="Weekly Sync",
        meeting_date=datetime(2026, 1, 18, 10, 0, 0),
        transcript="[00:01:30] Bob: I'll send the updated specs by Friday.",
        attendees=[
            MeetingAttendee(name="Bob Smith", email="bob@x.com"),
            MeetingAttendee(name="Guest"),
        ],
    )


class TestPrompt:
    def test_meeting_details_rendered(self, mock_llm_client, meeting):
        prompt = ProposalExtractor(mock_llm_client).build_prompt(meeting, context())

        assert "Meeting: Weekly Sync" in prompt
        assert "Date: 2026-01-18" in prompt
        assert "Attendees: Bob Smith <bob@x.com>, Guest" in prompt
        assert "I'll send the updated specs by Friday." in prompt
        assert NO_OPEN_ITEMS in prompt

    def test_unknown_title_and_date(self, mock_llm_client):
        bare = Meeting(project_id=PROJECT_ID, transcript="hello")

        prompt = ProposalExtractor(mock_llm_client).build_prompt(bare, context())

        assert "Meeting: Untitled Meeting" in prompt
        assert "Date: unknown" in prompt
        assert "Attendees: unknown" in prompt

    def test_open_items_listed_with_ids(self, mock_llm_client, meeting):
        item = action_item(
            id=ITEM_ID, owner_name="Bob", due_date=date(2026, 1, 23)
        )
        decision = Decision(project_id=PROJECT_ID, title="Use Postgres")
        risk = Risk(project_id=PROJECT_ID, title="Vendor delay", probability=RiskLevel.HIGH)

        prompt = ProposalExtractor(mock_llm_client).build_prompt(
            meeting, context(action_items=[item], decisions=[decision], risks=[risk])
        )

        assert (
            f"- action_item {ITEM_ID} [Open] Send the specs (owner: Bob) (due 2026-01-23)"
            in prompt
        )
        assert f"- decision {decision.id} [Proposed] Use Postgres" in prompt
        assert f"- risk {risk.id} [Open] Vendor delay (P:High I:Med)" in prompt

    def test_open_item_lines_empty(self):
        assert open_item_lines(context()) == []


class TestExtract:
    async def test_low_confidence_dropped(self, mock_llm_client, meeting):
        mock_llm_client.extract.return_value = ExtractedProposals(
            action_items=[
                ExtractedActionItem(title="Send specs", confidence=0.9),
                ExtractedActionItem(title="Maybe lunch", confidence=0.3),
            ],
            decisions=[ExtractedDecision(title="Use Postgres", confidence=0.5)],
            risks=[ExtractedRisk(title="Vague worry", confidence=0.49)],
        )

        result = await ProposalExtractor(mock_llm_client, 0.5).extract(meeting, context())

        assert [i.title for i in result.action_items] == ["Send specs"]
        assert [d.title for d in result.decisions] == ["Use Postgres"]
        assert result.risks == []

    async def test_custom_threshold(self, mock_llm_client, meeting):
        mock_llm_client.extract.return_value = ExtractedProposals(
            action_items=[ExtractedActionItem(title="Send specs", confidence=0.8)]
        )

        result = await ProposalExtractor(mock_llm_client, 0.9).extract(meeting, context())

        assert len(result) == 0

    async def test_llm_called_with_schema(self, mock_llm_client, meeting):
        await ProposalExtractor(mock_llm_client).extract(meeting, context())

        prompt, schema = mock_llm_client.extract.await_args.args
        assert schema is ExtractedProposals
        assert "Weekly Sync" in prompt

    async def test_llm_error_propagates(self, mock_llm_client, meeting):
        mock_llm_client.extract.side_effect = LLMClientError("Anthropic API error")

        with pytest.raises(LLMClientError):
            await ProposalExtractor(mock_llm_client).extract(meeting, context())
