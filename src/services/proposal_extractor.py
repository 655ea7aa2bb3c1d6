"""ProposalExtractor service for proposing changes from transcripts.

Builds one prompt from the transcript and the relevant open items, calls
the LLM for structured output and drops low-confidence proposals.
Identity resolution and date normalization happen downstream in the
meeting processor.
"""

import logging

from src.extraction.prompts import PROPOSAL_PROMPT, format_open_items
from src.extraction.schemas import ExtractedProposals
from src.models.meeting import Meeting
from src.search.relevance import RelevantContext
from src.services.llm_client import LLMClient

logger = logging.getLogger(__name__)


def open_item_lines(context: RelevantContext) -> list[str]:
    """One prompt line per open item: kind, id, status, title."""
    lines: list[str] = []
    for item in context.action_items:
        owner = f" (owner: {item.owner_name})" if item.owner_name else ""
        due = f" (due {item.due_date.isoformat()})" if item.due_date else ""
        lines.append(
            f"- action_item {item.id} [{item.status.value}] {item.title}{owner}{due}"
        )
    for item in context.decisions:
        lines.append(f"- decision {item.id} [{item.status.value}] {item.title}")
    for item in context.risks:
        lines.append(
            f"- risk {item.id} [{item.status.value}] {item.title} "
            f"(P:{item.probability.value} I:{item.impact.value})"
        )
    return lines


class ProposalExtractor:
    """Extracts proposed action items, decisions and risks using the LLM.

    Applies a confidence threshold after extraction.
    """

    def __init__(self, llm_client: LLMClient, confidence_threshold: float = 0.5):
        """Initialize extractor with LLM client and threshold.

        Args:
            llm_client: LLM client for structured extraction
            confidence_threshold: Minimum confidence to include item (0.0-1.0)
        """
        self._llm_client = llm_client
        self._confidence_threshold = confidence_threshold

    def build_prompt(self, meeting: Meeting, context: RelevantContext) -> str:
        """Render the extraction prompt for a meeting."""
        attendees = ", ".join(
            f"{a.name} <{a.email}>" if a.email else a.name for a in meeting.attendees
        )
        return PROPOSAL_PROMPT.format(
            meeting_title=meeting.title or "Untitled Meeting",
            meeting_date=meeting.meeting_date.date().isoformat()
            if meeting.meeting_date
            else "unknown",
            attendees=attendees or "unknown",
            transcript=meeting.transcript or "",
            open_items=format_open_items(open_item_lines(context)),
        )

    async def extract(
        self,
        meeting: Meeting,
        context: RelevantContext,
    ) -> ExtractedProposals:
        """Propose changes for a meeting.

        Args:
            meeting: Meeting with transcript
            context: Open items the model may update or close

        Returns:
            ExtractedProposals with items at or above the threshold

        Raises:
            LLMClientError: If the LLM call fails
        """
        result = await self._llm_client.extract(
            self.build_prompt(meeting, context),
            ExtractedProposals,
        )

        filtered = ExtractedProposals(
            action_items=[
                i for i in result.action_items if i.confidence >= self._confidence_threshold
            ],
            decisions=[
                i for i in result.decisions if i.confidence >= self._confidence_threshold
            ],
            risks=[i for i in result.risks if i.confidence >= self._confidence_threshold],
        )
        dropped = len(result) - len(filtered)
        if dropped:
            logger.info(f"Dropped {dropped} low-confidence proposals for meeting {meeting.id}")
        return filtered
