"""Meeting processing: transcript -> proposed change-set ready for review.

Draft (or Failed) meetings move to Processing, get their proposals
extracted and owners resolved, and land in Review with a fresh, unlocked
change-set. Any failure leaves the meeting in Failed.
"""

from uuid import UUID

import structlog
from pydantic import ValidationError

from src.extraction.date_normalizer import normalize_due_date
from src.extraction.schemas import (
    ExtractedActionItem,
    ExtractedDecision,
    ExtractedEvidence,
    ExtractedItemBase,
    ExtractedPerson,
    ExtractedProposals,
    ExtractedRisk,
)
from src.identity.resolver import IdentityResolver
from src.identity.schemas import ResolvedIdentity, RosterSnapshot
from src.models.enums import MeetingStatus, Operation
from src.models.evidence import EvidenceQuote
from src.models.meeting import Meeting
from src.models.proposals import (
    ActionItemProposal,
    DecisionProposal,
    ProposedChangeSet,
    ProposedItems,
    RiskProposal,
)
from src.repositories.change_set_repo import ChangeSetRepository
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.people_repo import PeopleRepository
from src.review.errors import (
    MeetingDeletedError,
    MeetingNotFoundError,
    MeetingNotProcessableError,
)
from src.search.relevance import RelevanceFilter
from src.services.proposal_extractor import ProposalExtractor

logger = structlog.get_logger()

PROCESSABLE_STATUSES = (MeetingStatus.DRAFT, MeetingStatus.FAILED)


class MeetingProcessor:
    """Turns a meeting transcript into a reviewable change-set."""

    def __init__(
        self,
        meetings: MeetingRepository,
        change_sets: ChangeSetRepository,
        people: PeopleRepository,
        relevance: RelevanceFilter,
        extractor: ProposalExtractor,
        resolver: IdentityResolver,
    ):
        self._meetings = meetings
        self._change_sets = change_sets
        self._people = people
        self._relevance = relevance
        self._extractor = extractor
        self._resolver = resolver

    async def process(self, meeting_id: UUID) -> ProposedChangeSet:
        """Extract proposals for a meeting and put it in Review.

        Args:
            meeting_id: Meeting to process

        Returns:
            The newly created change-set (version 1, unlocked)

        Raises:
            MeetingNotFoundError: Unknown meeting
            MeetingDeletedError: Meeting was deleted
            MeetingNotProcessableError: Wrong status or no transcript
        """
        meeting = await self._meetings.get(meeting_id)
        if meeting is None:
            raise MeetingNotFoundError(meeting_id)
        if meeting.status == MeetingStatus.DELETED:
            raise MeetingDeletedError(meeting_id)
        if meeting.status not in PROCESSABLE_STATUSES:
            raise MeetingNotProcessableError(meeting_id, f"status is {meeting.status.value}")
        if not meeting.has_transcript:
            raise MeetingNotProcessableError(meeting_id, "no transcript")

        if not await self._meetings.transition_status(
            meeting_id, meeting.status, MeetingStatus.PROCESSING
        ):
            raise MeetingNotProcessableError(meeting_id, "already being processed")

        log = logger.bind(meeting_id=str(meeting_id), project_id=meeting.project_id)
        log.info("processing meeting")

        try:
            context = await self._relevance.get_relevant_context(
                meeting.project_id, meeting.transcript or ""
            )
            extracted = await self._extractor.extract(meeting, context)
            roster = await self._people.load_roster(meeting.project_id, meeting.attendees)
            items = self.build_items(extracted, roster, meeting)

            await self._change_sets.delete_for_meeting(meeting_id)
            change_set = await self._change_sets.create(
                ProposedChangeSet(meeting_id=meeting_id, proposed_items=items)
            )
            await self._meetings.set_status(meeting_id, MeetingStatus.REVIEW)
        except Exception as e:
            log.error("meeting processing failed", error=str(e))
            await self._meetings.set_status(meeting_id, MeetingStatus.FAILED)
            raise

        log.info(
            "meeting ready for review",
            change_set_id=str(change_set.id),
            action_items=len(items.action_items),
            decisions=len(items.decisions),
            risks=len(items.risks),
            context_method=context.stats.method,
        )
        return change_set

    def build_items(
        self,
        extracted: ExtractedProposals,
        roster: RosterSnapshot,
        meeting: Meeting,
    ) -> ProposedItems:
        """Convert LLM output into proposals with resolved owners.

        update/close proposals without a usable external id are dropped.
        """
        action_items = [
            item
            for raw in extracted.action_items
            if (item := self._convert(raw, roster, meeting)) is not None
        ]
        decisions = [
            item
            for raw in extracted.decisions
            if (item := self._convert(raw, roster, meeting)) is not None
        ]
        risks = [
            item
            for raw in extracted.risks
            if (item := self._convert(raw, roster, meeting)) is not None
        ]
        return ProposedItems(action_items=action_items, decisions=decisions, risks=risks)

    def _resolve(
        self,
        person: ExtractedPerson | None,
        roster: RosterSnapshot,
    ) -> ResolvedIdentity | None:
        if person is None or not person.name.strip():
            return None
        return self._resolver.resolve(person.name, person.email, roster)

    @staticmethod
    def _evidence(quotes: list[ExtractedEvidence]) -> list[EvidenceQuote]:
        return [
            EvidenceQuote(quote=q.quote, speaker=q.speaker, timestamp=q.timestamp)
            for q in quotes
            if q.quote and q.quote.strip()
        ]

    @staticmethod
    def _external_id(raw: ExtractedItemBase) -> UUID | None:
        if not raw.external_id:
            return None
        try:
            return UUID(raw.external_id.strip())
        except ValueError:
            return None

    def _convert(
        self,
        raw: ExtractedActionItem | ExtractedDecision | ExtractedRisk,
        roster: RosterSnapshot,
        meeting: Meeting,
    ) -> ActionItemProposal | DecisionProposal | RiskProposal | None:
        operation = Operation(raw.operation)
        external_id = self._external_id(raw) if operation != Operation.CREATE else None
        if operation != Operation.CREATE and external_id is None:
            logger.warning(
                "dropping proposal without external id",
                meeting_id=str(meeting.id),
                operation=operation.value,
                title=raw.title,
            )
            return None

        common = {
            "operation": operation,
            "external_id": external_id,
            "title": raw.title,
            "evidence": self._evidence(raw.evidence),
            "status": raw.status,
        }
        try:
            if isinstance(raw, ExtractedActionItem):
                return ActionItemProposal(
                    **common,
                    description=raw.description,
                    due_date=normalize_due_date(raw.due_date_raw, meeting.meeting_date),
                    owner=self._resolve(raw.owner, roster),
                )
            if isinstance(raw, ExtractedDecision):
                return DecisionProposal(
                    **common,
                    rationale=raw.rationale,
                    impact=raw.impact,
                    outcome=raw.outcome,
                    decision_maker=self._resolve(raw.decision_maker, roster),
                )
            return RiskProposal(
                **common,
                description=raw.description,
                probability=raw.probability,
                impact=raw.impact,
                mitigation=raw.mitigation,
                owner=self._resolve(raw.owner, roster),
            )
        except ValidationError as e:
            logger.warning(
                "dropping invalid proposal",
                meeting_id=str(meeting.id),
                title=raw.title,
                error=str(e),
            )
            return None
