"""Publish a reviewed change-set into the project's canonical records.

Publish is best-effort and sequential: accepted items are applied one at
a time (action items, then decisions, then risks). Embedding and audit
failures are logged and counted; a datastore failure on an item write
aborts the loop and earlier items stay applied. Each applied item is
marked on the change-set, so a retried publish skips it.
"""

import time
from typing import Any
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from src.identity.review import is_blocking
from src.models.canonical import CanonicalEntity
from src.models.enums import EntityType, MeetingStatus, Operation
from src.models.evidence import AuditLogEntry, Evidence
from src.models.meeting import Meeting
from src.models.proposals import ProposedChangeSet, ProposedItem, ProposedItems
from src.repositories.audit_repo import AuditLogRepository
from src.repositories.change_set_repo import ChangeSetRepository
from src.repositories.entity_repo import EntityRepository
from src.repositories.evidence_repo import EvidenceRepository
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.people_repo import PeopleRepository
from src.review.errors import (
    ChangeSetNotFoundError,
    InvalidProposalError,
    LockConflictError,
    LockNotHeldError,
    MeetingDeletedError,
    MeetingNotFoundError,
    MeetingNotReviewableError,
    PublishFailedError,
    UnresolvedIdentityError,
)
from src.review.lock_manager import LockManager
from src.review.narrative import DEFAULT_QUOTE_MAX_LENGTH, build_narrative
from src.services.embedding_client import EmbeddingClient

logger = structlog.get_logger()

# Proposal fields written to the record, per kind (owner fields added separately)
ENTITY_FIELDS: dict[EntityType, set[str]] = {
    EntityType.ACTION_ITEM: {"title", "description", "status", "due_date"},
    EntityType.DECISION: {"title", "rationale", "impact", "outcome", "status"},
    EntityType.RISK: {
        "title",
        "description",
        "probability",
        "impact",
        "mitigation",
        "status",
    },
}


class OperationCounts(BaseModel):
    """Applied operations for one entity kind."""

    created: int = 0
    updated: int = 0
    closed: int = 0

    def bump(self, operation: Operation) -> None:
        if operation == Operation.CREATE:
            self.created += 1
        elif operation == Operation.UPDATE:
            self.updated += 1
        else:
            self.closed += 1


class PublishResult(BaseModel):
    """Outcome of a publish (also the partial state of a failed one)."""

    meeting_id: UUID
    change_set_id: UUID
    action_items: OperationCounts = Field(default_factory=OperationCounts)
    decisions: OperationCounts = Field(default_factory=OperationCounts)
    risks: OperationCounts = Field(default_factory=OperationCounts)
    evidence_count: int = 0
    audit_count: int = 0
    audit_failures: int = 0
    embedding_failures: int = 0
    skipped: int = Field(default=0, description="Unaccepted items")
    already_applied: int = Field(
        default=0,
        description="Items written by an earlier, failed publish",
    )
    meeting_status: MeetingStatus = MeetingStatus.REVIEW
    lock_released: bool = False
    duration_ms: int = 0

    def counts_for(self, entity_type: EntityType) -> OperationCounts:
        return {
            EntityType.ACTION_ITEM: self.action_items,
            EntityType.DECISION: self.decisions,
            EntityType.RISK: self.risks,
        }[entity_type]

    @property
    def records_written(self) -> int:
        return sum(
            c.created + c.updated + c.closed
            for c in (self.action_items, self.decisions, self.risks)
        )


class MeetingPublisher:
    """Applies a reviewed change-set to canonical state."""

    def __init__(
        self,
        meetings: MeetingRepository,
        change_sets: ChangeSetRepository,
        lock_manager: LockManager,
        people: PeopleRepository,
        entity_repos: dict[EntityType, EntityRepository],
        evidence: EvidenceRepository,
        audit: AuditLogRepository,
        embedder: EmbeddingClient | None = None,
        quote_max_length: int = DEFAULT_QUOTE_MAX_LENGTH,
    ):
        """Initialize the publisher.

        Args:
            meetings: Meeting repository
            change_sets: Change-set repository
            lock_manager: Lock arbitration
            people: Profile lookup (publisher display name)
            entity_repos: Repository per entity kind
            evidence: Evidence repository
            audit: Audit sink
            embedder: Embedding client (None disables embeddings)
            quote_max_length: Narrative quote truncation limit
        """
        self._meetings = meetings
        self._change_sets = change_sets
        self._locks = lock_manager
        self._people = people
        self._repos = entity_repos
        self._evidence = evidence
        self._audit = audit
        self._embedder = embedder
        self._quote_max_length = quote_max_length

    async def publish(self, meeting_id: UUID, actor_id: str) -> PublishResult:
        """Publish a meeting's reviewed change-set.

        Preconditions are checked in order and each fails distinctly,
        before anything is written.

        Args:
            meeting_id: Meeting to publish
            actor_id: Reviewer publishing

        Returns:
            PublishResult with per-kind counts

        Raises:
            MeetingNotFoundError: Unknown meeting
            MeetingNotReviewableError: Meeting deleted or not in Review
            ChangeSetNotFoundError: Meeting has no change-set
            LockConflictError: Another reviewer holds the lock, or the
                change-set moved since it was read
            UnresolvedIdentityError: Accepted items with blocking owners
            InvalidProposalError: update/close targeting a missing record
            PublishFailedError: Datastore failure mid-apply
        """
        started = time.perf_counter()

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

        if (
            change_set.locked_by is not None
            and change_set.locked_by != actor_id
            and not self._locks.is_expired(change_set)
        ):
            raise LockConflictError(
                change_set.id,
                holder=change_set.locked_by,
                locked_at=change_set.locked_at,
                current_version=change_set.lock_version,
                expired=False,
            )

        accepted = change_set.proposed_items.accepted_items()
        blocking = [item.temp_id for item in accepted if is_blocking(item.identity)]
        if blocking:
            raise UnresolvedIdentityError(blocking)

        await self._validate_targets(meeting, accepted)
        change_set = await self._reacquire(change_set, actor_id)

        result = PublishResult(
            meeting_id=meeting_id,
            change_set_id=change_set.id,
            skipped=len(change_set.proposed_items) - len(accepted),
        )
        publisher_name = await self._publisher_name(actor_id)

        logger.info(
            "publishing change-set",
            meeting_id=str(meeting_id),
            change_set_id=str(change_set.id),
            actor_id=actor_id,
            accepted=len(accepted),
            skipped=result.skipped,
        )

        items = change_set.proposed_items
        for item in accepted:
            if item.applied_entity_id is not None:
                result.already_applied += 1
                continue
            try:
                entity_id = await self._apply_item(
                    item, meeting, actor_id, publisher_name, result
                )
                items = await self._mark_applied(change_set, items, item, entity_id, actor_id)
            except Exception as e:
                logger.error(
                    "publish aborted on item write",
                    meeting_id=str(meeting_id),
                    temp_id=item.temp_id,
                    kind=item.kind,
                    operation=item.operation.value,
                    error=str(e),
                )
                result.duration_ms = int((time.perf_counter() - started) * 1000)
                raise PublishFailedError(
                    f"Publish of meeting {meeting_id} failed on {item.kind} "
                    f"{item.temp_id}; earlier items remain applied and are skipped on retry",
                    partial=result.model_dump(mode="json"),
                ) from e

        if await self._meetings.transition_status(
            meeting_id, MeetingStatus.REVIEW, MeetingStatus.PUBLISHED
        ):
            result.meeting_status = MeetingStatus.PUBLISHED
        else:
            logger.warning(
                "meeting left review during publish",
                meeting_id=str(meeting_id),
            )

        result.lock_released = await self._locks.release(change_set.id, actor_id)
        result.duration_ms = int((time.perf_counter() - started) * 1000)

        logger.info(
            "published change-set",
            meeting_id=str(meeting_id),
            records=result.records_written,
            already_applied=result.already_applied,
            evidence=result.evidence_count,
            audit=result.audit_count,
            embedding_failures=result.embedding_failures,
            audit_failures=result.audit_failures,
            duration_ms=result.duration_ms,
        )
        return result

    async def _validate_targets(
        self,
        meeting: Meeting,
        accepted: list[ProposedItem],
    ) -> None:
        """Every update/close must target a record in the meeting's project."""
        missing: list[str] = []
        for item in accepted:
            if item.operation == Operation.CREATE or item.applied_entity_id is not None:
                continue
            repo = self._repos[item.entity_type]
            target = await repo.get_in_project(meeting.project_id, item.external_id)
            if target is None:
                missing.append(item.temp_id)
        if missing:
            raise InvalidProposalError(
                f"{len(missing)} item(s) target records that do not exist "
                f"in project {meeting.project_id}",
                temp_ids=missing,
            )

    async def _reacquire(
        self,
        change_set: ProposedChangeSet,
        actor_id: str,
    ) -> ProposedChangeSet:
        """Compare-and-swap the lock with the version read at the start.

        The re-read must show exactly one bump by this actor; anything else
        means a concurrent publish or edit slipped in.
        """
        read_version = change_set.lock_version
        await self._locks.acquire(change_set.id, actor_id, read_version)

        current = await self._change_sets.get(change_set.id)
        if (
            current is None
            or current.locked_by != actor_id
            or current.lock_version != read_version + 1
        ):
            raise LockConflictError(
                change_set.id,
                holder=current.locked_by if current else None,
                locked_at=current.locked_at if current else None,
                current_version=current.lock_version if current else read_version,
                expired=False,
                message=(
                    f"Change-set {change_set.id} changed while publishing "
                    f"(read version {read_version}); refresh and retry"
                ),
            )
        return current

    async def _mark_applied(
        self,
        change_set: ProposedChangeSet,
        items: ProposedItems,
        item: ProposedItem,
        entity_id: UUID,
        actor_id: str,
    ) -> ProposedItems:
        """Persist that ``item`` reached the canonical store."""
        items = items.replace(item.model_copy(update={"applied_entity_id": entity_id}))
        written = await self._change_sets.update_items_if_locked(
            change_set.id, actor_id, items, self._locks.stale_cutoff()
        )
        if not written:
            raise LockNotHeldError(change_set.id, actor_id)
        return items

    async def _publisher_name(self, actor_id: str) -> str:
        profile = await self._people.get_profile(actor_id)
        return profile.display_name if profile else actor_id

    async def _embed(self, item: ProposedItem, result: PublishResult) -> list[float] | None:
        if self._embedder is None:
            return None
        try:
            return await self._embedder.embed(item.embedding_text())
        except Exception as e:
            result.embedding_failures += 1
            logger.warning(
                "embedding failed, continuing without",
                temp_id=item.temp_id,
                kind=item.kind,
                error=str(e),
            )
            return None

    @staticmethod
    def _fields_for(item: ProposedItem, prefix: str) -> dict[str, Any]:
        """Record field values carried by a proposal."""
        fields = item.model_dump(include=ENTITY_FIELDS[item.entity_type])
        identity = item.identity
        if identity is not None:
            fields[f"{prefix}_user_id"] = identity.resolved_user_id
            fields[f"{prefix}_contact_id"] = identity.resolved_contact_id
            fields[f"{prefix}_name"] = identity.name
            fields[f"{prefix}_email"] = identity.email
        return fields

    async def _apply_item(
        self,
        item: ProposedItem,
        meeting: Meeting,
        actor_id: str,
        publisher_name: str,
        result: PublishResult,
    ) -> UUID:
        """Write one item with its evidence and audit entry; returns the record id."""
        repo = self._repos[item.entity_type]
        embedding = await self._embed(item, result)

        if item.operation == Operation.CREATE:
            fields = self._fields_for(item, repo.model.owner_prefix)
            entity = repo.model(
                project_id=meeting.project_id,
                source_meeting_id=meeting.id,
                embedding=embedding,
                **fields,
            )
            await repo.create(entity)
            before = None
            after: CanonicalEntity = entity
        else:
            existing = await repo.get(item.external_id)
            if existing is None:
                msg = f"{item.kind} {item.external_id} disappeared before write"
                raise LookupError(msg)

            if item.operation == Operation.UPDATE:
                fields = self._fields_for(item, repo.model.owner_prefix)
            else:
                fields = {"status": repo.model.closed_status}
            narrative = build_narrative(
                operation=item.operation,
                entity_type=item.entity_type,
                existing=existing.model_dump(),
                proposed=fields,
                evidence=item.evidence,
                meeting_id=meeting.id,
                meeting_title=meeting.title,
                publisher_id=actor_id,
                publisher_name=publisher_name,
                max_quote_length=self._quote_max_length,
            )
            if embedding is not None:
                fields["embedding"] = embedding
            if not await repo.apply_update(existing.id, fields, narrative):
                msg = f"{item.kind} {existing.id} disappeared during write"
                raise LookupError(msg)
            before = existing.snapshot()
            after = await repo.get(existing.id) or existing

        result.counts_for(item.entity_type).bump(item.operation)

        for quote in item.evidence:
            await self._evidence.add(
                Evidence(
                    entity_type=item.entity_type,
                    entity_id=after.id,
                    meeting_id=meeting.id,
                    quote=quote.quote,
                    speaker=quote.speaker,
                    timestamp=quote.timestamp,
                )
            )
            result.evidence_count += 1

        await self._record_audit(
            AuditLogEntry(
                actor_id=actor_id,
                action_type=item.operation,
                entity_type=item.entity_type,
                entity_id=after.id,
                project_id=meeting.project_id,
                before=before,
                after=after.snapshot(),
            ),
            result,
        )
        return after.id

    async def _record_audit(self, entry: AuditLogEntry, result: PublishResult) -> None:
        """Audit failures are counted, never publish-blocking."""
        try:
            await self._audit.record(entry)
            result.audit_count += 1
        except Exception as e:
            result.audit_failures += 1
            logger.error(
                "audit write failed",
                entity_type=entry.entity_type.value,
                entity_id=str(entry.entity_id),
                action=entry.action_type.value,
                error=str(e),
            )
