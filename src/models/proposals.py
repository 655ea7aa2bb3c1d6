"""Proposed changes extracted from a meeting, awaiting reviewer approval.

A change-set holds three ordered lists of proposals. Each proposal is a
member of a tagged union keyed on ``kind`` so reviewers and the publisher
can dispatch without isinstance chains.
"""

from datetime import date, datetime
from typing import Annotated, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.identity.schemas import ResolvedIdentity
from src.models.base import BaseEntity
from src.models.enums import (
    DecisionStatus,
    EntityStatus,
    EntityType,
    Operation,
    RiskLevel,
)
from src.models.evidence import EvidenceQuote


def new_temp_id() -> str:
    """Stable id for a proposal within its change-set."""
    return uuid4().hex


class ProposalBase(BaseModel):
    """Fields shared by every proposed item."""

    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    temp_id: str = Field(default_factory=new_temp_id)
    operation: Operation = Field(default=Operation.CREATE)
    external_id: UUID | None = Field(
        default=None,
        description="Canonical record targeted by update/close",
    )
    accepted: bool = Field(default=True, description="Reviewer toggle")
    evidence: list[EvidenceQuote] = Field(default_factory=list)
    duplicate_of: UUID | None = Field(
        default=None,
        description="Existing record this may duplicate",
    )
    similarity_score: float | None = Field(default=None, ge=0.0, le=1.0)
    applied_entity_id: UUID | None = Field(
        default=None,
        description="Record written by an earlier publish attempt",
    )
    title: str = Field(min_length=1, max_length=500)

    @model_validator(mode="after")
    def check_target(self):
        """Update and close must name the record they mutate."""
        if self.operation != Operation.CREATE and self.external_id is None:
            msg = f"{self.operation.value} proposal requires external_id"
            raise ValueError(msg)
        return self

    @property
    def entity_type(self) -> EntityType:
        return EntityType(self.kind)

    @property
    def identity(self) -> ResolvedIdentity | None:
        """Owner (or decision maker) identity."""
        return getattr(self, "owner", None)

    def with_identity(self, identity: ResolvedIdentity):
        """Copy with the owner identity replaced."""
        return self.model_copy(update={"owner": identity})

    @property
    def first_quote(self) -> str | None:
        return self.evidence[0].quote if self.evidence else None


class ActionItemProposal(ProposalBase):
    """Proposed create/update/close of an action item."""

    kind: Literal["action_item"] = "action_item"
    description: str | None = Field(default=None, max_length=4000)
    status: EntityStatus = Field(default=EntityStatus.OPEN)
    due_date: date | None = Field(default=None)
    owner: ResolvedIdentity | None = Field(default=None)

    def embedding_text(self) -> str:
        return f"{self.title}. {self.description or ''}".strip()


class DecisionProposal(ProposalBase):
    """Proposed create/update/close of a decision."""

    kind: Literal["decision"] = "decision"
    rationale: str | None = Field(default=None, max_length=4000)
    impact: str | None = Field(default=None, max_length=2000)
    outcome: str | None = Field(default=None, max_length=2000)
    status: DecisionStatus = Field(default=DecisionStatus.PROPOSED)
    decision_maker: ResolvedIdentity | None = Field(default=None)

    @property
    def identity(self) -> ResolvedIdentity | None:
        return self.decision_maker

    def with_identity(self, identity: ResolvedIdentity) -> "DecisionProposal":
        return self.model_copy(update={"decision_maker": identity})

    def embedding_text(self) -> str:
        return f"{self.title}. {self.rationale or ''}".strip()


class RiskProposal(ProposalBase):
    """Proposed create/update/close of a risk."""

    kind: Literal["risk"] = "risk"
    description: str | None = Field(default=None, max_length=4000)
    probability: RiskLevel = Field(default=RiskLevel.MED)
    impact: RiskLevel = Field(default=RiskLevel.MED)
    mitigation: str | None = Field(default=None, max_length=2000)
    status: EntityStatus = Field(default=EntityStatus.OPEN)
    owner: ResolvedIdentity | None = Field(default=None)

    def embedding_text(self) -> str:
        return f"{self.title}. {self.description or ''}".strip()


ProposedItem = Annotated[
    ActionItemProposal | DecisionProposal | RiskProposal,
    Field(discriminator="kind"),
]

# Publish order and the list each kind lives in
KIND_LISTS: dict[str, str] = {
    "action_item": "action_items",
    "decision": "decisions",
    "risk": "risks",
}


class ProposedItems(BaseModel):
    """The three ordered proposal lists of a change-set."""

    action_items: list[ActionItemProposal] = Field(default_factory=list)
    decisions: list[DecisionProposal] = Field(default_factory=list)
    risks: list[RiskProposal] = Field(default_factory=list)

    def all_items(self) -> list[ProposedItem]:
        """Every proposal in publish order."""
        return [*self.action_items, *self.decisions, *self.risks]

    def accepted_items(self) -> list[ProposedItem]:
        return [item for item in self.all_items() if item.accepted]

    def find(self, temp_id: str) -> ProposedItem | None:
        return next((i for i in self.all_items() if i.temp_id == temp_id), None)

    def replace(self, item: ProposedItem) -> "ProposedItems":
        """Copy with the proposal sharing ``item.temp_id`` swapped out."""
        field = KIND_LISTS[item.kind]
        current = getattr(self, field)
        if not any(existing.temp_id == item.temp_id for existing in current):
            msg = f"No {item.kind} proposal with temp_id {item.temp_id}"
            raise KeyError(msg)
        updated = [item if p.temp_id == item.temp_id else p for p in current]
        return self.model_copy(update={field: updated})

    def __len__(self) -> int:
        return len(self.action_items) + len(self.decisions) + len(self.risks)


class ProposedChangeSet(BaseEntity):
    """The reviewable batch of proposals for one meeting, with its lock."""

    meeting_id: UUID
    proposed_items: ProposedItems = Field(default_factory=ProposedItems)
    locked_by: str | None = Field(default=None, description="Lock holder actor id")
    locked_at: datetime | None = Field(default=None)
    lock_version: int = Field(default=1, ge=1)
