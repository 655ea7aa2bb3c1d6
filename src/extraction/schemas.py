"""Pydantic models for LLM extraction output.

These schemas define the structure the LLM returns when proposing changes
from a transcript. They are intentionally different from proposal models
because:
- due_date_raw is a string (normalized to a date later)
- owners are bare name/email pairs (resolved against the roster later)
- external_id is a string echoed from the open-items context
- No temp ids or review flags (assigned after extraction)
"""

from typing import Literal

from pydantic import BaseModel, Field

OperationLiteral = Literal["create", "update", "close"]
LevelLiteral = Literal["Low", "Med", "High"]


class ExtractedPerson(BaseModel):
    """Owner or decision maker as named in the transcript."""

    name: str = Field(description="Name exactly as mentioned in the transcript")
    email: str | None = Field(
        default=None,
        description="Email only if explicitly stated in the transcript",
    )


class ExtractedEvidence(BaseModel):
    """Verbatim transcript excerpt supporting an item."""

    quote: str = Field(description="Exact quote from the transcript")
    speaker: str | None = Field(default=None, description="Who said it")
    timestamp: str | None = Field(
        default=None,
        description="Timestamp of the quote if present (e.g. 00:12:34)",
    )


class ExtractedItemBase(BaseModel):
    """Fields shared by every extracted item."""

    operation: OperationLiteral = Field(
        default="create",
        description="create a new item, or update/close an existing one",
    )
    external_id: str | None = Field(
        default=None,
        description="Id of the existing item for update/close (from the list given)",
    )
    title: str = Field(description="Short title")
    evidence: list[ExtractedEvidence] = Field(
        default_factory=list,
        description="Supporting quotes",
    )
    confidence: float = Field(
        ge=0.0,
        le=1.0,
        description="Confidence this is a real item (0.0-1.0)",
    )


class ExtractedActionItem(ExtractedItemBase):
    """Schema for LLM extraction of action items."""

    description: str | None = Field(default=None, description="What needs to be done")
    status: Literal["Open", "In Progress", "Closed"] = Field(default="Open")
    owner: ExtractedPerson | None = Field(default=None, description="Who committed")
    due_date_raw: str | None = Field(
        default=None,
        description="Due date as mentioned (e.g., 'next Friday', 'end of month')",
    )


class ExtractedDecision(ExtractedItemBase):
    """Schema for LLM extraction of decisions."""

    rationale: str | None = Field(default=None, description="Why it was decided")
    impact: str | None = Field(default=None, description="What the decision affects")
    outcome: str | None = Field(default=None, description="Outcome, if known")
    status: Literal["Proposed", "Approved", "Rejected", "Superseded"] = Field(
        default="Approved"
    )
    decision_maker: ExtractedPerson | None = Field(default=None)


class ExtractedRisk(ExtractedItemBase):
    """Schema for LLM extraction of risks."""

    description: str | None = Field(default=None, description="What might go wrong")
    probability: LevelLiteral = Field(default="Med")
    impact: LevelLiteral = Field(default="Med")
    mitigation: str | None = Field(default=None)
    status: Literal["Open", "In Progress", "Closed"] = Field(default="Open")
    owner: ExtractedPerson | None = Field(default=None)


class ExtractedProposals(BaseModel):
    """Everything the LLM proposes for one meeting."""

    action_items: list[ExtractedActionItem] = Field(default_factory=list)
    decisions: list[ExtractedDecision] = Field(default_factory=list)
    risks: list[ExtractedRisk] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.action_items) + len(self.decisions) + len(self.risks)
