"""Decision model for decisions recorded on a project."""

from typing import ClassVar

from pydantic import Field

from src.models.canonical import CanonicalEntity
from src.models.enums import DecisionStatus, EntityType


class Decision(CanonicalEntity):
    """A decision recorded on a project.

    Decisions are captured to:
    - Prevent "decision amnesia" (relitigating settled issues)
    - Provide audit trail for why things were done
    """

    entity_type: ClassVar[EntityType] = EntityType.DECISION
    owner_prefix: ClassVar[str] = "decision_maker"
    closed_status: ClassVar[str] = DecisionStatus.SUPERSEDED

    rationale: str | None = Field(
        default=None,
        max_length=4000,
        description="Why this decision was made",
    )
    impact: str | None = Field(
        default=None,
        max_length=2000,
        description="What the decision affects",
    )
    outcome: str | None = Field(
        default=None,
        max_length=2000,
        description="Result once the decision played out",
    )
    status: DecisionStatus = Field(default=DecisionStatus.PROPOSED)
    decision_maker_user_id: str | None = Field(default=None)
    decision_maker_contact_id: str | None = Field(default=None)
    decision_maker_name: str | None = Field(default=None)
    decision_maker_email: str | None = Field(default=None)

    @property
    def has_rationale(self) -> bool:
        """Check if decision has documented rationale."""
        return self.rationale is not None and len(self.rationale.strip()) > 0
