"""Risk model for risks tracked on a project."""

from typing import ClassVar

from pydantic import Field

from src.models.canonical import CanonicalEntity
from src.models.enums import EntityStatus, EntityType, RiskLevel


class Risk(CanonicalEntity):
    """A risk tracked on a project.

    Risks are potential problems that might occur. They're tracked to:
    - Enable proactive mitigation
    - Provide early warning for project health
    """

    entity_type: ClassVar[EntityType] = EntityType.RISK
    closed_status: ClassVar[str] = EntityStatus.CLOSED

    description: str | None = Field(
        default=None,
        max_length=4000,
        description="Description of the risk",
    )
    probability: RiskLevel = Field(
        default=RiskLevel.MED,
        description="Likelihood the risk materializes",
    )
    impact: RiskLevel = Field(
        default=RiskLevel.MED,
        description="Severity if the risk materializes",
    )
    mitigation: str | None = Field(
        default=None,
        max_length=2000,
        description="Proposed mitigation strategy",
    )
    status: EntityStatus = Field(default=EntityStatus.OPEN)
    owner_user_id: str | None = Field(default=None)
    owner_contact_id: str | None = Field(default=None)
    owner_name: str | None = Field(default=None)
    owner_email: str | None = Field(default=None)

    @property
    def is_high_severity(self) -> bool:
        """Check if either rating is High."""
        return RiskLevel.HIGH in (self.probability, self.impact)

    @property
    def has_mitigation(self) -> bool:
        """Check if risk has a mitigation plan."""
        return self.mitigation is not None and len(self.mitigation.strip()) > 0
