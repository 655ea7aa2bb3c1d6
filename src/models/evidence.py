"""Evidence and audit records written alongside canonical mutations."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.base import BaseEntity
from src.models.enums import EntityType, Operation


class EvidenceQuote(BaseModel):
    """A transcript excerpt supporting a proposed item."""

    model_config = ConfigDict(str_strip_whitespace=True)

    quote: str = Field(min_length=1, max_length=4000)
    speaker: str | None = Field(default=None)
    timestamp: str | None = Field(
        default=None,
        description="Position in the recording, e.g. 00:12:34",
    )


class Evidence(BaseEntity):
    """Stored evidence linking a canonical record to a meeting quote."""

    entity_type: EntityType
    entity_id: UUID
    meeting_id: UUID
    quote: str
    speaker: str | None = None
    timestamp: str | None = None


class AuditLogEntry(BaseEntity):
    """Append-only record of one canonical mutation."""

    actor_id: str = Field(min_length=1)
    action_type: Operation
    entity_type: EntityType
    entity_id: UUID
    project_id: str
    before: dict[str, Any] | None = Field(default=None)
    after: dict[str, Any] | None = Field(default=None)
