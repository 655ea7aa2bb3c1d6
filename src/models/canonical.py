"""Shared shape of canonical project records (action items, decisions, risks)."""

from datetime import datetime
from typing import ClassVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.models.base import BaseEntity, utc_now
from src.models.enums import EntityType, UpdateSource


class EntityUpdate(BaseModel):
    """One entry in a record's append-only narrative history."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    content: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=utc_now)
    created_by_user_id: str | None = Field(default=None)
    created_by_name: str = Field(min_length=1)
    source: UpdateSource = Field(default=UpdateSource.HUMAN)
    meeting_id: UUID | None = Field(default=None)
    meeting_title: str | None = Field(default=None)
    evidence_quote: str | None = Field(default=None)


class OwnerFields(BaseModel):
    """Resolved owner (or decision maker) as stored on a record."""

    user_id: str | None = None
    contact_id: str | None = None
    name: str | None = None
    email: str | None = None


class CanonicalEntity(BaseEntity):
    """Fields every canonical record carries.

    ``updates`` is append-only; writers append through the repository,
    never by replacing the list.
    """

    entity_type: ClassVar[EntityType]
    owner_prefix: ClassVar[str] = "owner"
    closed_status: ClassVar[str]

    project_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=500)
    embedding: list[float] | None = Field(default=None, repr=False)
    source_meeting_id: UUID | None = Field(default=None)
    updates: list[EntityUpdate] = Field(default_factory=list)

    def owner(self) -> OwnerFields:
        """Owner (or decision maker) fields as one value."""
        prefix = self.owner_prefix
        return OwnerFields(
            user_id=getattr(self, f"{prefix}_user_id"),
            contact_id=getattr(self, f"{prefix}_contact_id"),
            name=getattr(self, f"{prefix}_name"),
            email=getattr(self, f"{prefix}_email"),
        )

    @property
    def is_closed(self) -> bool:
        """Check if the record is in its terminal status."""
        return getattr(self, "status") == self.closed_status

    def snapshot(self) -> dict:
        """Audit snapshot (embedding vectors are left out)."""
        return self.model_dump(mode="json", exclude={"embedding"})
