"""Base entity class for all domain models."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class BaseEntity(BaseModel):
    """Base class for all domain entities.

    Provides:
    - Unique ID (UUID)
    - Created/updated timestamps
    - Standard serialization config
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_default=True,
        from_attributes=True,
    )

    id: UUID = Field(default_factory=uuid4, description="Unique entity identifier")
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When entity was created",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        description="When entity was last updated",
    )

    def snapshot(self) -> dict[str, Any]:
        """JSON-safe dump used for audit before/after records."""
        return self.model_dump(mode="json")
