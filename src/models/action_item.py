"""ActionItem model for tasks tracked on a project."""

from datetime import date
from typing import ClassVar

from pydantic import Field

from src.models.canonical import CanonicalEntity
from src.models.enums import EntityStatus, EntityType


class ActionItem(CanonicalEntity):
    """A committed task on a project.

    Action items carry:
    - A title and description of what needs to be done
    - An owner (who committed to do it)
    - A due date (when it should be done)
    - Status tracking
    """

    entity_type: ClassVar[EntityType] = EntityType.ACTION_ITEM
    closed_status: ClassVar[str] = EntityStatus.CLOSED

    description: str | None = Field(
        default=None,
        max_length=4000,
        description="What needs to be done",
    )
    status: EntityStatus = Field(
        default=EntityStatus.OPEN,
        description="Current status",
    )
    due_date: date | None = Field(
        default=None,
        description="When the action item is due",
    )
    owner_user_id: str | None = Field(default=None)
    owner_contact_id: str | None = Field(default=None)
    owner_name: str | None = Field(default=None)
    owner_email: str | None = Field(default=None)

    @property
    def is_assigned(self) -> bool:
        """Check if action item has an owner."""
        return any((self.owner_user_id, self.owner_contact_id, self.owner_name))

    @property
    def is_overdue(self) -> bool:
        """Check if action item is past due date."""
        if self.due_date is None or self.status == EntityStatus.CLOSED:
            return False
        return date.today() > self.due_date
