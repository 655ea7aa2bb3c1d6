"""People known to a project: user profiles, members, contacts, attendees."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.models.base import BaseEntity
from src.models.enums import GlobalRole


class Profile(BaseModel):
    """A user with a login.

    Profiles come from the authentication provider; ``user_id`` is the
    opaque actor id used everywhere else (lock holder, audit actor).
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str = Field(min_length=1, description="Authentication user id")
    email: EmailStr = Field(description="Login email")
    full_name: str | None = Field(default=None, description="Display name")
    global_role: GlobalRole = Field(default=GlobalRole.CONSULTANT)

    @property
    def display_name(self) -> str:
        """Name shown in narratives, falling back to the email."""
        return self.full_name or str(self.email)

    @property
    def is_admin(self) -> bool:
        """Check if the user may perform administrator-only operations."""
        return self.global_role == GlobalRole.ADMIN


class ProjectContact(BaseEntity):
    """A person known to a project who has no login."""

    project_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr | None = Field(default=None)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        """Ensure name is not just whitespace."""
        if not v.strip():
            msg = "Name cannot be empty or whitespace"
            raise ValueError(msg)
        return v.strip()


class MeetingAttendee(BaseModel):
    """Someone listed on the meeting invite or transcript header."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, description="Display name")
    email: str | None = Field(default=None, description="Email if known")
