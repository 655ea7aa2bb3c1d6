"""Meeting model representing a transcript under review."""

from datetime import datetime

from pydantic import Field

from src.models.base import BaseEntity
from src.models.enums import MeetingStatus
from src.models.participant import MeetingAttendee


class Meeting(BaseEntity):
    """A meeting whose transcript feeds a proposed change-set.

    Meetings move Draft -> Processing -> Review -> Published. Only a
    meeting in Review can be published; Deleted meetings are retired.
    """

    project_id: str = Field(min_length=1, description="Owning project")
    title: str | None = Field(
        default=None,
        max_length=500,
        description="Meeting title (from calendar or transcript)",
    )
    meeting_date: datetime | None = Field(
        default=None,
        description="When the meeting occurred",
    )
    status: MeetingStatus = Field(default=MeetingStatus.DRAFT)
    transcript: str | None = Field(
        default=None,
        description="Plain-text transcript",
    )
    attendees: list[MeetingAttendee] = Field(
        default_factory=list,
        description="Meeting attendees",
    )

    @property
    def is_publishable(self) -> bool:
        """Check if the meeting is waiting on reviewer publish."""
        return self.status == MeetingStatus.REVIEW

    @property
    def has_transcript(self) -> bool:
        """Check if meeting has transcript content."""
        return bool(self.transcript and self.transcript.strip())
