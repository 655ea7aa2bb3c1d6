"""Meeting API endpoints: create, process and publish."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from src.api.deps import get_actor_id, review_http_error
from src.models.enums import MeetingStatus
from src.models.meeting import Meeting
from src.models.participant import MeetingAttendee
from src.models.proposals import ProposedChangeSet
from src.repositories.meeting_repo import MeetingRepository
from src.review.errors import ReviewError
from src.review.intake import MeetingProcessor
from src.review.publisher import MeetingPublisher, PublishResult

router = APIRouter(prefix="/meetings", tags=["meetings"])


class CreateMeetingRequest(BaseModel):
    """Request to register a meeting transcript."""

    project_id: str = Field(min_length=1)
    title: str | None = Field(default=None, max_length=500)
    meeting_date: datetime | None = Field(default=None)
    transcript: str = Field(min_length=1, description="Plain-text transcript")
    attendees: list[MeetingAttendee] = Field(default_factory=list)


def get_meeting_repo(request: Request) -> MeetingRepository:
    """Dependency to get MeetingRepository from app state."""
    return request.app.state.meeting_repo


def get_meeting_processor(request: Request) -> MeetingProcessor:
    """Dependency to get MeetingProcessor from app state."""
    return request.app.state.meeting_processor


def get_meeting_publisher(request: Request) -> MeetingPublisher:
    """Dependency to get MeetingPublisher from app state."""
    return request.app.state.meeting_publisher


@router.post("", response_model=Meeting, status_code=201)
async def create_meeting(
    request: CreateMeetingRequest,
    meetings: MeetingRepository = Depends(get_meeting_repo),
) -> Meeting:
    """Register a meeting in Draft, ready to be processed."""
    meeting = Meeting(
        project_id=request.project_id,
        title=request.title,
        meeting_date=request.meeting_date,
        transcript=request.transcript,
        attendees=request.attendees,
        status=MeetingStatus.DRAFT,
    )
    return await meetings.create(meeting)


@router.get("/{meeting_id}", response_model=Meeting)
async def get_meeting(
    meeting_id: UUID,
    meetings: MeetingRepository = Depends(get_meeting_repo),
) -> Meeting:
    """Get a meeting by id."""
    meeting = await meetings.get(meeting_id)
    if meeting is None:
        raise HTTPException(status_code=404, detail=f"Meeting {meeting_id} not found")
    return meeting


@router.post("/{meeting_id}/process", response_model=ProposedChangeSet)
async def process_meeting(
    meeting_id: UUID,
    processor: MeetingProcessor = Depends(get_meeting_processor),
) -> ProposedChangeSet:
    """Extract proposals from the transcript and move the meeting to Review.

    Raises:
        HTTPException: 404 unknown meeting, 400 wrong status or no transcript
    """
    try:
        return await processor.process(meeting_id)
    except ReviewError as e:
        raise review_http_error(e) from e


@router.post("/{meeting_id}/publish", response_model=PublishResult)
async def publish_meeting(
    meeting_id: UUID,
    actor_id: str = Depends(get_actor_id),
    publisher: MeetingPublisher = Depends(get_meeting_publisher),
) -> PublishResult:
    """Publish the reviewed change-set into canonical records.

    Raises:
        HTTPException: 404/400 preconditions, 409 lock conflict,
            422 unresolved owners or invalid targets, 500 partial failure
    """
    try:
        return await publisher.publish(meeting_id, actor_id)
    except ReviewError as e:
        raise review_http_error(e) from e
