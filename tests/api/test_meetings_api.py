"""Tests for meeting API endpoints."""

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.api.meetings import router
from src.models.enums import MeetingStatus
from src.models.proposals import ProposedChangeSet
from src.review.errors import (
    InvalidProposalError,
    LockConflictError,
    MeetingNotFoundError,
    MeetingNotProcessableError,
    PublishFailedError,
    UnresolvedIdentityError,
)
from src.review.intake import MeetingProcessor
from src.review.publisher import MeetingPublisher, PublishResult
from tests.factories import PROJECT_ID

ALICE = {"X-Actor-Id": "user-alice"}


@pytest.fixture
def mock_processor() -> MagicMock:
    processor = MagicMock(spec=MeetingProcessor)
    processor.process = AsyncMock()
    return processor


@pytest.fixture
def mock_publisher() -> MagicMock:
    publisher = MagicMock(spec=MeetingPublisher)
    publisher.publish = AsyncMock()
    return publisher


@pytest.fixture
def app(meeting_repo, mock_processor, mock_publisher) -> FastAPI:
    test_app = FastAPI()
    test_app.state.meeting_repo = meeting_repo
    test_app.state.meeting_processor = mock_processor
    test_app.state.meeting_publisher = mock_publisher
    test_app.include_router(router)
    return test_app


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestCreateAndGet:
    async def test_create_meeting_in_draft(self, client):
        response = await client.post(
            "/meetings",
            json={
                "project_id": PROJECT_ID,
                "title": "Weekly Sync",
                "meeting_date": "2026-01-18T10:00:00Z",
                "transcript": "Alice: I'll send the specs by Friday.",
                "attendees": [{"name": "Alice Johnson", "email": "alice@x.com"}],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Draft"
        assert data["attendees"][0]["email"] == "alice@x.com"

        fetched = await client.get(f"/meetings/{data['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["title"] == "Weekly Sync"

    async def test_create_requires_transcript(self, client):
        response = await client.post("/meetings", json={"project_id": PROJECT_ID, "transcript": ""})

        assert response.status_code == 422

    async def test_get_unknown_meeting(self, client):
        response = await client.get(f"/meetings/{uuid4()}")

        assert response.status_code == 404


class TestProcess:
    async def test_returns_change_set(self, client, mock_processor):
        meeting_id = uuid4()
        mock_processor.process.return_value = ProposedChangeSet(meeting_id=meeting_id)

        response = await client.post(f"/meetings/{meeting_id}/process")

        assert response.status_code == 200
        assert response.json()["meeting_id"] == str(meeting_id)
        assert response.json()["lock_version"] == 1
        mock_processor.process.assert_awaited_once_with(meeting_id)

    async def test_not_processable_is_400(self, client, mock_processor):
        meeting_id = uuid4()
        mock_processor.process.side_effect = MeetingNotProcessableError(
            meeting_id, "status is Review"
        )

        response = await client.post(f"/meetings/{meeting_id}/process")

        assert response.status_code == 400
        assert response.json()["detail"]["category"] == "precondition"

    async def test_unknown_meeting_is_404(self, client, mock_processor):
        meeting_id = uuid4()
        mock_processor.process.side_effect = MeetingNotFoundError(meeting_id)

        response = await client.post(f"/meetings/{meeting_id}/process")

        assert response.status_code == 404


class TestPublish:
    async def test_success(self, client, mock_publisher):
        meeting_id = uuid4()
        mock_publisher.publish.return_value = PublishResult(
            meeting_id=meeting_id,
            change_set_id=uuid4(),
            meeting_status=MeetingStatus.PUBLISHED,
            lock_released=True,
        )

        response = await client.post(f"/meetings/{meeting_id}/publish", headers=ALICE)

        assert response.status_code == 200
        assert response.json()["meeting_status"] == "Published"
        assert response.json()["action_items"] == {"created": 0, "updated": 0, "closed": 0}
        mock_publisher.publish.assert_awaited_once_with(meeting_id, "user-alice")

    async def test_requires_actor(self, client, mock_publisher):
        response = await client.post(f"/meetings/{uuid4()}/publish")

        assert response.status_code == 422
        mock_publisher.publish.assert_not_awaited()

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (
                LockConflictError(uuid4(), "user-bob", None, current_version=4, expired=False),
                409,
            ),
            (UnresolvedIdentityError(["t1", "t2"]), 422),
            (InvalidProposalError("missing target", temp_ids=["t3"]), 422),
            (PublishFailedError("failed on risk", partial={"risks": {"created": 1}}), 500),
        ],
    )
    async def test_error_mapping(self, client, mock_publisher, error, status_code):
        mock_publisher.publish.side_effect = error

        response = await client.post(f"/meetings/{uuid4()}/publish", headers=ALICE)

        assert response.status_code == status_code
        assert response.json()["detail"] == error.to_dict()
