"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from src.db.turso import TursoClient
from src.models.enums import EntityType, GlobalRole, MeetingStatus
from src.models.meeting import Meeting
from src.models.participant import MeetingAttendee, ProjectContact, Profile
from src.repositories.audit_repo import AuditLogRepository
from src.repositories.change_set_repo import ChangeSetRepository
from src.repositories.entity_repo import (
    ActionItemRepository,
    DecisionRepository,
    EntityRepository,
    RiskRepository,
)
from src.repositories.evidence_repo import EvidenceRepository
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.people_repo import PeopleRepository
from tests.factories import MEETING_DATE, PROJECT_ID, FakeClock


@pytest.fixture
async def db_client(tmp_path: Path) -> AsyncIterator[TursoClient]:
    """Create a temp file database client for testing."""
    db_path = tmp_path / "test_review.db"
    client = TursoClient(url=f"file:{db_path}")
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
async def meeting_repo(db_client: TursoClient) -> MeetingRepository:
    repo = MeetingRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
async def change_set_repo(db_client: TursoClient) -> ChangeSetRepository:
    repo = ChangeSetRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
async def people_repo(db_client: TursoClient) -> PeopleRepository:
    repo = PeopleRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
async def evidence_repo(db_client: TursoClient) -> EvidenceRepository:
    repo = EvidenceRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
async def audit_repo(db_client: TursoClient) -> AuditLogRepository:
    repo = AuditLogRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
async def entity_repos(db_client: TursoClient) -> dict[EntityType, EntityRepository]:
    """One initialized repository per canonical entity kind."""
    repos: dict[EntityType, EntityRepository] = {
        EntityType.ACTION_ITEM: ActionItemRepository(db_client),
        EntityType.DECISION: DecisionRepository(db_client),
        EntityType.RISK: RiskRepository(db_client),
    }
    for repo in repos.values():
        await repo.initialize()
    return repos


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def roster_people(people_repo: PeopleRepository) -> dict[str, str]:
    """Seed PROJECT_ID with two members, one admin and one contact.

    Returns:
        Mapping of short name to user id / contact id
    """
    profiles = [
        Profile(
            user_id="user-alice",
            email="alice@x.com",
            full_name="Alice Johnson",
            global_role=GlobalRole.CONSULTANT,
        ),
        Profile(
            user_id="user-bob",
            email="bob@x.com",
            full_name="Bob Smith",
            global_role=GlobalRole.PROGRAM_MANAGER,
        ),
        Profile(
            user_id="user-admin",
            email="admin@x.com",
            full_name="Ada Admin",
            global_role=GlobalRole.ADMIN,
        ),
    ]
    for profile in profiles:
        await people_repo.upsert_profile(profile)
    await people_repo.add_member(PROJECT_ID, "user-alice")
    await people_repo.add_member(PROJECT_ID, "user-bob")

    carol = ProjectContact(project_id=PROJECT_ID, name="Carol Vendor", email="carol@vendor.com")
    await people_repo.create_contact(carol)

    return {
        "alice": "user-alice",
        "bob": "user-bob",
        "admin": "user-admin",
        "carol": str(carol.id),
    }


@pytest.fixture
async def review_meeting(meeting_repo: MeetingRepository) -> Meeting:
    """A meeting already in Review."""
    meeting = Meeting(
        project_id=PROJECT_ID,
        title="Weekly Sync",
        meeting_date=MEETING_DATE,
        status=MeetingStatus.REVIEW,
        transcript="Alice: I'll send the specs by Friday.",
        attendees=[MeetingAttendee(name="Alice Johnson", email="alice@x.com")],
    )
    return await meeting_repo.create(meeting)
