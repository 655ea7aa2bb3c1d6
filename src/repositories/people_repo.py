"""Repository for user profiles, project membership and contacts.

Also acts as the roster provider: load_roster() builds the immutable
snapshot the identity resolver works against.
"""

import logging

from src.db.turso import TursoClient, to_db_timestamp
from src.identity.schemas import PersonKind, RosterPerson, RosterSnapshot
from src.models.participant import MeetingAttendee, ProjectContact, Profile

logger = logging.getLogger(__name__)


class PeopleRepository:
    """Repository for profiles, project members and project contacts."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create people tables if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS profiles (
                user_id TEXT PRIMARY KEY,
                email TEXT NOT NULL,
                full_name TEXT,
                global_role TEXT NOT NULL
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS project_members (
                project_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                PRIMARY KEY (project_id, user_id)
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS project_contacts (
                id TEXT PRIMARY KEY,
                project_id TEXT NOT NULL,
                name TEXT NOT NULL,
                email TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_contacts_project
            ON project_contacts(project_id)
            """,
            ]
        )

    async def upsert_profile(self, profile: Profile) -> Profile:
        """Insert or replace a user profile."""
        await self._db.execute(
            """
            INSERT INTO profiles (user_id, email, full_name, global_role)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                email = excluded.email,
                full_name = excluded.full_name,
                global_role = excluded.global_role
            """,
            [
                profile.user_id,
                str(profile.email),
                profile.full_name,
                profile.global_role.value,
            ],
        )
        return profile

    async def get_profile(self, user_id: str) -> Profile | None:
        """Get a profile by user id."""
        row = await self._db.fetch_one(
            "SELECT * FROM profiles WHERE user_id = ?",
            [user_id],
        )
        return Profile.model_validate(row) if row else None

    async def add_member(self, project_id: str, user_id: str) -> None:
        """Add a user to a project (no-op if already a member)."""
        await self._db.execute(
            """
            INSERT INTO project_members (project_id, user_id) VALUES (?, ?)
            ON CONFLICT(project_id, user_id) DO NOTHING
            """,
            [project_id, user_id],
        )

    async def create_contact(self, contact: ProjectContact) -> ProjectContact:
        """Insert a project contact."""
        await self._db.execute(
            """
            INSERT INTO project_contacts
                (id, project_id, name, email, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                str(contact.id),
                contact.project_id,
                contact.name,
                str(contact.email) if contact.email else None,
                to_db_timestamp(contact.created_at),
                to_db_timestamp(contact.updated_at),
            ],
        )
        logger.info(f"Created contact {contact.name} in project {contact.project_id}")
        return contact

    async def load_roster(
        self,
        project_id: str,
        attendees: list[MeetingAttendee] | None = None,
    ) -> RosterSnapshot:
        """Build an immutable roster snapshot for a project.

        Args:
            project_id: Project identifier
            attendees: Meeting attendees to include (for email inference)

        Returns:
            RosterSnapshot of members, contacts and attendees
        """
        member_rows = await self._db.fetch_all(
            """
            SELECT p.user_id, p.email, p.full_name
            FROM project_members m
            JOIN profiles p ON p.user_id = m.user_id
            WHERE m.project_id = ?
            ORDER BY p.user_id
            """,
            [project_id],
        )
        contact_rows = await self._db.fetch_all(
            """
            SELECT id, name, email FROM project_contacts
            WHERE project_id = ?
            ORDER BY created_at, id
            """,
            [project_id],
        )
        members = tuple(
            RosterPerson(
                kind=PersonKind.USER,
                id=row["user_id"],
                name=row["full_name"] or row["email"],
                email=row["email"],
            )
            for row in member_rows
        )
        contacts = tuple(
            RosterPerson(
                kind=PersonKind.CONTACT,
                id=row["id"],
                name=row["name"],
                email=row["email"],
            )
            for row in contact_rows
        )
        return RosterSnapshot(
            project_id=project_id,
            members=members,
            contacts=contacts,
            attendees=tuple(attendees or ()),
        )
