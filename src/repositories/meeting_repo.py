"""Repository for meetings and their processing status."""

import json
import logging
from uuid import UUID

from src.db.turso import TursoClient, to_db_timestamp
from src.models.base import utc_now
from src.models.enums import MeetingStatus
from src.models.meeting import Meeting

logger = logging.getLogger(__name__)


class MeetingRepository:
    """Repository for meetings.

    Status transitions that must not race (Review -> Published) are
    conditional UPDATEs checked via rows_affected.
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create meetings table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS meetings (
                id TEXT PRIMARY KEY,
                project_id TEXT NOT NULL,
                title TEXT,
                meeting_date TEXT,
                status TEXT NOT NULL,
                transcript TEXT,
                attendees TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_meetings_project
            ON meetings(project_id, status)
            """,
            ]
        )

    async def create(self, meeting: Meeting) -> Meeting:
        """Insert a meeting."""
        await self._db.execute(
            """
            INSERT INTO meetings
                (id, project_id, title, meeting_date, status, transcript,
                 attendees, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                str(meeting.id),
                meeting.project_id,
                meeting.title,
                to_db_timestamp(meeting.meeting_date) if meeting.meeting_date else None,
                meeting.status.value,
                meeting.transcript,
                json.dumps([a.model_dump(mode="json") for a in meeting.attendees]),
                to_db_timestamp(meeting.created_at),
                to_db_timestamp(meeting.updated_at),
            ],
        )
        return meeting

    async def get(self, meeting_id: UUID) -> Meeting | None:
        """Get a meeting by id.

        Args:
            meeting_id: Meeting identifier

        Returns:
            Meeting or None if not found
        """
        row = await self._db.fetch_one(
            "SELECT * FROM meetings WHERE id = ?",
            [str(meeting_id)],
        )
        if row is None:
            return None
        row["attendees"] = json.loads(row["attendees"] or "[]")
        return Meeting.model_validate(row)

    async def set_status(self, meeting_id: UUID, status: MeetingStatus) -> bool:
        """Set a meeting's status unconditionally."""
        result = await self._db.execute(
            "UPDATE meetings SET status = ?, updated_at = ? WHERE id = ?",
            [status.value, to_db_timestamp(utc_now()), str(meeting_id)],
        )
        return result.rows_affected > 0

    async def transition_status(
        self,
        meeting_id: UUID,
        from_status: MeetingStatus,
        to_status: MeetingStatus,
    ) -> bool:
        """Move a meeting between statuses only if it is in ``from_status``.

        Returns:
            True if the transition happened, False if the meeting was not
            in ``from_status`` (or does not exist)
        """
        result = await self._db.execute(
            """
            UPDATE meetings SET status = ?, updated_at = ?
            WHERE id = ? AND status = ?
            """,
            [
                to_status.value,
                to_db_timestamp(utc_now()),
                str(meeting_id),
                from_status.value,
            ],
        )
        if result.rows_affected == 0:
            logger.warning(
                f"Meeting {meeting_id} not in {from_status.value}; "
                f"transition to {to_status.value} skipped"
            )
            return False
        return True
