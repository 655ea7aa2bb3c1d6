"""Repository for evidence quotes linked to canonical records."""

from uuid import UUID

from src.db.turso import TursoClient, to_db_timestamp
from src.models.enums import EntityType
from src.models.evidence import Evidence


class EvidenceRepository:
    """Repository for evidence rows.

    Each row ties one transcript quote to the record it supports and the
    meeting it came from.
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create evidence table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS evidence (
                id TEXT PRIMARY KEY,
                entity_type TEXT NOT NULL,
                entity_id TEXT NOT NULL,
                meeting_id TEXT NOT NULL,
                quote TEXT NOT NULL,
                speaker TEXT,
                timestamp TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_evidence_entity
            ON evidence(entity_type, entity_id)
            """,
            ]
        )

    async def add(self, evidence: Evidence) -> Evidence:
        """Insert one evidence row."""
        await self._db.execute(
            """
            INSERT INTO evidence
                (id, entity_type, entity_id, meeting_id, quote, speaker,
                 timestamp, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                str(evidence.id),
                evidence.entity_type.value,
                str(evidence.entity_id),
                str(evidence.meeting_id),
                evidence.quote,
                evidence.speaker,
                evidence.timestamp,
                to_db_timestamp(evidence.created_at),
                to_db_timestamp(evidence.updated_at),
            ],
        )
        return evidence

    async def list_for_entity(
        self,
        entity_type: EntityType,
        entity_id: UUID,
    ) -> list[Evidence]:
        """Evidence for one record, oldest first."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM evidence
            WHERE entity_type = ? AND entity_id = ?
            ORDER BY created_at
            """,
            [entity_type.value, str(entity_id)],
        )
        return [Evidence.model_validate(row) for row in rows]

    async def count_for_meeting(self, meeting_id: UUID) -> int:
        """Number of evidence rows written from one meeting."""
        result = await self._db.execute(
            "SELECT COUNT(*) FROM evidence WHERE meeting_id = ?",
            [str(meeting_id)],
        )
        return result.rows[0][0] if result.rows else 0
