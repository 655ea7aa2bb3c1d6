"""Append-only audit log of canonical mutations."""

import json
import logging
from uuid import UUID

from src.db.turso import TursoClient, to_db_timestamp
from src.models.enums import EntityType
from src.models.evidence import AuditLogEntry

logger = logging.getLogger(__name__)


class AuditLogRepository:
    """Audit sink.

    Rows are only ever inserted. ``before``/``after`` are JSON snapshots.
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create audit table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS audit_logs (
                id TEXT PRIMARY KEY,
                actor_id TEXT NOT NULL,
                action_type TEXT NOT NULL,
                entity_type TEXT NOT NULL,
                entity_id TEXT NOT NULL,
                project_id TEXT NOT NULL,
                before TEXT,
                after TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_audit_entity
            ON audit_logs(entity_type, entity_id, created_at)
            """,
            ]
        )

    async def record(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Persist one audit entry."""
        await self._db.execute(
            """
            INSERT INTO audit_logs
                (id, actor_id, action_type, entity_type, entity_id,
                 project_id, before, after, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                str(entry.id),
                entry.actor_id,
                entry.action_type.value,
                entry.entity_type.value,
                str(entry.entity_id),
                entry.project_id,
                json.dumps(entry.before) if entry.before is not None else None,
                json.dumps(entry.after) if entry.after is not None else None,
                to_db_timestamp(entry.created_at),
                to_db_timestamp(entry.updated_at),
            ],
        )
        logger.debug(
            f"Audit {entry.action_type.value} {entry.entity_type.value} "
            f"{entry.entity_id} by {entry.actor_id}"
        )
        return entry

    async def list_for_entity(
        self,
        entity_type: EntityType,
        entity_id: UUID,
    ) -> list[AuditLogEntry]:
        """Audit history of one record, oldest first."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM audit_logs
            WHERE entity_type = ? AND entity_id = ?
            ORDER BY created_at
            """,
            [entity_type.value, str(entity_id)],
        )
        for row in rows:
            for key in ("before", "after"):
                row[key] = json.loads(row[key]) if row[key] else None
        return [AuditLogEntry.model_validate(row) for row in rows]

    async def list_for_project(self, project_id: str) -> list[AuditLogEntry]:
        """Every audit entry of a project, oldest first."""
        rows = await self._db.fetch_all(
            "SELECT * FROM audit_logs WHERE project_id = ? ORDER BY created_at, rowid",
            [project_id],
        )
        for row in rows:
            for key in ("before", "after"):
                row[key] = json.loads(row[key]) if row[key] else None
        return [AuditLogEntry.model_validate(row) for row in rows]
