"""Repository for proposed change-sets and their review lock.

The lock lives on the change-set row itself (locked_by, locked_at,
lock_version). Every lock transition and every item write is a single
conditional UPDATE; callers learn the outcome from rows_affected.
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from src.db.turso import TursoClient, to_db_timestamp
from src.models.base import utc_now
from src.models.proposals import ProposedChangeSet, ProposedItems

logger = logging.getLogger(__name__)


class ChangeSetRepository:
    """Repository for proposed change-sets."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create change-set table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS proposed_change_sets (
                id TEXT PRIMARY KEY,
                meeting_id TEXT NOT NULL UNIQUE,
                proposed_items TEXT NOT NULL,
                locked_by TEXT,
                locked_at TEXT,
                lock_version INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
            ]
        )

    @staticmethod
    def _from_row(row: dict[str, Any]) -> ProposedChangeSet:
        data = dict(row)
        data["proposed_items"] = ProposedItems.model_validate_json(
            data["proposed_items"]
        )
        return ProposedChangeSet.model_validate(data)

    async def create(self, change_set: ProposedChangeSet) -> ProposedChangeSet:
        """Insert a change-set (one per meeting)."""
        await self._db.execute(
            """
            INSERT INTO proposed_change_sets
                (id, meeting_id, proposed_items, locked_by, locked_at,
                 lock_version, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                str(change_set.id),
                str(change_set.meeting_id),
                change_set.proposed_items.model_dump_json(),
                change_set.locked_by,
                to_db_timestamp(change_set.locked_at) if change_set.locked_at else None,
                change_set.lock_version,
                to_db_timestamp(change_set.created_at),
                to_db_timestamp(change_set.updated_at),
            ],
        )
        return change_set

    async def get(self, change_set_id: UUID) -> ProposedChangeSet | None:
        """Get a change-set by id."""
        row = await self._db.fetch_one(
            "SELECT * FROM proposed_change_sets WHERE id = ?",
            [str(change_set_id)],
        )
        return self._from_row(row) if row else None

    async def get_by_meeting(self, meeting_id: UUID) -> ProposedChangeSet | None:
        """Get the change-set for a meeting."""
        row = await self._db.fetch_one(
            "SELECT * FROM proposed_change_sets WHERE meeting_id = ?",
            [str(meeting_id)],
        )
        return self._from_row(row) if row else None

    async def delete_for_meeting(self, meeting_id: UUID) -> bool:
        """Remove a meeting's change-set (used when reprocessing)."""
        result = await self._db.execute(
            "DELETE FROM proposed_change_sets WHERE meeting_id = ?",
            [str(meeting_id)],
        )
        return result.rows_affected > 0

    async def try_acquire_lock(
        self,
        change_set_id: UUID,
        actor_id: str,
        expected_version: int,
        now: datetime,
        stale_cutoff: datetime,
    ) -> bool:
        """Compare-and-swap the lock to ``actor_id``, bumping the version.

        Succeeds if the actor already holds it, or if it is free or
        expired (locked_at before ``stale_cutoff``) and the stored version
        equals ``expected_version``.
        """
        result = await self._db.execute(
            """
            UPDATE proposed_change_sets
            SET locked_by = ?, locked_at = ?, lock_version = lock_version + 1
            WHERE id = ?
              AND (
                locked_by = ?
                OR (
                  (locked_by IS NULL OR locked_at IS NULL OR locked_at < ?)
                  AND lock_version = ?
                )
              )
            """,
            [
                actor_id,
                to_db_timestamp(now),
                str(change_set_id),
                actor_id,
                to_db_timestamp(stale_cutoff),
                expected_version,
            ],
        )
        return result.rows_affected > 0

    async def release_lock(self, change_set_id: UUID, actor_id: str) -> bool:
        """Clear the lock if ``actor_id`` holds it."""
        result = await self._db.execute(
            """
            UPDATE proposed_change_sets
            SET locked_by = NULL, locked_at = NULL
            WHERE id = ? AND locked_by = ?
            """,
            [str(change_set_id), actor_id],
        )
        return result.rows_affected > 0

    async def clear_lock(self, change_set_id: UUID) -> bool:
        """Clear the lock regardless of holder."""
        result = await self._db.execute(
            """
            UPDATE proposed_change_sets
            SET locked_by = NULL, locked_at = NULL
            WHERE id = ?
            """,
            [str(change_set_id)],
        )
        return result.rows_affected > 0

    async def update_items_if_locked(
        self,
        change_set_id: UUID,
        actor_id: str,
        items: ProposedItems,
        stale_cutoff: datetime,
    ) -> bool:
        """Replace the proposal lists while ``actor_id`` holds a live lock.

        Bumps lock_version so a publish started from an older read notices.

        Returns:
            False if the lock was not held (or had expired); nothing written
        """
        result = await self._db.execute(
            """
            UPDATE proposed_change_sets
            SET proposed_items = ?,
                lock_version = lock_version + 1,
                updated_at = ?
            WHERE id = ? AND locked_by = ? AND locked_at >= ?
            """,
            [
                items.model_dump_json(),
                to_db_timestamp(utc_now()),
                str(change_set_id),
                actor_id,
                to_db_timestamp(stale_cutoff),
            ],
        )
        if result.rows_affected == 0:
            logger.info(f"Item write on change-set {change_set_id} rejected: lock not held")
            return False
        return True
