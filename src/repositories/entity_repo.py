"""Repositories for canonical project records.

One table per entity kind. Narrative updates are stored as a JSON array
and appended inside the same UPDATE that writes the new field values,
so concurrent appends never lose entries.
"""

import json
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID

from src.db.turso import TursoClient, to_db_timestamp
from src.models.action_item import ActionItem
from src.models.base import utc_now
from src.models.canonical import CanonicalEntity, EntityUpdate
from src.models.decision import Decision
from src.models.enums import EntityType
from src.models.risk import Risk

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=CanonicalEntity)

# Columns shared by every canonical table, in storage order
COMMON_COLUMNS = (
    "id",
    "project_id",
    "title",
    "status",
    "embedding",
    "source_meeting_id",
    "updates",
    "created_at",
    "updated_at",
)

JSON_COLUMNS = frozenset({"embedding", "updates"})

# Written once on insert; updates goes through json_insert only
IMMUTABLE_COLUMNS = frozenset({"id", "project_id", "updates", "created_at", "updated_at"})


def to_db_value(value: Any) -> Any:
    """Convert a model value into something libSQL can bind."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_db_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, EntityUpdate):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return json.dumps([to_db_value(v) for v in value])
    return value


class EntityRepository(Generic[EntityT]):
    """Base repository for one canonical entity table.

    Subclasses set the table name, model class and entity-specific columns.
    """

    table: ClassVar[str]
    model: ClassVar[type[CanonicalEntity]]
    extra_columns: ClassVar[tuple[str, ...]]
    extra_ddl: ClassVar[str]

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    @property
    def entity_type(self) -> EntityType:
        return self.model.entity_type

    @property
    def columns(self) -> tuple[str, ...]:
        return COMMON_COLUMNS + self.extra_columns

    @property
    def closed_status(self) -> str:
        return to_db_value(self.model.closed_status)

    async def initialize(self) -> None:
        """Create the entity table and its indexes if not exists."""
        await self._db.execute_batch(
            [
                f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id TEXT PRIMARY KEY,
                project_id TEXT NOT NULL,
                title TEXT NOT NULL,
                status TEXT NOT NULL,
                embedding TEXT,
                source_meeting_id TEXT,
                updates TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                {self.extra_ddl}
            )
            """,
                f"""
            CREATE INDEX IF NOT EXISTS idx_{self.table}_project_status
            ON {self.table}(project_id, status, updated_at)
            """,
            ]
        )

    def _to_row(self, entity: CanonicalEntity) -> list[Any]:
        return [to_db_value(getattr(entity, col)) for col in self.columns]

    def _from_row(self, row: dict[str, Any]) -> EntityT:
        data = dict(row)
        for col in JSON_COLUMNS:
            if data.get(col):
                data[col] = json.loads(data[col])
        if data.get("updates") is None:
            data["updates"] = []
        return self.model.model_validate(data)

    async def create(self, entity: EntityT) -> EntityT:
        """Insert a new record.

        Args:
            entity: Record to insert (id and timestamps already set)

        Returns:
            The inserted entity
        """
        placeholders = ", ".join("?" for _ in self.columns)
        await self._db.execute(
            f"INSERT INTO {self.table} ({', '.join(self.columns)}) "
            f"VALUES ({placeholders})",
            self._to_row(entity),
        )
        logger.debug(f"Created {self.entity_type.value} {entity.id}")
        return entity

    async def get(self, entity_id: UUID) -> EntityT | None:
        """Get a record by id."""
        row = await self._db.fetch_one(
            f"SELECT * FROM {self.table} WHERE id = ?",
            [str(entity_id)],
        )
        return self._from_row(row) if row else None

    async def get_in_project(
        self,
        project_id: str,
        entity_id: UUID,
    ) -> EntityT | None:
        """Get a record by id only if it belongs to ``project_id``."""
        row = await self._db.fetch_one(
            f"SELECT * FROM {self.table} WHERE id = ? AND project_id = ?",
            [str(entity_id), project_id],
        )
        return self._from_row(row) if row else None

    async def apply_update(
        self,
        entity_id: UUID,
        fields: dict[str, Any],
        narrative: EntityUpdate,
        now: datetime | None = None,
    ) -> bool:
        """Write new field values and append one narrative entry.

        Both happen in a single UPDATE; the narrative is appended with
        json_insert so no read-modify-write of the list is involved.

        Args:
            entity_id: Record to update
            fields: Column -> new value (only known columns allowed)
            narrative: Entry appended to ``updates``
            now: Timestamp for updated_at

        Returns:
            True if the record existed and was updated
        """
        rejected = (set(fields) - set(self.columns)) | (set(fields) & IMMUTABLE_COLUMNS)
        if rejected:
            msg = f"Cannot update columns: {sorted(rejected)}"
            raise ValueError(msg)

        assignments = [f"{col} = ?" for col in fields]
        params = [to_db_value(value) for value in fields.values()]
        assignments.append("updated_at = ?")
        params.append(to_db_timestamp(now or utc_now()))
        assignments.append("updates = json_insert(COALESCE(updates, '[]'), '$[#]', json(?))")
        params.append(json.dumps(narrative.model_dump(mode="json")))
        params.append(str(entity_id))

        result = await self._db.execute(
            f"UPDATE {self.table} SET {', '.join(assignments)} WHERE id = ?",
            params,
        )
        return result.rows_affected > 0

    async def list_open(
        self,
        project_id: str,
        limit: int | None = None,
        updated_since: datetime | None = None,
    ) -> list[EntityT]:
        """Non-terminal records of a project, most recently updated first.

        Args:
            project_id: Project identifier
            limit: Maximum rows to return (None for all)
            updated_since: Only records updated at or after this time
        """
        sql = f"SELECT * FROM {self.table} WHERE project_id = ? AND status != ?"
        params: list[Any] = [project_id, self.closed_status]
        if updated_since is not None:
            sql += " AND updated_at >= ?"
            params.append(to_db_timestamp(updated_since))
        sql += " ORDER BY updated_at DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        rows = await self._db.fetch_all(sql, params)
        return [self._from_row(row) for row in rows]


class ActionItemRepository(EntityRepository[ActionItem]):
    """Action items table."""

    table = "action_items"
    model = ActionItem
    extra_columns = (
        "description",
        "due_date",
        "owner_user_id",
        "owner_contact_id",
        "owner_name",
        "owner_email",
    )
    extra_ddl = """description TEXT,
                due_date TEXT,
                owner_user_id TEXT,
                owner_contact_id TEXT,
                owner_name TEXT,
                owner_email TEXT"""


class DecisionRepository(EntityRepository[Decision]):
    """Decisions table."""

    table = "decisions"
    model = Decision
    extra_columns = (
        "rationale",
        "impact",
        "outcome",
        "decision_maker_user_id",
        "decision_maker_contact_id",
        "decision_maker_name",
        "decision_maker_email",
    )
    extra_ddl = """rationale TEXT,
                impact TEXT,
                outcome TEXT,
                decision_maker_user_id TEXT,
                decision_maker_contact_id TEXT,
                decision_maker_name TEXT,
                decision_maker_email TEXT"""


class RiskRepository(EntityRepository[Risk]):
    """Risks table."""

    table = "risks"
    model = Risk
    extra_columns = (
        "description",
        "probability",
        "impact",
        "mitigation",
        "owner_user_id",
        "owner_contact_id",
        "owner_name",
        "owner_email",
    )
    extra_ddl = """description TEXT,
                probability TEXT NOT NULL,
                impact TEXT NOT NULL,
                mitigation TEXT,
                owner_user_id TEXT,
                owner_contact_id TEXT,
                owner_name TEXT,
                owner_email TEXT"""
