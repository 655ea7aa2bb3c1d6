"""Turso/libSQL database client wrapper."""

import logging
from datetime import UTC, datetime
from typing import Any

from libsql_client import Client, ResultSet, create_client

from src.config import settings

logger = logging.getLogger(__name__)

# Fixed-width UTC format so stored timestamps compare correctly as text
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def to_db_timestamp(value: datetime) -> str:
    """Format a datetime for storage (naive values are treated as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def rows_as_dicts(result: ResultSet) -> list[dict[str, Any]]:
    """Convert a ResultSet into a list of column-name keyed dicts."""
    columns = list(result.columns)
    return [dict(zip(columns, row, strict=False)) for row in result.rows]


class TursoClient:
    """Async libSQL client shared by every repository.

    Talks to cloud Turso when a ``libsql://`` URL and auth token are
    configured, otherwise to a local SQLite file.
    """

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
    ):
        """Initialize client with connection parameters.

        Args:
            url: Database URL. Defaults to settings or local file.
            auth_token: Auth token for Turso cloud. Defaults to settings.
        """
        self.url = url or settings.turso_database_url or "file:local.db"
        self.auth_token = auth_token or settings.turso_auth_token
        self._client: Client | None = None

    @property
    def is_remote(self) -> bool:
        return bool(self.auth_token) and self.url.startswith("libsql://")

    async def connect(self) -> None:
        """Open the connection (no-op when already connected)."""
        if self._client is not None:
            return
        if self.is_remote:
            self._client = create_client(url=self.url, auth_token=self.auth_token)
        else:
            self._client = create_client(url=self.url)
        logger.info(f"Connected to {'Turso' if self.is_remote else 'local'} database: {self.url}")

    def _require_client(self) -> Client:
        if self._client is None:
            msg = "Not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client

    async def execute(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> ResultSet:
        """Run one statement with ``?`` placeholders bound to ``params``."""
        return await self._require_client().execute(sql, params or [])

    async def fetch_all(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Run a query and return rows keyed by column name."""
        return rows_as_dicts(await self.execute(sql, params))

    async def fetch_one(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> dict[str, Any] | None:
        """Run a query and return the first row, or None."""
        rows = await self.fetch_all(sql, params)
        return rows[0] if rows else None

    async def execute_batch(self, statements: list[str]) -> None:
        """Run several statements in one batch (used for DDL)."""
        await self._require_client().batch(statements)

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.close()
        self._client = None
        logger.info("Database connection closed")

    async def is_healthy(self) -> bool:
        """Check the connection answers a trivial query."""
        if self._client is None:
            return False
        try:
            result = await self._client.execute("SELECT 1")
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
        return len(result.rows) == 1
