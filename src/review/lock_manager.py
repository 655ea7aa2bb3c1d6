"""Single-reviewer lock on a proposed change-set.

A change-set is either unlocked or locked(holder, acquired_at, version).
A lock whose acquired_at is older than the timeout (or missing) counts as
expired and may be taken over. All transitions are conditional UPDATEs
in ChangeSetRepository; nothing here holds in-process state across awaits.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

import structlog
from pydantic import BaseModel

from src.models.base import utc_now
from src.models.proposals import ProposedChangeSet
from src.repositories.change_set_repo import ChangeSetRepository
from src.repositories.people_repo import PeopleRepository
from src.review.errors import (
    ChangeSetNotFoundError,
    LockConflictError,
    LockNotHeldError,
    PermissionDeniedError,
)

logger = structlog.get_logger()

Clock = Callable[[], datetime]


class LockStatus(BaseModel):
    """Lock state as shown to reviewers."""

    change_set_id: UUID
    holder: str | None
    acquired_at: datetime | None
    expires_at: datetime | None
    version: int
    expired: bool
    held_by_actor: bool = False

    @property
    def is_locked(self) -> bool:
        """Check if a live (non-expired) holder exists."""
        return self.holder is not None and not self.expired

    @property
    def can_force_unlock(self) -> bool:
        """Admins may always clear a lock; stale ones are flagged for them."""
        return self.holder is not None


class LockManager:
    """Arbitrates which reviewer may edit and publish a change-set."""

    def __init__(
        self,
        change_sets: ChangeSetRepository,
        people: PeopleRepository,
        timeout: timedelta = timedelta(minutes=30),
        clock: Clock = utc_now,
    ):
        """Initialize the lock manager.

        Args:
            change_sets: Change-set repository (owns the lock columns)
            people: Profile lookup for admin checks
            timeout: Age after which a lock counts as expired
            clock: Source of "now" (injectable for tests)
        """
        self._change_sets = change_sets
        self._people = people
        self._timeout = timeout
        self._clock = clock

    @property
    def timeout(self) -> timedelta:
        return self._timeout

    def now(self) -> datetime:
        return self._clock()

    def stale_cutoff(self) -> datetime:
        """Locks acquired before this instant are expired."""
        return self._clock() - self._timeout

    def is_expired(self, change_set: ProposedChangeSet) -> bool:
        """Check if the stored lock has lapsed (a null timestamp counts)."""
        if change_set.locked_by is None:
            return False
        if change_set.locked_at is None:
            return True
        return self._clock() - change_set.locked_at > self._timeout

    def holds_lock(self, change_set: ProposedChangeSet, actor_id: str) -> bool:
        """Check if ``actor_id`` holds a live lock on this snapshot."""
        return change_set.locked_by == actor_id and not self.is_expired(change_set)

    def describe(
        self,
        change_set: ProposedChangeSet,
        actor_id: str | None = None,
    ) -> LockStatus:
        """Lock status of an already loaded change-set."""
        expires_at = (
            change_set.locked_at + self._timeout if change_set.locked_at else None
        )
        return LockStatus(
            change_set_id=change_set.id,
            holder=change_set.locked_by,
            acquired_at=change_set.locked_at,
            expires_at=expires_at if change_set.locked_by else None,
            version=change_set.lock_version,
            expired=self.is_expired(change_set),
            held_by_actor=actor_id is not None and self.holds_lock(change_set, actor_id),
        )

    async def _load(self, change_set_id: UUID) -> ProposedChangeSet:
        change_set = await self._change_sets.get(change_set_id)
        if change_set is None:
            raise ChangeSetNotFoundError(change_set_id, by_meeting=False)
        return change_set

    async def status(
        self,
        change_set_id: UUID,
        actor_id: str | None = None,
    ) -> LockStatus:
        """Current lock status, read from the store."""
        return self.describe(await self._load(change_set_id), actor_id)

    async def acquire(
        self,
        change_set_id: UUID,
        actor_id: str,
        expected_version: int,
    ) -> LockStatus:
        """Take (or refresh) the lock with a compare-and-swap.

        Succeeds if ``actor_id`` already holds the lock, or if the lock is
        free or expired and ``expected_version`` matches the stored
        version. Each success bumps the version.

        Raises:
            ChangeSetNotFoundError: Unknown change-set
            LockConflictError: Live holder is someone else, or the caller's
                version is stale; nothing was written
        """
        acquired = await self._change_sets.try_acquire_lock(
            change_set_id,
            actor_id,
            expected_version,
            now=self._clock(),
            stale_cutoff=self.stale_cutoff(),
        )
        change_set = await self._load(change_set_id)

        if not acquired:
            expired = self.is_expired(change_set)
            logger.info(
                "lock conflict",
                change_set_id=str(change_set_id),
                actor_id=actor_id,
                holder=change_set.locked_by,
                expected_version=expected_version,
                current_version=change_set.lock_version,
                expired=expired,
            )
            raise LockConflictError(
                change_set_id,
                holder=change_set.locked_by,
                locked_at=change_set.locked_at,
                current_version=change_set.lock_version,
                expired=expired,
            )

        logger.info(
            "lock acquired",
            change_set_id=str(change_set_id),
            actor_id=actor_id,
            version=change_set.lock_version,
        )
        return self.describe(change_set, actor_id)

    async def release(self, change_set_id: UUID, actor_id: str) -> bool:
        """Clear the lock if ``actor_id`` holds it.

        Returns:
            True if released; False (never an error) for non-holders
        """
        released = await self._change_sets.release_lock(change_set_id, actor_id)
        logger.info(
            "lock released" if released else "lock release ignored",
            change_set_id=str(change_set_id),
            actor_id=actor_id,
        )
        return released

    async def force_unlock(self, change_set_id: UUID, actor_id: str) -> bool:
        """Clear the lock regardless of holder (administrators only).

        Raises:
            PermissionDeniedError: Actor is not an administrator
            ChangeSetNotFoundError: Unknown change-set
        """
        profile = await self._people.get_profile(actor_id)
        if profile is None or not profile.is_admin:
            raise PermissionDeniedError(actor_id, "force unlock a change-set")

        change_set = await self._load(change_set_id)
        cleared = await self._change_sets.clear_lock(change_set_id)
        logger.warning(
            "lock force-unlocked",
            change_set_id=str(change_set_id),
            actor_id=actor_id,
            previous_holder=change_set.locked_by,
        )
        return cleared

    async def require_holder(
        self,
        change_set_id: UUID,
        actor_id: str,
    ) -> ProposedChangeSet:
        """Load the change-set and check ``actor_id`` holds a live lock.

        Raises:
            LockNotHeldError: Lock missing, held by someone else, or expired
        """
        change_set = await self._load(change_set_id)
        if not self.holds_lock(change_set, actor_id):
            raise LockNotHeldError(change_set_id, actor_id)
        return change_set
