"""Errors raised by the review and publish pipeline.

Every error carries a ``category`` so callers can tell "refresh and retry"
from "this meeting cannot be published" from an internal failure.
"""

from datetime import datetime
from typing import Any
from uuid import UUID


class ReviewError(Exception):
    """Base class for review/publish failures."""

    category = "internal"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Structured form for API responses."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "category": self.category,
            "retryable": self.retryable,
        }


class NotFoundError(ReviewError):
    category = "not_found"


class MeetingNotFoundError(NotFoundError):
    def __init__(self, meeting_id: UUID):
        super().__init__(f"Meeting {meeting_id} not found")
        self.meeting_id = meeting_id


class ChangeSetNotFoundError(NotFoundError):
    def __init__(self, ref: UUID, *, by_meeting: bool = True):
        what = "meeting" if by_meeting else "change-set"
        super().__init__(f"No change-set found for {what} {ref}")
        self.ref = ref


class ItemNotFoundError(NotFoundError):
    def __init__(self, temp_id: str):
        super().__init__(f"Proposed item {temp_id} not found")
        self.temp_id = temp_id


class PersonNotFoundError(NotFoundError):
    def __init__(self, person_id: str):
        super().__init__(f"Person {person_id} is not on the project roster")
        self.person_id = person_id


class PreconditionError(ReviewError):
    category = "precondition"


class MeetingNotReviewableError(PreconditionError):
    """Meeting is deleted, already published, or not yet in review."""

    def __init__(self, meeting_id: UUID, status: str):
        super().__init__(f"Meeting {meeting_id} is {status}, not in Review")
        self.meeting_id = meeting_id
        self.status = status


class MeetingDeletedError(MeetingNotReviewableError):
    def __init__(self, meeting_id: UUID):
        super().__init__(meeting_id, "Deleted")


class MeetingNotProcessableError(PreconditionError):
    """Meeting cannot be (re)processed in its current state."""

    def __init__(self, meeting_id: UUID, reason: str):
        super().__init__(f"Meeting {meeting_id} cannot be processed: {reason}")
        self.meeting_id = meeting_id
        self.reason = reason


class InvalidProposalError(PreconditionError):
    """An accepted update/close targets a record that does not exist."""

    def __init__(self, message: str, temp_ids: list[str] | None = None):
        super().__init__(message)
        self.temp_ids = temp_ids or []

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "items": self.temp_ids}


class InvalidEditError(PreconditionError):
    """A reviewer edit failed validation or touched an immutable field."""


class LockConflictError(ReviewError):
    """Another reviewer holds the lock, or the caller's view is stale."""

    category = "conflict"
    retryable = True

    def __init__(
        self,
        change_set_id: UUID,
        holder: str | None,
        locked_at: datetime | None,
        current_version: int,
        expired: bool,
        message: str | None = None,
    ):
        super().__init__(
            message
            or f"Change-set {change_set_id} is locked by {holder or 'nobody'} "
            f"(version {current_version}); refresh and retry"
        )
        self.change_set_id = change_set_id
        self.holder = holder
        self.locked_at = locked_at
        self.current_version = current_version
        self.expired = expired

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "holder": self.holder,
            "locked_at": self.locked_at.isoformat() if self.locked_at else None,
            "current_version": self.current_version,
            "expired": self.expired,
        }


class LockNotHeldError(ReviewError):
    """Caller tried to edit without holding a live lock."""

    category = "conflict"
    retryable = True

    def __init__(self, change_set_id: UUID, actor_id: str):
        super().__init__(
            f"{actor_id} does not hold the lock on change-set {change_set_id}"
        )
        self.change_set_id = change_set_id
        self.actor_id = actor_id


class UnresolvedIdentityError(ReviewError):
    """Accepted items still have ambiguous or conference-room owners."""

    category = "blocked"

    def __init__(self, temp_ids: list[str]):
        super().__init__(
            f"{len(temp_ids)} accepted item(s) have unresolved owners: "
            + ", ".join(temp_ids)
        )
        self.temp_ids = temp_ids

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "items": self.temp_ids}


class PermissionDeniedError(ReviewError):
    category = "forbidden"

    def __init__(self, actor_id: str, action: str):
        super().__init__(f"{actor_id} is not allowed to {action}")
        self.actor_id = actor_id
        self.action = action


class PublishFailedError(ReviewError):
    """A datastore write failed mid-publish; earlier items stay applied."""

    category = "internal"

    def __init__(self, message: str, partial: dict[str, Any]):
        super().__init__(message)
        self.partial = partial

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "partial": self.partial}
