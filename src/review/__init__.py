"""Review and publish pipeline for meeting change-sets.

This module provides:
- LockManager: single-reviewer lock with expiry-based takeover
- ChangeSetEditor: lock-guarded reviewer edits and identity follow-ups
- MeetingProcessor: transcript -> proposed change-set
- MeetingPublisher: best-effort application of a reviewed change-set
- Error taxonomy shared with the API layer
"""

from src.review.change_sets import ChangeSetEditor, ChangeSetView, blocking_items
from src.review.errors import (
    ChangeSetNotFoundError,
    InvalidEditError,
    InvalidProposalError,
    ItemNotFoundError,
    LockConflictError,
    LockNotHeldError,
    MeetingDeletedError,
    MeetingNotFoundError,
    MeetingNotProcessableError,
    MeetingNotReviewableError,
    PermissionDeniedError,
    PersonNotFoundError,
    PublishFailedError,
    ReviewError,
    UnresolvedIdentityError,
)
from src.review.intake import MeetingProcessor
from src.review.lock_manager import LockManager, LockStatus
from src.review.publisher import MeetingPublisher, OperationCounts, PublishResult

__all__ = [
    "ChangeSetEditor",
    "ChangeSetNotFoundError",
    "ChangeSetView",
    "InvalidEditError",
    "InvalidProposalError",
    "ItemNotFoundError",
    "LockConflictError",
    "LockManager",
    "LockNotHeldError",
    "LockStatus",
    "MeetingDeletedError",
    "MeetingNotFoundError",
    "MeetingNotProcessableError",
    "MeetingNotReviewableError",
    "MeetingProcessor",
    "MeetingPublisher",
    "OperationCounts",
    "PermissionDeniedError",
    "PersonNotFoundError",
    "PublishFailedError",
    "PublishResult",
    "ReviewError",
    "UnresolvedIdentityError",
    "blocking_items",
]
