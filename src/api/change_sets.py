"""Change-set review API endpoints: lock, item edits, owner follow-ups."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from src.api.deps import get_actor_id, review_http_error
from src.identity.schemas import PersonKind
from src.models.proposals import ProposedChangeSet
from src.review.change_sets import ChangeSetEditor, ChangeSetView, NewContactResult
from src.review.errors import ChangeSetNotFoundError, ReviewError
from src.review.lock_manager import LockManager, LockStatus

router = APIRouter(prefix="/meetings/{meeting_id}/change-set", tags=["change-sets"])


class AcquireLockRequest(BaseModel):
    """Lock request carrying the version the reviewer last saw."""

    expected_version: int = Field(ge=1)


class ReleaseLockResponse(BaseModel):
    released: bool


class ItemPatchRequest(BaseModel):
    """Accept/reject toggle and/or field edits for one proposal."""

    accepted: bool | None = Field(default=None)
    fields: dict[str, Any] = Field(default_factory=dict)


class ResolveOwnerRequest(BaseModel):
    """Reviewer-selected roster person."""

    kind: PersonKind
    person_id: str = Field(min_length=1)


class NewContactRequest(BaseModel):
    """Optional overrides for the contact created from an owner."""

    name: str | None = Field(default=None)
    email: str | None = Field(default=None)


def get_change_set_editor(request: Request) -> ChangeSetEditor:
    """Dependency to get ChangeSetEditor from app state."""
    return request.app.state.change_set_editor


def get_lock_manager(request: Request) -> LockManager:
    """Dependency to get LockManager from app state."""
    return request.app.state.lock_manager


async def _change_set_id(editor: ChangeSetEditor, meeting_id: UUID) -> UUID:
    view = await editor.get(meeting_id)
    return view.change_set.id


@router.get("", response_model=ChangeSetView)
async def get_change_set(
    meeting_id: UUID,
    actor_id: str = Depends(get_actor_id),
    editor: ChangeSetEditor = Depends(get_change_set_editor),
) -> ChangeSetView:
    """Change-set with lock status and the items still blocking publish."""
    try:
        return await editor.get(meeting_id, actor_id)
    except ReviewError as e:
        raise review_http_error(e) from e


@router.post("/lock", response_model=LockStatus)
async def acquire_lock(
    meeting_id: UUID,
    request: AcquireLockRequest,
    actor_id: str = Depends(get_actor_id),
    editor: ChangeSetEditor = Depends(get_change_set_editor),
    locks: LockManager = Depends(get_lock_manager),
) -> LockStatus:
    """Acquire (or refresh) the review lock.

    Returns 409 with the current holder and version when another reviewer
    holds a live lock or the expected version is stale.
    """
    try:
        change_set_id = await _change_set_id(editor, meeting_id)
        return await locks.acquire(change_set_id, actor_id, request.expected_version)
    except ReviewError as e:
        raise review_http_error(e) from e


@router.delete("/lock", response_model=ReleaseLockResponse)
async def release_lock(
    meeting_id: UUID,
    actor_id: str = Depends(get_actor_id),
    editor: ChangeSetEditor = Depends(get_change_set_editor),
    locks: LockManager = Depends(get_lock_manager),
) -> ReleaseLockResponse:
    """Release the lock; a no-op for anyone but the holder."""
    try:
        change_set_id = await _change_set_id(editor, meeting_id)
    except ChangeSetNotFoundError as e:
        raise review_http_error(e) from e
    return ReleaseLockResponse(released=await locks.release(change_set_id, actor_id))


@router.post("/lock/force-unlock", response_model=ReleaseLockResponse)
async def force_unlock(
    meeting_id: UUID,
    actor_id: str = Depends(get_actor_id),
    editor: ChangeSetEditor = Depends(get_change_set_editor),
    locks: LockManager = Depends(get_lock_manager),
) -> ReleaseLockResponse:
    """Clear an abandoned lock (administrators only)."""
    try:
        change_set_id = await _change_set_id(editor, meeting_id)
        return ReleaseLockResponse(
            released=await locks.force_unlock(change_set_id, actor_id)
        )
    except ReviewError as e:
        raise review_http_error(e) from e


@router.patch("/items/{temp_id}", response_model=ProposedChangeSet)
async def patch_item(
    meeting_id: UUID,
    temp_id: str,
    request: ItemPatchRequest,
    actor_id: str = Depends(get_actor_id),
    editor: ChangeSetEditor = Depends(get_change_set_editor),
) -> ProposedChangeSet:
    """Accept/reject and/or edit one proposal (lock required)."""
    fields = dict(request.fields)
    if request.accepted is not None:
        fields["accepted"] = request.accepted
    try:
        if set(fields) == {"accepted"}:
            return await editor.set_accepted(
                meeting_id, temp_id, actor_id, fields["accepted"]
            )
        return await editor.edit_item(meeting_id, temp_id, actor_id, fields)
    except ReviewError as e:
        raise review_http_error(e) from e


@router.post("/items/{temp_id}/owner/resolve", response_model=ProposedChangeSet)
async def resolve_owner(
    meeting_id: UUID,
    temp_id: str,
    request: ResolveOwnerRequest,
    actor_id: str = Depends(get_actor_id),
    editor: ChangeSetEditor = Depends(get_change_set_editor),
) -> ProposedChangeSet:
    """Pin the owner to a roster person."""
    try:
        return await editor.resolve_owner_manually(
            meeting_id, temp_id, actor_id, request.kind, request.person_id
        )
    except ReviewError as e:
        raise review_http_error(e) from e


@router.post("/items/{temp_id}/owner/placeholder", response_model=ProposedChangeSet)
async def accept_owner_placeholder(
    meeting_id: UUID,
    temp_id: str,
    actor_id: str = Depends(get_actor_id),
    editor: ChangeSetEditor = Depends(get_change_set_editor),
) -> ProposedChangeSet:
    """Keep the owner as a named placeholder."""
    try:
        return await editor.accept_owner_as_placeholder(meeting_id, temp_id, actor_id)
    except ReviewError as e:
        raise review_http_error(e) from e


@router.post("/items/{temp_id}/owner/contact", response_model=NewContactResult)
async def add_owner_contact(
    meeting_id: UUID,
    temp_id: str,
    request: NewContactRequest,
    actor_id: str = Depends(get_actor_id),
    editor: ChangeSetEditor = Depends(get_change_set_editor),
) -> NewContactResult:
    """Create a project contact for the owner and re-resolve."""
    try:
        return await editor.add_owner_as_contact(
            meeting_id, temp_id, actor_id, name=request.name, email=request.email
        )
    except ReviewError as e:
        raise review_http_error(e) from e
