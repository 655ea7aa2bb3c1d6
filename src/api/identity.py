"""Identity resolution API endpoints.

Provides endpoints for resolving extracted names against a project's
roster, and for adding people the roster does not know yet.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from src.identity.resolver import IdentityResolver
from src.identity.review import find_similar_names, resolution_status_label
from src.identity.schemas import ResolvedIdentity, RosterPerson
from src.models.participant import MeetingAttendee, ProjectContact
from src.repositories.people_repo import PeopleRepository

router = APIRouter(prefix="/identity", tags=["identity"])


class NameToResolve(BaseModel):
    """An extracted name with its stated email, if any."""

    name: str = Field(min_length=1, description="Name as extracted")
    email: str | None = Field(default=None, description="Email if stated")


class ResolveRequest(BaseModel):
    """Request to resolve extracted names for a project."""

    project_id: str = Field(min_length=1, description="Project ID for roster lookup")
    names: list[NameToResolve] = Field(description="Names to resolve")
    attendees: list[MeetingAttendee] = Field(
        default_factory=list,
        description="Meeting attendees (used to infer emails)",
    )


class ResolvedName(BaseModel):
    """Single resolution for API response."""

    identity: ResolvedIdentity
    status_label: str = Field(description="Human-readable resolution status")
    blocking: bool = Field(description="True if this would block publish")


class ResolveResponse(BaseModel):
    """Response with resolved identities."""

    resolved: list[ResolvedName]
    blocking_count: int = Field(description="Count blocking publish")


class CreateContactRequest(BaseModel):
    """Request to add a person without a login to a project."""

    project_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    email: str | None = Field(default=None)


class CreateContactResponse(BaseModel):
    """Created contact plus possible duplicates already on the roster."""

    contact: ProjectContact
    similar_names: list[RosterPerson] = Field(default_factory=list)


def get_people_repo(request: Request) -> PeopleRepository:
    """Dependency to get PeopleRepository from app state."""
    return request.app.state.people_repo


def get_identity_resolver(request: Request) -> IdentityResolver:
    """Dependency to get IdentityResolver from app state."""
    return request.app.state.identity_resolver


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_identities(
    request: ResolveRequest,
    people: PeopleRepository = Depends(get_people_repo),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> ResolveResponse:
    """Resolve extracted names against a project roster.

    Each name goes through: stated email, attendee email inference,
    conference-room detection, then fuzzy matching.

    Args:
        request: Names to resolve with project and attendee info
        people: Roster provider
        resolver: Identity resolution service

    Returns:
        ResolveResponse with one result per name, in request order
    """
    roster = await people.load_roster(request.project_id, request.attendees)
    resolved = []
    for entry in request.names:
        identity = resolver.resolve(entry.name, entry.email, roster)
        resolved.append(
            ResolvedName(
                identity=identity,
                status_label=resolution_status_label(identity.resolution_status),
                blocking=identity.is_blocking,
            )
        )
    return ResolveResponse(
        resolved=resolved,
        blocking_count=sum(1 for r in resolved if r.blocking),
    )


@router.post("/contacts", response_model=CreateContactResponse, status_code=201)
async def create_contact(
    request: CreateContactRequest,
    people: PeopleRepository = Depends(get_people_repo),
) -> CreateContactResponse:
    """Add a project contact, warning about similar existing names.

    Args:
        request: Contact details
        people: People repository

    Returns:
        The created contact and any similar roster entries
    """
    roster = await people.load_roster(request.project_id)
    similar = [p for p, _score in find_similar_names(request.name, roster.people)]

    try:
        contact = ProjectContact(
            project_id=request.project_id,
            name=request.name,
            email=request.email,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    await people.create_contact(contact)
    return CreateContactResponse(contact=contact, similar_names=similar)
