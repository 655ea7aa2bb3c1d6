"""Shared request dependencies and error mapping for review endpoints."""

from fastapi import Header, HTTPException

from src.review.errors import (
    InvalidEditError,
    InvalidProposalError,
    ReviewError,
)

STATUS_BY_CATEGORY = {
    "not_found": 404,
    "precondition": 400,
    "conflict": 409,
    "blocked": 422,
    "forbidden": 403,
    "internal": 500,
}


def get_actor_id(x_actor_id: str = Header(..., min_length=1)) -> str:
    """Acting user id, supplied by the authenticating proxy."""
    return x_actor_id


def review_http_error(error: ReviewError) -> HTTPException:
    """Map a review error to an HTTPException with a structured detail."""
    status_code = STATUS_BY_CATEGORY.get(error.category, 500)
    if isinstance(error, (InvalidProposalError, InvalidEditError)):
        status_code = 422
    return HTTPException(status_code=status_code, detail=error.to_dict())
