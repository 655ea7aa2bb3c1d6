"""API router aggregation."""

from fastapi import APIRouter

from src.api.change_sets import router as change_sets_router
from src.api.health import router as health_router
from src.api.identity import router as identity_router
from src.api.meetings import router as meetings_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(meetings_router)
# Review of a meeting's change-set lives under the meeting
api_router.include_router(change_sets_router)
# Identity resolution endpoints
api_router.include_router(identity_router)
