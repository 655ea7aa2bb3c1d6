"""Shared constants and builders for tests."""

from datetime import UTC, datetime, timedelta
from typing import Any

from src.identity.schemas import ResolutionStatus, ResolvedIdentity
from src.models.action_item import ActionItem
from src.models.evidence import EvidenceQuote

PROJECT_ID = "proj-apollo"
OTHER_PROJECT_ID = "proj-gemini"
MEETING_DATE = datetime(2026, 1, 18, 10, 0, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock for lock expiry and recency tests."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 20, 9, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def resolved_owner(name: str, user_id: str, email: str | None = None) -> ResolvedIdentity:
    return ResolvedIdentity(
        name=name,
        email=email,
        resolved_user_id=user_id,
        resolution_status=ResolutionStatus.RESOLVED,
        confidence=1.0,
    )


def ambiguous_owner(name: str) -> ResolvedIdentity:
    return ResolvedIdentity(name=name, resolution_status=ResolutionStatus.AMBIGUOUS)


def quote(text: str, speaker: str | None = None) -> EvidenceQuote:
    return EvidenceQuote(quote=text, speaker=speaker)


def action_item(**overrides: Any) -> ActionItem:
    """Canonical action item in PROJECT_ID."""
    fields: dict[str, Any] = {"project_id": PROJECT_ID, "title": "Send the specs"}
    fields.update(overrides)
    return ActionItem(**fields)
