"""AI-authored narrative entries appended to records on publish."""

from collections.abc import Mapping, Sequence
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID

from src.models.canonical import EntityUpdate
from src.models.enums import EntityType, Operation, UpdateSource
from src.models.evidence import EvidenceQuote

DEFAULT_QUOTE_MAX_LENGTH = 300
UNTITLED_MEETING = "Untitled Meeting"

CLOSED_TEXT = "Closed via meeting review."
NO_CHANGE_TEXT = "Reviewed in meeting review (no substantive changes to tracked fields)."
UPDATED_PREFIX = "Updated via meeting review: "

# (field, label, show old -> new values, placeholder for empty values)
TrackedField = tuple[str, str, bool, str]

_COMMON: tuple[TrackedField, ...] = (
    ("status", "Status", True, "None"),
    ("title", "Title", False, ""),
)

TRACKED_FIELDS: dict[EntityType, tuple[TrackedField, ...]] = {
    EntityType.ACTION_ITEM: _COMMON
    + (
        ("description", "Description", False, ""),
        ("due_date", "Due date", True, "None"),
        ("owner_name", "Owner", True, "Unassigned"),
    ),
    EntityType.DECISION: _COMMON
    + (
        ("rationale", "Rationale", False, ""),
        ("impact", "Impact", False, ""),
        ("outcome", "Outcome", False, ""),
        ("decision_maker_name", "Decision maker", True, "Unassigned"),
    ),
    EntityType.RISK: _COMMON
    + (
        ("description", "Description", False, ""),
        ("probability", "Probability", True, "None"),
        ("impact", "Impact", True, "None"),
        ("mitigation", "Mitigation", False, ""),
    ),
}


def _normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value.strip() or None
    return value


def describe_changes(
    entity_type: EntityType,
    existing: Mapping[str, Any],
    proposed: Mapping[str, Any],
) -> list[str]:
    """List human-readable changes between a record and proposed values.

    Only fields present in ``proposed`` are compared.
    """
    changes: list[str] = []
    for field, label, show_values, empty in TRACKED_FIELDS[entity_type]:
        if field not in proposed:
            continue
        old = _normalize(existing.get(field))
        new = _normalize(proposed[field])
        if old == new:
            continue
        if show_values:
            changes.append(f"{label}: {old or empty} → {new or empty}")
        else:
            changes.append(f"{label} updated")
    return changes


def truncate_quote(quote: str | None, max_length: int = DEFAULT_QUOTE_MAX_LENGTH) -> str | None:
    """Bound a quote to ``max_length`` characters, adding an ellipsis."""
    if not quote:
        return None
    if len(quote) > max_length:
        return quote[:max_length] + "..."
    return quote


def narrative_content(
    operation: Operation,
    entity_type: EntityType,
    existing: Mapping[str, Any],
    proposed: Mapping[str, Any],
) -> str:
    """Text of the narrative entry for an update or close."""
    if operation == Operation.CLOSE:
        return CLOSED_TEXT
    changes = describe_changes(entity_type, existing, proposed)
    if not changes:
        return NO_CHANGE_TEXT
    return UPDATED_PREFIX + "; ".join(changes) + "."


def build_narrative(
    *,
    operation: Operation,
    entity_type: EntityType,
    existing: Mapping[str, Any],
    proposed: Mapping[str, Any],
    evidence: Sequence[EvidenceQuote],
    meeting_id: UUID,
    meeting_title: str | None,
    publisher_id: str,
    publisher_name: str,
    max_quote_length: int = DEFAULT_QUOTE_MAX_LENGTH,
) -> EntityUpdate:
    """Build the AI-authored entry appended to a record's updates.

    Args:
        operation: update or close
        entity_type: Kind of record being changed
        existing: Current stored field values
        proposed: New field values being written
        evidence: Evidence of the proposal (first quote is embedded)
        meeting_id: Meeting the change came from
        meeting_title: Title of that meeting
        publisher_id: Actor publishing the change-set
        publisher_name: Display name of the publisher
        max_quote_length: Quote truncation limit

    Returns:
        EntityUpdate ready to append
    """
    if operation == Operation.CREATE:
        msg = "Narratives are only written for update and close"
        raise ValueError(msg)

    return EntityUpdate(
        content=narrative_content(operation, entity_type, existing, proposed),
        created_by_user_id=publisher_id,
        created_by_name=f"{publisher_name} (via AI)",
        source=UpdateSource.AI_MEETING_PROCESSING,
        meeting_id=meeting_id,
        meeting_title=meeting_title or UNTITLED_MEETING,
        evidence_quote=truncate_quote(
            evidence[0].quote if evidence else None,
            max_quote_length,
        ),
    )
