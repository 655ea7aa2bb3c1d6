"""Enumerations shared across meetings, proposals and canonical records."""

from enum import Enum


class MeetingStatus(str, Enum):
    """Processing lifecycle of a meeting."""

    DRAFT = "Draft"
    PROCESSING = "Processing"
    REVIEW = "Review"
    PUBLISHED = "Published"
    FAILED = "Failed"
    DELETED = "Deleted"


class EntityStatus(str, Enum):
    """Status of an action item or risk."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"


class DecisionStatus(str, Enum):
    """Lifecycle of a decision."""

    PROPOSED = "Proposed"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    SUPERSEDED = "Superseded"


class RiskLevel(str, Enum):
    """Probability or impact rating of a risk."""

    LOW = "Low"
    MED = "Med"
    HIGH = "High"


class Operation(str, Enum):
    """Mutation a proposed item applies to the canonical record."""

    CREATE = "create"
    UPDATE = "update"
    CLOSE = "close"


class EntityType(str, Enum):
    """Kinds of canonical entities (used by evidence and audit rows)."""

    ACTION_ITEM = "action_item"
    DECISION = "decision"
    RISK = "risk"


class UpdateSource(str, Enum):
    """Who authored a narrative update on a canonical record."""

    HUMAN = "human"
    AI_MEETING_PROCESSING = "ai_meeting_processing"


class GlobalRole(str, Enum):
    """Application-wide role of a user profile."""

    ADMIN = "admin"
    CONSULTANT = "consultant"
    PROGRAM_MANAGER = "program_manager"
