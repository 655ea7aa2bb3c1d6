"""Canonical data models for the Meeting Review Agent.

This module exports the domain models used throughout the application:
- BaseEntity: Base class with id, timestamps
- Meeting: Meeting with transcript and attendees
- ActionItem, Decision, Risk: Canonical project records with narratives
- Evidence, AuditLogEntry: Side records written on publish
- Profile, ProjectContact, MeetingAttendee: People

Proposal models live in src.models.proposals (they embed identity schemas).
"""

from src.models.action_item import ActionItem
from src.models.base import BaseEntity
from src.models.canonical import CanonicalEntity, EntityUpdate, OwnerFields
from src.models.decision import Decision
from src.models.enums import (
    DecisionStatus,
    EntityStatus,
    EntityType,
    GlobalRole,
    MeetingStatus,
    Operation,
    RiskLevel,
    UpdateSource,
)
from src.models.evidence import AuditLogEntry, Evidence, EvidenceQuote
from src.models.meeting import Meeting
from src.models.participant import MeetingAttendee, ProjectContact, Profile
from src.models.risk import Risk

__all__ = [
    # Base
    "BaseEntity",
    "CanonicalEntity",
    "EntityUpdate",
    "OwnerFields",
    # Enums
    "DecisionStatus",
    "EntityStatus",
    "EntityType",
    "GlobalRole",
    "MeetingStatus",
    "Operation",
    "RiskLevel",
    "UpdateSource",
    # People
    "MeetingAttendee",
    "Profile",
    "ProjectContact",
    # Meeting
    "Meeting",
    # Canonical records
    "ActionItem",
    "Decision",
    "Risk",
    # Side records
    "AuditLogEntry",
    "Evidence",
    "EvidenceQuote",
]
