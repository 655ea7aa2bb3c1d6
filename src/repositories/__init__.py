"""Repository layer for data persistence.

Provides repository classes for persisting domain data to the database.
Repositories encapsulate data access logic and provide a clean interface
for the service layer.
"""

from src.repositories.audit_repo import AuditLogRepository
from src.repositories.change_set_repo import ChangeSetRepository
from src.repositories.entity_repo import (
    ActionItemRepository,
    DecisionRepository,
    EntityRepository,
    RiskRepository,
)
from src.repositories.evidence_repo import EvidenceRepository
from src.repositories.meeting_repo import MeetingRepository
from src.repositories.people_repo import PeopleRepository

__all__ = [
    "ActionItemRepository",
    "AuditLogRepository",
    "ChangeSetRepository",
    "DecisionRepository",
    "EntityRepository",
    "EvidenceRepository",
    "MeetingRepository",
    "PeopleRepository",
    "RiskRepository",
]
