"""Proposal extraction module for LLM-based change extraction."""

from src.extraction.date_normalizer import normalize_due_date
from src.extraction.prompts import PROPOSAL_PROMPT, format_open_items
from src.extraction.schemas import (
    ExtractedActionItem,
    ExtractedDecision,
    ExtractedEvidence,
    ExtractedPerson,
    ExtractedProposals,
    ExtractedRisk,
)

__all__ = [
    "PROPOSAL_PROMPT",
    "ExtractedActionItem",
    "ExtractedDecision",
    "ExtractedEvidence",
    "ExtractedPerson",
    "ExtractedProposals",
    "ExtractedRisk",
    "format_open_items",
    "normalize_due_date",
]
