"""Prompt for proposing project changes from a meeting transcript.

The prompt follows the "instructions after content" pattern to avoid
the "lost in the middle" problem with long transcripts. The transcript
and the currently open items come first, then extraction instructions.
"""

PROPOSAL_PROMPT = """You are an expert technical program manager reviewing a meeting transcript.

Meeting: {meeting_title}
Date: {meeting_date}
Attendees: {attendees}

Transcript:
{transcript}

---

Currently open items for this project (use these ids for update/close):
{open_items}

---

Propose changes to the project's action items, decisions and risks based
on the transcript above.

For each item provide:
- operation: "create" for something new, "update" when the meeting changed an
  existing open item, "close" when the meeting completed or retired one
- external_id: the id of the existing item for update/close, copied exactly
  from the open items list. Omit it for create.
- title: short title
- evidence: one or more EXACT verbatim quotes from the transcript, with the
  speaker and timestamp when available
- confidence: your confidence this is a real item (0.0-1.0)

Action items also have description, status, owner (name exactly as spoken,
email only if stated) and due_date_raw (as spoken, e.g. "next Friday").
Decisions also have rationale, impact, outcome, status and decision_maker.
Risks also have description, probability and impact (Low/Med/High),
mitigation, status and owner.

CONFIDENCE RUBRIC - follow this exactly:
- 0.9-1.0: Explicit commitment, decision or risk stated plainly
- 0.7-0.9: Clearly implied by the discussion
- 0.5-0.7: Mentioned but tentative
- Below 0.5: DO NOT EXTRACT - too uncertain

IMPORTANT:
- Prefer update/close of an existing item over creating a duplicate
- Never invent an external_id that is not in the open items list
- Extract ONLY from the transcript provided. Do not infer or add information not present.
"""

NO_OPEN_ITEMS = "(none)"


def format_open_items(lines: list[str]) -> str:
    """Join open-item lines for the prompt."""
    return "\n".join(lines) if lines else NO_OPEN_ITEMS
