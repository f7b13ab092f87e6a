"""Reconciliation constants shared across the SDK.

These values are referenced by the synthesizer, the rule table, and the
placeholder generator.  Several can be overridden via environment variables
so that deployments can adjust scheduling defaults without code changes.
"""

import os

# Scheduled date/dateTime fields (appointment, schedule) are pushed this many
# days past the current date.
# Overridable via SCHEDULE_OFFSET_DAYS env var.
SCHEDULE_OFFSET_DAYS = int(os.getenv("SCHEDULE_OFFSET_DAYS", "7"))

# Hour of day (24h) that scheduled dateTime fields are pinned to.
# Overridable via SCHEDULED_HOUR env var.
SCHEDULED_HOUR = int(os.getenv("SCHEDULED_HOUR", "14"))

# Representative business-hour slots for time fields.
TIME_SLOTS: tuple[str, ...] = (
    "09:00:00", "10:00:00", "11:00:00", "14:00:00", "15:00:00", "16:00:00",
)

# Short keywords that must match a whole linkId token rather than a substring
# ("dosage" must not look like an "age" field).
TOKEN_KEYWORDS: frozenset[str] = frozenset(
    {"age", "sex", "mrn", "dob", "npi", "dea", "pcp"}
)

# Urgency tier -> display label used for free-text priority fields.
URGENCY_LABELS: dict[str, str] = {
    "stat": "STAT",
    "urgent": "Urgent",
    "routine": "Routine",
}

# Urgency tier -> words that identify the matching option on a priority choice.
URGENCY_SYNONYMS: dict[str, tuple[str, ...]] = {
    "stat": ("stat", "immediate", "emergent", "asap"),
    "urgent": ("urgent",),
    "routine": ("routine", "normal", "standard"),
}

# Tokens that mark a choice option as the negative / "nothing to report" answer.
NEGATIVE_OPTION_TOKENS: frozenset[str] = frozenset(
    {"no", "none", "without", "not", "negative", "non", "ambulatory", "false", "nka", "nkda"}
)

# Anatomical keyword table used to infer exam type and body region from the
# free-text clinical context.  Checked in order; first match wins.
#   (keywords, body region, exam type)
ANATOMY_TABLE: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("head", "brain", "hemorrhage", "stroke", "cranial"), "Brain/Head", "CT Brain (non-contrast)"),
    (("chest", "lung", "pulmonary", "pneumonia", "rib"), "Chest", "Chest X-ray"),
    (("abdomen", "abdominal", "appendic", "pelvi", "bowel"), "Abdomen/Pelvis", "CT Abdomen/Pelvis"),
    (("spine", "back", "lumbar", "cervical"), "Spine", "MRI Spine"),
    (("knee", "ankle", "hip", "shoulder", "wrist", "fracture"), "Extremity", "X-ray Extremity"),
)

# Tokens that turn a priority option into its opposite ("Non-urgent").
NEGATING_TOKENS: frozenset[str] = frozenset({"no", "non", "not"})

# Single-letter administrative gender codes commonly stored in patient records.
GENDER_ABBREVIATIONS: dict[str, str] = {"f": "female", "m": "male"}
