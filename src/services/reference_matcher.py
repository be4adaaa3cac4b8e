"""
Reference Matcher Service
Links free text from a report (surgeon, practice, insurer) to the canonical
doctors, studies and insurers configured in the backend

Matching is exact-then-partial on uppercased, trimmed names. The first
partial match in list order wins: there is no scoring, so an ambiguous
text resolves to whichever candidate comes first.
"""

from enum import Enum
from typing import Callable, Sequence, TypeVar

from src.models.schemas import Doctor, ObraSocial, Study

T = TypeVar("T")


class PrefixRule(str, Enum):
    """Which leading part of the free text is looked up inside candidate names"""
    FIRST_CHARS = "first_chars"
    FIRST_TOKEN = "first_token"


def normalize_name(value: str) -> str:
    return (value or "").strip().upper()


def _prefix(normalized: str, rule: PrefixRule, length: int) -> str:
    if rule == PrefixRule.FIRST_TOKEN:
        return normalized.split()[0]
    return normalized[:length]


def match_best(
    free_text: str,
    candidates: Sequence[T],
    name_of: Callable[[T], str],
    id_of: Callable[[T], str],
    prefix_rule: PrefixRule = PrefixRule.FIRST_TOKEN,
    prefix_length: int = 20
) -> str:
    """
    Find the candidate that best matches free text

    Args:
        free_text: Text extracted from the document
        candidates: Reference entities, in backend order
        name_of: Returns a candidate's display name
        id_of: Returns a candidate's identifier
        prefix_rule: Prefix of the free text searched inside candidate names
        prefix_length: Number of characters for PrefixRule.FIRST_CHARS

    Returns:
        Matched id, or "" when nothing matches (needs manual selection)
    """
    normalized = normalize_name(free_text)
    if not normalized or not candidates:
        return ""

    named = [(candidate, normalize_name(name_of(candidate))) for candidate in candidates]
    # A blank name would be "contained" in any text
    named = [(candidate, name) for candidate, name in named if name]

    for candidate, name in named:
        if name == normalized:
            return id_of(candidate)

    prefix = _prefix(normalized, prefix_rule, prefix_length)
    for candidate, name in named:
        if name in normalized or prefix in name:
            return id_of(candidate)

    return ""


def match_doctor(surgeon_text: str, doctors: Sequence[Doctor]) -> str:
    return match_best(
        surgeon_text, doctors,
        name_of=lambda d: d.name,
        id_of=lambda d: d.doctor_id,
        prefix_rule=PrefixRule.FIRST_TOKEN
    )


def match_study(practice_text: str, studies: Sequence[Study]) -> str:
    return match_best(
        practice_text, studies,
        name_of=lambda s: s.name,
        id_of=lambda s: s.study_id,
        prefix_rule=PrefixRule.FIRST_CHARS,
        prefix_length=20
    )


def match_obra_social(insurance_text: str, obras_sociales: Sequence[ObraSocial]) -> str:
    return match_best(
        insurance_text, obras_sociales,
        name_of=lambda os: os.nombre,
        id_of=lambda os: os.obra_social_id,
        prefix_rule=PrefixRule.FIRST_TOKEN
    )
