"""
Field Parser Service
Recovers the billing fields of a surgical report from raw (often OCR'd) text
using ordered regex fallbacks
"""

import re
from functools import lru_cache
from typing import Optional, Pattern, Sequence, Tuple

from src.models.schemas import ParsedDocument
from src.utils.field_patterns import DEFAULT_FIELD_PATTERNS, FieldPatternTable

PARSED_FIELDS = (
    "patient_name",
    "insurance",
    "age",
    "surgeon",
    "practice",
    "date",
    "operation_description",
)


@lru_cache(maxsize=256)
def _compile(patterns: Tuple[str, ...]) -> Tuple[Pattern, ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


def normalize_text(text: str) -> str:
    """Unify line endings and collapse runs of blank lines"""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return re.sub(r"\n{3,}", "\n\n", normalized)


def extract_field(text: str, patterns: Sequence[Pattern]) -> str:
    """
    Return the first non-empty group 1 captured by the patterns, in order

    Args:
        text: Normalized document text
        patterns: Compiled patterns, most specific first

    Returns:
        Stripped value, or "" when no pattern matches
    """
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1) and match.group(1).strip():
            return match.group(1).strip()
    return ""


def parse_document(text: str, pattern_table: Optional[FieldPatternTable] = None) -> ParsedDocument:
    """
    Parse surgical report text into a ParsedDocument

    Every field is looked up on its own, so a missing section never affects
    the others. Fields that are not found stay as empty strings.

    Args:
        text: Raw text from the PDF text layer or OCR
        pattern_table: Patterns to use (defaults to the built-in table)

    Returns:
        ParsedDocument

    Example:
        >>> doc = parse_document("O Social: OSDE Binario\\nEdad 54")
        >>> doc.insurance, doc.age
        ('OSDE Binario', '54')
    """
    table = pattern_table or DEFAULT_FIELD_PATTERNS
    normalized = normalize_text(text or "")

    values = {
        field: extract_field(normalized, _compile(tuple(getattr(table, field))))
        for field in PARSED_FIELDS
    }

    return ParsedDocument(raw_text=normalized, **values)
