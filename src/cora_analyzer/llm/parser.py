"""
Parser Module - Structured fields from free-form rating text.
=============================================================

Recovers scores and summaries from the labelled rating template:

    OVERALL RATING: 4.2
    DIFFICULTY RATING: 3.5
    COURSE CONTENT SUMMARY: ...
    PROFESSOR SUMMARY: ...

Missing or malformed fields become None. Parsing never raises and the raw
text is kept verbatim in full_analysis.
"""

import re
from typing import Optional

from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import FinalRating

logger = get_logger(__name__)

# Every label the model may emit; a section ends at the next one of these.
SECTION_LABELS = (
    "OVERALL RATING",
    "DIFFICULTY RATING",
    "COURSE CONTENT SUMMARY",
    "PROFESSOR SUMMARY",
    "KEY STRENGTHS",
    "KEY CONCERNS",
    "RECOMMENDATION",
)

_NEXT_LABEL = "|".join(f"{re.escape(label)}:" for label in SECTION_LABELS)


def _score_pattern(label: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(label)}:\s*(\d+(?:\.\d+)?)", re.IGNORECASE)


def _section_pattern(label: str) -> re.Pattern[str]:
    return re.compile(
        rf"{re.escape(label)}:\s*(.*?)(?=(?:{_NEXT_LABEL})|\Z)", re.IGNORECASE | re.DOTALL
    )


SCORE_RULES: dict[str, re.Pattern[str]] = {
    "overall_rating": _score_pattern("OVERALL RATING"),
    "difficulty_rating": _score_pattern("DIFFICULTY RATING"),
}

SECTION_RULES: dict[str, re.Pattern[str]] = {
    "course_summary": _section_pattern("COURSE CONTENT SUMMARY"),
    "professor_summary": _section_pattern("PROFESSOR SUMMARY"),
}


def _parse_score(pattern: re.Pattern[str], text: str) -> Optional[float]:
    match = pattern.search(text)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def _parse_section(pattern: re.Pattern[str], text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    section = match.group(1).strip()
    return section or None


def parse_rating_response(raw_text: Optional[str]) -> FinalRating:
    """
    Parse labelled model output into a FinalRating.

    Args:
        raw_text: Model output (can be None or empty)

    Returns:
        FinalRating with MODEL_RUBRIC as its source

    Example:
        >>> rating = parse_rating_response("OVERALL RATING: 4.2\\nDIFFICULTY RATING: 3.5")
        >>> rating.overall_rating, rating.difficulty_rating
        (4.2, 3.5)
    """
    text = raw_text or ""

    fields: dict[str, Optional[object]] = {}
    for name, pattern in SCORE_RULES.items():
        fields[name] = _parse_score(pattern, text)
    for name, pattern in SECTION_RULES.items():
        fields[name] = _parse_section(pattern, text)

    logger.debug(
        f"Parsed rating: overall={fields['overall_rating']}, "
        f"difficulty={fields['difficulty_rating']}"
    )
    return FinalRating(full_analysis=text, **fields)
