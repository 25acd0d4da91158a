"""
Utilities Module - Common helper functions.
==========================================

Provides utility functions for:
- Identity normalization (deterministic cache keys)
- File I/O (JSON)
- Directory management
- Text truncation
"""

import json
import re
from pathlib import Path
from typing import Any

from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import CourseIdentity

logger = get_logger(__name__)

UNKNOWN_PROFESSOR = "UNKNOWN"

_HONORIFIC_PATTERN = re.compile(r"^(?:Prof\.|Professor|Dr\.)\s+", re.IGNORECASE)


# ─────────────────────────────────────────────────────────────────────────────
# Identity Normalization
# ─────────────────────────────────────────────────────────────────────────────


def normalize_course_number(course_number: str | None) -> str:
    """
    Normalize a course number for use in keys.

    Args:
        course_number: Course number (e.g., "cs 2130", "CS-2130")

    Returns:
        Uppercase alphanumerics only

    Example:
        >>> normalize_course_number(" cs 2130 ")
        'CS2130'
    """
    return re.sub(r"[^A-Z0-9]", "", (course_number or "").upper())


def normalize_professor(name: str | None) -> str:
    """
    Normalize a professor name for use in keys.

    A leading honorific is dropped, then everything except letters.
    A missing or blank name maps to UNKNOWN.

    Example:
        >>> normalize_professor("Dr. Jane  Doe")
        'JANEDOE'
    """
    if not name or not name.strip():
        return UNKNOWN_PROFESSOR
    stripped = _HONORIFIC_PATTERN.sub("", name.strip())
    return re.sub(r"[^A-Za-z]", "", stripped).upper()


def generate_cache_key(identity: CourseIdentity) -> str:
    """
    Generate the cache key for a course identity.

    Format: {normalized_course}_{normalized_professor}

    Example:
        >>> generate_cache_key(CourseIdentity(course_number="CS 2130", professor_name="Jane Doe"))
        'CS2130_JANEDOE'
    """
    course = normalize_course_number(identity.course_number)
    professor = normalize_professor(identity.professor_name)
    return f"{course}_{professor}"


# ─────────────────────────────────────────────────────────────────────────────
# Directory Management
# ─────────────────────────────────────────────────────────────────────────────


def ensure_parent_directory(file_path: Path) -> Path:
    """
    Ensure the parent directory of a file exists.

    Args:
        file_path: File path

    Returns:
        The file path (for chaining)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path


# ─────────────────────────────────────────────────────────────────────────────
# JSON File I/O
# ─────────────────────────────────────────────────────────────────────────────


def load_json(file_path: Path) -> Any:
    """
    Load data from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is not valid JSON
    """
    file_path = Path(file_path)

    with open(file_path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_json(file_path: Path, data: Any, indent: int = 2) -> None:
    """
    Save data to a JSON file.

    The file is written next to its destination and then renamed into
    place, so readers never see a half-written document.

    Args:
        file_path: Path to JSON file
        data: Data to save (must be JSON serializable)
        indent: Indentation level (default: 2)
    """
    file_path = Path(file_path)
    ensure_parent_directory(file_path)

    tmp_path = file_path.with_suffix(file_path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=str)
    tmp_path.replace(file_path)

    logger.debug(f"Saved JSON to {file_path}")


# ─────────────────────────────────────────────────────────────────────────────
# Text Utilities
# ─────────────────────────────────────────────────────────────────────────────


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate text to max_length characters, appending suffix when cut.

    The suffix is added after the kept characters, so a truncated result is
    max_length + len(suffix) long.
    """
    if len(text) <= max_length:
        return text
    return text[:max_length] + suffix


def format_age(seconds: float | None) -> str:
    """
    Format an age in seconds as a short human-readable string.

    Example:
        >>> format_age(7200)
        '2 hours ago'
    """
    if seconds is None:
        return "n/a"

    minutes = int(seconds // 60)
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days} day{'s' if days != 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    return "just now"
